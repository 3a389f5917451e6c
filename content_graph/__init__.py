"""Relational entity graph of accounts, profiles, content items and tags."""
