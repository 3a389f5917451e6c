"""
Field-level rules declared by the entity model and re-checked at write time.

Each model class carries a ``__field_rules__`` mapping of column name to
:class:`FieldRule`.  The repositories call :func:`validate_attributes`
before every insert/update to collect *all* violations into a single
:class:`~content_graph.errors.ValidationError`; the models' ``@validates``
hooks call :func:`check_field` on assignment as a last line of defence.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from pydantic import validate_email
from pydantic_core import PydanticCustomError

from content_graph.errors import ValidationError

# Columns the storage layer owns; never accepted in write attributes.
SERVER_MANAGED = frozenset({"id", "created_at", "updated_at"})


@dataclass(frozen=True)
class FieldRule:
    """
    Declarative constraint for one column.

    ``kind`` is one of ``"str"``, ``"email"``, ``"date"``, ``"bool"`` or
    ``"int"``.  Length bounds apply to ``str`` values only.
    """

    label: str
    kind: str = "str"
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None

    def length_message(self) -> str:
        if self.min_length is not None and self.max_length is not None:
            return f"{self.label} must be between {self.min_length} and {self.max_length} characters"
        if self.max_length is not None:
            return f"{self.label} cannot exceed {self.max_length} characters"
        return f"{self.label} must be at least {self.min_length} characters"


def coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise TypeError(f"unsupported date value: {value!r}")


def check_value(rule: FieldRule, value: Any) -> str | None:
    """Return the violation message for *value*, or None when it is valid."""
    if value is None:
        return f"{rule.label} is required" if rule.required else None

    if rule.kind == "bool":
        return None if isinstance(value, bool) else f"{rule.label} must be a boolean"

    if rule.kind == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            return f"{rule.label} must be an integer"
        return None

    if rule.kind == "date":
        try:
            coerce_date(value)
        except (TypeError, ValueError):
            return "Please provide a valid date"
        return None

    if not isinstance(value, str):
        return f"{rule.label} must be a string"

    if rule.kind == "email":
        try:
            _, address = validate_email(value)
        except PydanticCustomError:
            return "Please provide a valid email address"
        # Display-name forms and padding parse, but only the bare address may be stored.
        if address.casefold() != value.casefold():
            return "Please provide a valid email address"
        return None

    if rule.min_length is not None and len(value) < rule.min_length:
        return rule.length_message()
    if rule.max_length is not None and len(value) > rule.max_length:
        return rule.length_message()
    return None


def validate_attributes(model, attrs: dict[str, Any], *, partial: bool = False) -> None:
    """
    Check *attrs* against ``model.__field_rules__``.

    With ``partial=False`` (inserts) every required field must be present.
    With ``partial=True`` (updates) only the supplied fields are checked.
    Raises :class:`ValidationError` carrying one message per bad field.
    """
    rules: dict[str, FieldRule] = model.__field_rules__
    columns = set(model.__table__.columns.keys())
    errors: dict[str, str] = {}

    for key in attrs:
        if key in SERVER_MANAGED or key not in columns:
            errors[key] = f"Unknown or read-only field '{key}'"

    for name, rule in rules.items():
        if name in attrs:
            message = check_value(rule, attrs[name])
        elif not partial and rule.required:
            message = f"{rule.label} is required"
        else:
            message = None
        if message:
            errors[name] = message

    if errors:
        raise ValidationError(errors)


def check_field(model, key: str, value: Any) -> Any:
    """
    ``@validates`` hook body: raise on a bad value, otherwise return the
    value to store (dates are normalised to :class:`datetime.date`).
    """
    rule: FieldRule | None = model.__field_rules__.get(key)
    if rule is None:
        return value
    message = check_value(rule, value)
    if message:
        raise ValidationError({key: message})
    if rule.kind == "date" and value is not None:
        return coerce_date(value)
    return value
