# Services package (the consistency layer).
#
# Each module exposes async functions that compose repository calls into
# operations over one aggregate:
#
#   account_service  - register / modify / remove accounts with their profile
#   content_service  - content item CRUD, tag-set replacement, published feed
#   tag_service      - tag CRUD
#
# Every function takes an AsyncSession first.  Writes run inside
# ``unit_of_work`` and therefore commit (or roll back) before returning.
