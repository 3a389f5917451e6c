"""
Generic persistence gateway over a single entity kind.

Repositories flush but never commit: the transaction boundary belongs to
the caller (``unit_of_work`` in the services, ``get_db`` at the HTTP edge),
so every write here is observable only once that caller commits.

Reads always run with ``populate_existing`` so an entity already present
in the session's identity map is refreshed from storage rather than served
stale; this matters after bulk join-table writes in ``replace_tags``.
"""
from __future__ import annotations

import math
from typing import Any, ClassVar, Generic, Iterable, TypeVar

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from content_graph.database import Base
from content_graph.errors import (
    ConflictError,
    IntegrityError,
    NotFound,
    ValidationError,
    storage_errors,
)
from content_graph.projections import Page, Projection
from content_graph.validation import validate_attributes

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    model: ClassVar[type]
    entity_name: ClassVar[str]
    # Projection -> loader options; subclasses fill this in.
    loaders: ClassVar[dict[Projection, tuple]] = {}
    # Foreign-key attribute -> referenced model, checked on every write.
    references: ClassVar[dict[str, type]] = {}

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def _select(self, projection: Projection) -> Select:
        return (
            select(self.model)
            .options(*self.loaders.get(projection, ()))
            .execution_options(populate_existing=True)
        )

    def _filter(self, stmt: Select, filters: dict[str, Any] | None) -> Select:
        """Apply equality filters; iterable values become ``IN`` clauses."""
        if not filters:
            return stmt
        columns = self.model.__table__.columns
        unknown = [key for key in filters if key not in columns]
        if unknown:
            raise ValidationError({key: f"Cannot filter on unknown field '{key}'" for key in unknown})
        for key, value in filters.items():
            column = getattr(self.model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        return stmt

    def _newest_first(self, stmt: Select) -> Select:
        # id breaks ties between rows created within the same clock tick
        return stmt.order_by(self.model.created_at.desc(), self.model.id.desc())

    async def _all(self, stmt: Select, operation: str) -> list[ModelT]:
        with storage_errors(operation):
            result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def _first(self, stmt: Select, operation: str) -> ModelT | None:
        with storage_errors(operation):
            result = await self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_many(
        self,
        filters: dict[str, Any] | None = None,
        projection: Projection = Projection.LIGHT,
    ) -> list[ModelT]:
        """All matching rows, newest first, loaded in *projection*."""
        stmt = self._newest_first(self._filter(self._select(projection), filters))
        return await self._all(stmt, f"{self.entity_name}.find_many")

    async def find_one(
        self,
        filters: dict[str, Any],
        projection: Projection = Projection.FULL,
    ) -> ModelT | None:
        stmt = self._filter(self._select(projection), filters).limit(1)
        return await self._first(stmt, f"{self.entity_name}.find_one")

    async def find_by_id(self, entity_id: int, projection: Projection = Projection.FULL) -> ModelT:
        """Return the entity or raise :class:`NotFound`."""
        stmt = self._select(projection).where(self.model.id == entity_id)
        instance = await self._first(stmt, f"{self.entity_name}.find_by_id")
        if instance is None:
            raise NotFound(self.entity_name, entity_id)
        return instance

    async def exists(self, entity_id: int) -> bool:
        stmt = select(self.model.id).where(self.model.id == entity_id)
        with storage_errors(f"{self.entity_name}.exists"):
            result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        """``COUNT(DISTINCT id)`` so eager joins can never inflate the total."""
        stmt = self._filter(select(func.count(distinct(self.model.id))), filters)
        with storage_errors(f"{self.entity_name}.count"):
            result = await self.db.execute(stmt)
        return result.scalar_one()

    async def paginate(
        self,
        page: int,
        page_size: int,
        filters: dict[str, Any] | None = None,
        projection: Projection = Projection.LIGHT,
    ) -> Page[ModelT]:
        """
        Return the 1-based *page* of *page_size* rows.

        No defaults are applied here: missing or non-positive values are a
        caller error and raise :class:`ValidationError`.
        """
        errors = {}
        for name, value in (("page", page), ("page_size", page_size)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                errors[name] = f"{name} must be a positive integer"
        if errors:
            raise ValidationError(errors)

        total = await self.count(filters)
        stmt = (
            self._newest_first(self._filter(self._select(projection), filters))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        items = await self._all(stmt, f"{self.entity_name}.paginate")
        return Page(
            items=items,
            total_count=total,
            total_pages=math.ceil(total / page_size) if total > 0 else 0,
            page=page,
            page_size=page_size,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _unique_columns(self) -> list[str]:
        return [c.name for c in self.model.__table__.columns if c.unique]

    async def _check_unique(
        self, attrs: dict[str, Any], fields: Iterable[str], exclude_id: int | None = None
    ) -> None:
        """
        Advisory uniqueness check.  The storage constraint remains the
        authority: a concurrent insert that slips past this check still
        fails at flush and is reported as :class:`ConflictError`.
        """
        for name in fields:
            value = attrs.get(name)
            if value is None:
                continue
            stmt = select(self.model.id).where(getattr(self.model, name) == value)
            if exclude_id is not None:
                stmt = stmt.where(self.model.id != exclude_id)
            with storage_errors(f"{self.entity_name}.check_unique"):
                taken = (await self.db.execute(stmt.limit(1))).scalar_one_or_none()
            if taken is not None:
                raise ConflictError(
                    f"{self.entity_name} with this {name} already exists", field=name
                )

    async def _check_references(self, attrs: dict[str, Any], fields: Iterable[str]) -> None:
        """
        Referential integrity at write time: every foreign key being written
        must point at an existing row, else :class:`IntegrityError`.
        """
        for name in fields:
            target = self.references.get(name)
            value = attrs.get(name)
            if target is None or value is None:
                continue
            stmt = select(target.id).where(target.id == value)
            with storage_errors(f"{self.entity_name}.check_references"):
                found = (await self.db.execute(stmt)).scalar_one_or_none()
            if found is None:
                raise IntegrityError(f"{target.__name__} {value} does not exist", field=name)

    async def _load_row(self, entity_id: int, operation: str) -> ModelT | None:
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return await self._first(stmt, operation)

    async def _flush(self, operation: str) -> None:
        with storage_errors(operation):
            await self.db.flush()

    async def create(self, attrs: dict[str, Any]) -> ModelT:
        validate_attributes(self.model, attrs)
        await self._check_references(attrs, self.references)
        await self._check_unique(attrs, self._unique_columns())
        instance = self.model(**attrs)
        self.db.add(instance)
        await self._flush(f"{self.entity_name}.create")
        return instance

    async def update(self, entity_id: int, attrs: dict[str, Any]) -> ModelT:
        """
        Apply *attrs* to an existing row.  Only the supplied fields are
        validated, and only changed unique fields are re-checked.
        """
        instance = await self._load_row(entity_id, f"{self.entity_name}.update")
        if instance is None:
            raise NotFound(self.entity_name, entity_id)
        validate_attributes(self.model, attrs, partial=True)
        changed = {name for name in attrs if attrs[name] != getattr(instance, name)}
        await self._check_references(attrs, changed & set(self.references))
        await self._check_unique(
            attrs, [name for name in self._unique_columns() if name in changed], exclude_id=entity_id
        )
        for key, value in attrs.items():
            setattr(instance, key, value)
        await self._flush(f"{self.entity_name}.update")
        return instance

    async def delete(self, entity_id: int) -> bool:
        """Delete by id; False when absent.  Dependents go by storage cascade."""
        instance = await self._load_row(entity_id, f"{self.entity_name}.delete")
        if instance is None:
            return False
        await self.db.delete(instance)
        await self._flush(f"{self.entity_name}.delete")
        return True
