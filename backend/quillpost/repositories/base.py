"""
Quillpost Backend — Generic SQL Repository
============================================

What:  CRUD and offset-pagination queries shared by every entity repository.
How:   Async SQLAlchemy 2.0 select/delete statements against one mapped model.
Who:   Subclassed by BlogRepository and PostRepository.

Eager vs. plain reads:
    Relationships are declared lazy="raise", so a plain read never touches
    a relation. The *_with_eager_relationships variants add the subclass's
    selectinload() options and are the only reads allowed to follow them.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.database import Base
from quillpost.exceptions import ValidationError
from quillpost.pagination import PageRequest

ModelT = TypeVar("ModelT", bound=Base)
RefT = TypeVar("RefT", bound=Base)


class SqlRepository(Generic[ModelT]):
    """Primary store access for one entity type."""

    model: Type[ModelT]
    sortable_fields: Tuple[str, ...] = ("id",)

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Hooks ─────────────────────────────────────────────────────────────

    def eager_options(self) -> Sequence[Any]:
        """Loader options for the eager reads (selectinload per relation)."""
        return ()

    async def resolve_references(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace relation reference dicts ({"id": ...}) with loaded entities.

        Only keys present in `values` are resolved, so a merge-patch that does
        not mention a relation leaves it alone.
        """
        return values

    # ── Writes ────────────────────────────────────────────────────────────

    async def save(self, entity: ModelT) -> ModelT:
        """Insert or update; flush so the database assigns the id."""
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def delete_by_id(self, entity_id: int) -> bool:
        """Delete the row if present. Returns whether a row was removed."""
        result = await self.db.execute(delete(self.model).where(self.model.id == entity_id))
        return (result.rowcount or 0) > 0

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_one_with_eager_relationships(self, entity_id: int) -> Optional[ModelT]:
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .options(*self.eager_options())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(self, page: PageRequest) -> List[ModelT]:
        result = await self.db.execute(self._paged(select(self.model), page))
        return list(result.scalars().all())

    async def find_all_with_eager_relationships(self, page: PageRequest) -> List[ModelT]:
        stmt = self._paged(select(self.model).options(*self.eager_options()), page)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())

    async def exists_by_id(self, entity_id: int) -> bool:
        result = await self.db.execute(
            select(self.model.id).where(self.model.id == entity_id)
        )
        return result.scalar_one_or_none() is not None

    # ── Helpers ───────────────────────────────────────────────────────────

    def _paged(self, stmt, page: PageRequest):
        """Apply ORDER BY / OFFSET / LIMIT. Unsorted pages are ordered by id."""
        orders = []
        for field, direction in page.sort:
            column = getattr(self.model, field)
            orders.append(column.desc() if direction == "desc" else column.asc())
        if not page.sort:
            orders.append(self.model.id.asc())
        return stmt.order_by(*orders).offset(page.offset).limit(page.size)

    async def _reference(self, ref_model: Type[RefT], ref: Dict[str, Any], field: str) -> RefT:
        """Load the entity a reference points at, or reject the request."""
        ref_id = ref.get("id") if isinstance(ref, dict) else None
        if ref_id is None:
            raise ValidationError(message=f"'{field}' reference must carry an id", field=field)
        entity = await self.db.get(ref_model, ref_id)
        if entity is None:
            raise ValidationError(
                message=f"{ref_model.__name__} with ID '{ref_id}' referenced by '{field}' does not exist",
                field=field,
            )
        return entity
