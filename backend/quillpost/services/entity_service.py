"""
Quillpost Backend — Entity Service (Business Logic Orchestrator)
==================================================================

What:  CRUD + search orchestration shared by the Blog and Post verticals.
How:   Composes a SQL repository (primary store), a mapper, a search
       repository (derived index) and the IndexSynchronizer.
Who:   Subclassed by BlogService and PostService; called by route handlers.

Write Flow (save / update / partial_update / delete):
    ┌──────────┐    ┌─────────────┐    ┌──────────┐    ┌──────────────┐
    │  Route   │───▶│  Resolve    │───▶│  Commit  │───▶│  Mirror to   │
    │  (DTO)   │    │  refs+apply │    │  (SQL)   │    │  index       │
    └──────────┘    └─────────────┘    └──────────┘    └──────────────┘

    The primary write commits first. If the index step then fails (inline
    mode), SearchIndexError propagates and the committed row stays: the
    two stores disagree until the record is re-saved or reindexed.

Error Handling Strategy:
    SQLAlchemy failures are wrapped in DatabaseError (generic message, type
    logged). Our own exceptions propagate as-is.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Generic, List, Tuple, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.exceptions import DatabaseError, NotFoundError
from quillpost.pagination import PageRequest
from quillpost.repositories.base import SqlRepository
from quillpost.search.repositories import SearchRepository
from quillpost.services.index_sync import IndexSynchronizer
from quillpost.services.mappers import EntityMapper

logger = logging.getLogger(__name__)

DtoT = TypeVar("DtoT", bound=BaseModel)


class EntityService(Generic[DtoT]):
    """
    Business logic layer for one entity type.

    Stateless apart from its collaborators: the database session is passed
    to every call, as routes receive one per request.
    """

    entity_label: str = "Entity"
    repository_class: Type[SqlRepository]

    def __init__(
        self,
        mapper: EntityMapper,
        search_repository: SearchRepository,
        index_sync: IndexSynchronizer,
    ):
        self.mapper = mapper
        self.search_repository = search_repository
        self.index_sync = index_sync

    def repository(self, db: AsyncSession) -> SqlRepository:
        return self.repository_class(db)

    # ── Writes ────────────────────────────────────────────────────────────

    async def save(self, db: AsyncSession, dto: DtoT) -> DtoT:
        """
        Create a new record from a DTO without id.

        Raises:
            ValidationError: a relation reference points at a missing row
            SearchIndexError: inline index write failed (row is committed)
        """
        logger.debug("Request to save %s : %s", self.entity_label, dto)
        repo = self.repository(db)
        async with self._primary_store("save"):
            values = await repo.resolve_references(dto.model_dump(exclude={"id"}))
            entity = await repo.save(self.mapper.to_entity(values))
            await db.commit()
        logger.info("%s %s created", self.entity_label, entity.id)
        await self.index_sync.upsert(self.search_repository, self.mapper.to_document(entity))
        return self.mapper.to_dto(entity, eager=True)

    async def update(self, db: AsyncSession, dto: DtoT) -> DtoT:
        """Replace every mutable field of an existing record."""
        logger.debug("Request to update %s : %s", self.entity_label, dto)
        return await self._write(db, dto.id, dto.model_dump(exclude={"id"}), "update")

    async def partial_update(self, db: AsyncSession, entity_id: int, patch: BaseModel) -> DtoT:
        """
        Merge-patch an existing record.

        Only fields the client sent are applied; null on a required field is
        ignored, null on a relation clears it.
        """
        logger.debug("Request to partially update %s : %s", self.entity_label, patch)
        values = patch.model_dump(exclude_unset=True, exclude={"id"})
        return await self._write(db, entity_id, values, "partial_update")

    async def delete(self, db: AsyncSession, entity_id: int) -> None:
        """Delete by id. Deleting a missing id is not an error."""
        logger.debug("Request to delete %s : %s", self.entity_label, entity_id)
        async with self._primary_store("delete"):
            removed = await self.repository(db).delete_by_id(entity_id)
            await db.commit()
        if removed:
            logger.info("%s %s deleted", self.entity_label, entity_id)
        await self.index_sync.delete(self.search_repository, entity_id)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_all(self, db: AsyncSession, page: PageRequest) -> List[DtoT]:
        logger.debug("Request to get all %ss", self.entity_label)
        async with self._primary_store("find_all"):
            entities = await self.repository(db).find_all(page)
        return [self.mapper.to_dto(e, eager=False) for e in entities]

    async def find_all_with_eager_relationships(
        self, db: AsyncSession, page: PageRequest
    ) -> List[DtoT]:
        logger.debug("Request to get all %ss with eager relationships", self.entity_label)
        async with self._primary_store("find_all"):
            entities = await self.repository(db).find_all_with_eager_relationships(page)
        return [self.mapper.to_dto(e, eager=True) for e in entities]

    async def count_all(self, db: AsyncSession) -> int:
        async with self._primary_store("count"):
            return await self.repository(db).count()

    async def search_count(self) -> int:
        """Document count of the index; may differ from count_all()."""
        return await self.search_repository.count()

    async def find_one(self, db: AsyncSession, entity_id: int) -> DtoT:
        """
        Raises:
            NotFoundError: no row with this id (→ 404)
        """
        logger.debug("Request to get %s : %s", self.entity_label, entity_id)
        async with self._primary_store("find_one"):
            entity = await self.repository(db).find_one_with_eager_relationships(entity_id)
        if entity is None:
            raise NotFoundError(resource=self.entity_label, resource_id=str(entity_id))
        return self.mapper.to_dto(entity, eager=True)

    async def exists(self, db: AsyncSession, entity_id: int) -> bool:
        async with self._primary_store("exists"):
            return await self.repository(db).exists_by_id(entity_id)

    async def search(self, query: str, page: PageRequest) -> Tuple[List[DtoT], int]:
        """
        Search the index; returns one page of DTOs and the total hit count.

        Results reflect the index, which may lag the primary store.
        """
        logger.debug("Request to search for a page of %ss for query %s", self.entity_label, query)
        result = await self.search_repository.search(query, page)
        return [self.mapper.from_document(doc) for doc in result.documents], result.total

    # ── Internals ─────────────────────────────────────────────────────────

    async def _write(
        self, db: AsyncSession, entity_id: int, values: Dict[str, Any], operation: str
    ) -> DtoT:
        repo = self.repository(db)
        async with self._primary_store(operation):
            entity = await repo.find_one_with_eager_relationships(entity_id)
            if entity is None:
                raise NotFoundError(resource=self.entity_label, resource_id=str(entity_id))
            values = await repo.resolve_references(values)
            self.mapper.apply(entity, values)
            entity = await repo.save(entity)
            await db.commit()
        logger.info("%s %s updated (%s)", self.entity_label, entity.id, operation)
        await self.index_sync.upsert(self.search_repository, self.mapper.to_document(entity))
        return self.mapper.to_dto(entity, eager=True)

    @asynccontextmanager
    async def _primary_store(self, operation: str):
        """Translate SQLAlchemy failures into DatabaseError."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(
                "Database error during %s %s: %s",
                self.entity_label,
                operation,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message=f"Could not {operation.replace('_', ' ')} the {self.entity_label.lower()}. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e
