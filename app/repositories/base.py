"""
Base repository.

Generic CRUD operations for all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic CRUD operations.

    Provides async database operations for any SQLAlchemy model.
    Repositories flush, they never commit: the unit of work belongs
    to the calling service.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class AccountRepository(BaseRepository[Account]):
            def __init__(self, session: AsyncSession):
                super().__init__(Account, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_for_update(self, id: int) -> ModelType | None:
        """
        Get entity by ID with a row lock.

        Reloads attributes even if the entity is already in the identity
        map so that decisions are made on the locked row's values.

        Args:
            id: Entity ID

        Returns:
            Locked entity or None if not found
        """
        # Pending changes would be overwritten by populate_existing
        await self.session.flush()
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(
        self,
        limit: int | None = None,
        offset: int | None = None,
        **filters: Any,
    ) -> list[ModelType]:
        """
        Find all entities matching filters.

        Args:
            limit: Max number of results
            offset: Number of results to skip
            **filters: Column filters

        Returns:
            List of matching entities ordered by ID
        """
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id)

        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by(
        self, **filters: Any
    ) -> list[ModelType]:
        """
        Find entities by filters.

        Args:
            **filters: Column filters

        Returns:
            List of matching entities
        """
        return await self.find_all(**filters)

    async def find_chunk_after(
        self,
        after_id: int,
        limit: int,
        for_update: bool = False,
        **filters: Any,
    ) -> list[ModelType]:
        """
        Keyset page: next `limit` entities with ID greater than after_id.

        Args:
            after_id: Last ID of the previous chunk (0 for the first)
            limit: Chunk size
            for_update: Lock the returned rows
            **filters: Column filters

        Returns:
            Entities ordered by ID
        """
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .where(self.model.id > after_id)
            .order_by(self.model.id)
            .limit(limit)
        )
        if for_update:
            await self.session.flush()
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0