"""
Generic repository base class for SQLAlchemy models with async operations.

Features:
    - Type-safe operations: BaseRepository[ModelType, IDType]
    - Create and count
    - Automatic rollback on write errors

Usage:
    class ImageRepository(BaseRepository[Image, int]):
        async def url_exists(self, url: str) -> bool:
            result = await self.session.execute(
                select(Image.id).where(Image.url == url)
            )
            return result.scalar_one_or_none() is not None

    async with AsyncDBPool.get_session() as session:
        repo = ImageRepository(session)
        image = await repo.create(url="https://example.com/a.webp")
        await repo.commit()
"""

from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

__all__ = ["BaseRepository"]

# Type variables for SQLAlchemy model and ID type
ModelType = TypeVar("ModelType")
IDType = TypeVar("IDType", int, str)


class BaseRepository(Generic[ModelType, IDType], ABC):
    """Base repository with async operations for SQLAlchemy models."""

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        """Create a new record.

        Args:
            **kwargs: Field values

        Returns:
            Created instance
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        else:
            return instance

    async def count(self, **filters: Any) -> int:
        """Count records.

        Args:
            **filters: Optional filters

        Returns:
            Total count
        """
        query = select(func.count()).select_from(self.model)

        for field, value in filters.items():
            query = query.where(getattr(self.model, field) == value)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def commit(self) -> None:
        """Commit current transaction."""
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
