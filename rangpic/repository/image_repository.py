"""Image catalog repository: random selection and tag enumeration."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rangpic.core.base_repository import BaseRepository
from rangpic.core.exceptions import ImageNotFoundError, StorageError
from rangpic.models.image import Image, ImageTag

logger = logging.getLogger(__name__)

# Connection failures from the async drivers can surface as plain OSError
# before SQLAlchemy gets to wrap them.
_STORAGE_FAILURES = (SQLAlchemyError, OSError)


class ImageRepository(BaseRepository[Image, int]):
    """Read side of the image catalog used by the delivery endpoints.

    Random selection happens in the database (``ORDER BY random() LIMIT 1``)
    so the catalog is never loaded into the process. Tag filtering is an exact,
    case-sensitive containment test.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ImageRepository with database session.

        Args:
            session: Async SQLAlchemy session
        """
        super().__init__(Image, session)

    async def pick_random(self, tag: str | None = None) -> Image:
        """Pick one image uniformly at random.

        Args:
            tag: Only consider images carrying exactly this tag

        Returns:
            The selected Image

        Raises:
            ImageNotFoundError: No image matches
            StorageError: The catalog could not be queried
        """
        query = select(self.model).order_by(func.random()).limit(1)
        if tag is not None:
            query = query.where(self.model.tag_links.any(ImageTag.tag == tag))

        try:
            result = await self.session.execute(query)
            image = result.scalars().first()
        except _STORAGE_FAILURES as e:
            logger.error("Random image query failed (tag=%r): %s", tag, e)
            raise StorageError() from e

        if image is None:
            raise ImageNotFoundError(tag)
        return image

    async def list_distinct_tags(self) -> list[str]:
        """Return every tag used in the catalog, deduplicated and sorted.

        Raises:
            StorageError: The catalog could not be queried
        """
        query = select(ImageTag.tag).distinct().order_by(ImageTag.tag)
        try:
            result = await self.session.execute(query)
        except _STORAGE_FAILURES as e:
            logger.error("Tag listing query failed: %s", e)
            raise StorageError() from e
        return list(result.scalars().all())

    async def url_exists(self, url: str) -> bool:
        """Check if an image with the given URL is already catalogued.

        Args:
            url: Remote URL or local reference

        Returns:
            True if image exists, False otherwise
        """
        result = await self.session.execute(
            select(self.model.id).where(self.model.url == url)
        )
        return result.scalar_one_or_none() is not None

    async def add(self, url: str, tags: list[str]) -> Image:
        """Insert an image together with its tag rows."""
        return await self.create(url=url, tag_links=[ImageTag(tag=t) for t in tags])
