"""
FastAPI dependency injection functions for database sessions and services.

Testing with Dependency Override:
    async def override_get_db():
        async with test_session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_origin_fetcher] = lambda: OriginFetcher(mock_client)
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rangpic.main_config import local_store_config, origin_config
from rangpic.repository.image_repository import ImageRepository
from rangpic.services.delivery import ImageDelivery

from .database import AsyncDBPool
from .local_store import LocalBlobStore
from .origin import OriginFetcher
from .rest_api import HttpxRestClientPool


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency for async database session.

    Provides a database session that automatically handles cleanup
    and rollback on errors.
    """
    async with AsyncDBPool.get_session() as session:
        yield session


def get_image_repository(session: Annotated[AsyncSession, Depends(get_db)]) -> ImageRepository:
    return ImageRepository(session)


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(local_store_config.root, local_store_config.default_content_type)


async def get_origin_fetcher() -> OriginFetcher:
    client = await HttpxRestClientPool.get_client()
    return OriginFetcher(client, timeout=origin_config.timeout, max_body_bytes=origin_config.max_body_bytes)


def get_image_delivery(
    blob_store: Annotated[LocalBlobStore, Depends(get_blob_store)],
    fetcher: Annotated[OriginFetcher, Depends(get_origin_fetcher)],
) -> ImageDelivery:
    return ImageDelivery(
        blob_store,
        fetcher,
        local_prefix=local_store_config.url_prefix,
        local_chunk_size=local_store_config.chunk_size,
    )


ImageRepositoryDep = Annotated[ImageRepository, Depends(get_image_repository)]
ImageDeliveryDep = Annotated[ImageDelivery, Depends(get_image_delivery)]
