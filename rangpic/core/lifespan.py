"""
Application lifespan management for FastAPI.

Startup:
    - Initialize the catalog connection pool and create missing tables
    - Make sure the local image directory exists
    - Import the seed catalog file when the catalog is still empty
    - Initialize the shared HTTP client for origin fetches

Shutdown:
    - Dispose the database pool and the HTTP client
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rangpic.core.database import AsyncDBPool
from rangpic.core.rest_api import ClientConfig, HttpxRestClientPool
from rangpic.main_config import catalog_config, database_config, local_store_config, origin_config
from rangpic.repository.image_repository import ImageRepository
from rangpic.services.catalog_import import import_catalog

logger = logging.getLogger(__name__)


async def seed_catalog_if_empty() -> None:
    """Run the one-time catalog import when the catalog has no rows yet."""
    if not catalog_config.import_on_startup:
        return
    async with AsyncDBPool.get_session() as session:
        if await ImageRepository(session).count() > 0:
            return
        if not catalog_config.seed_file.is_file():
            logger.info("Catalog is empty and no seed file at %s", catalog_config.seed_file)
            return
        await import_catalog(session, catalog_config.seed_file)


@asynccontextmanager
async def app_lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events."""
    await AsyncDBPool.init(database_config)
    await AsyncDBPool.create_all()

    local_store_config.root.mkdir(parents=True, exist_ok=True)
    await seed_catalog_if_empty()

    HttpxRestClientPool.configure(ClientConfig.from_origin_config(origin_config))
    await HttpxRestClientPool.get_client()

    try:
        yield
    finally:
        await AsyncDBPool.dispose()
        await HttpxRestClientPool.dispose()
