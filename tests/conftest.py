"""Shared fixtures: a throwaway SQLite catalog, a local store and a fake origin."""

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from rangpic.core.dependencies import get_blob_store, get_db, get_origin_fetcher
from rangpic.core.local_store import LocalBlobStore
from rangpic.core.origin import OriginFetcher
from rangpic.main import app
from rangpic.models import Base, Image, ImageTag

OriginHandler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "catalog.db"


@pytest.fixture
def seed(db_path: Path) -> Iterator[Callable[..., list[int]]]:
    """Create the schema and return a helper inserting ``(url, tags)`` records."""
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)

    def _seed(*records: tuple[str, list[str]]) -> list[int]:
        with Session(engine) as session:
            images = [
                Image(url=url, tag_links=[ImageTag(tag=tag) for tag in tags]) for url, tags in records
            ]
            session.add_all(images)
            session.commit()
            return [image.id for image in images]

    yield _seed
    engine.dispose()


@pytest.fixture
def session_maker(db_path: Path, seed) -> async_sessionmaker[AsyncSession]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def local_root(tmp_path: Path) -> Path:
    root = tmp_path / "local_images"
    root.mkdir()
    return root


@pytest.fixture
def origin_calls() -> list[str]:
    return []


@pytest.fixture
def use_origin(origin_calls: list[str]) -> Callable[..., None]:
    """Route outbound fetches to ``handler`` through ``httpx.MockTransport``."""

    def _use(handler: OriginHandler, **fetcher_kwargs) -> None:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            origin_calls.append(str(request.url))
            return handler(request)

        async def override_get_origin_fetcher() -> OriginFetcher:
            client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
            return OriginFetcher(client, **fetcher_kwargs)

        app.dependency_overrides[get_origin_fetcher] = override_get_origin_fetcher

    return _use


@pytest.fixture
def client(
    session_maker: async_sessionmaker[AsyncSession],
    local_root: Path,
    use_origin: Callable[..., None],
) -> Iterator[TestClient]:
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: LocalBlobStore(local_root)

    def unexpected_origin(request: httpx.Request) -> httpx.Response:
        return httpx.Response(599, text="origin not configured for this test")

    use_origin(unexpected_origin)

    yield TestClient(app)
    app.dependency_overrides.clear()
