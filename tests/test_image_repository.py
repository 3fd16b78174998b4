"""Test cases for ImageRepository against a SQLite catalog."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rangpic.core.exceptions import ImageNotFoundError
from rangpic.repository import ImageRepository


@pytest.mark.anyio
async def test_pick_random_returns_catalog_member(seed, session_maker: async_sessionmaker[AsyncSession]) -> None:
    ids = set(seed(("https://x.example/1.png", ["a"]), ("https://x.example/2.png", ["b"]), ("/local/3.png", [])))

    async with session_maker() as session:
        repo = ImageRepository(session)
        picked = {(await repo.pick_random()).id for _ in range(20)}

    assert picked <= ids


@pytest.mark.anyio
async def test_pick_random_filters_by_tag(seed, session_maker: async_sessionmaker[AsyncSession]) -> None:
    _, desktop_id, both_id = seed(
        ("https://x.example/m.png", ["mobile"]),
        ("https://x.example/d.png", ["desktop"]),
        ("https://x.example/md.png", ["mobile", "desktop"]),
    )

    async with session_maker() as session:
        repo = ImageRepository(session)
        picked = {(await repo.pick_random("desktop")).id for _ in range(20)}

    assert picked <= {desktop_id, both_id}


@pytest.mark.anyio
async def test_pick_random_loads_tags(seed, session_maker: async_sessionmaker[AsyncSession]) -> None:
    seed(("https://x.example/1.png", ["nature", "desktop"]))

    async with session_maker() as session:
        image = await ImageRepository(session).pick_random()

    assert image.tags == ["nature", "desktop"]
    assert image.to_dict()["url"] == "https://x.example/1.png"


@pytest.mark.anyio
async def test_pick_random_no_match(seed, session_maker: async_sessionmaker[AsyncSession]) -> None:
    seed(("https://x.example/1.png", ["Mobile"]))

    async with session_maker() as session:
        repo = ImageRepository(session)
        with pytest.raises(ImageNotFoundError) as exc_info:
            await repo.pick_random("mobile")

    assert exc_info.value.tag == "mobile"


@pytest.mark.anyio
async def test_pick_random_empty_catalog(session_maker: async_sessionmaker[AsyncSession]) -> None:
    async with session_maker() as session:
        with pytest.raises(ImageNotFoundError):
            await ImageRepository(session).pick_random()


@pytest.mark.anyio
async def test_list_distinct_tags(seed, session_maker: async_sessionmaker[AsyncSession]) -> None:
    seed(
        ("https://x.example/1.png", ["b", "a"]),
        ("https://x.example/2.png", ["a", "c"]),
        ("https://x.example/3.png", []),
    )

    async with session_maker() as session:
        tags = await ImageRepository(session).list_distinct_tags()

    assert tags == ["a", "b", "c"]


@pytest.mark.anyio
async def test_add_and_url_exists(session_maker: async_sessionmaker[AsyncSession]) -> None:
    async with session_maker() as session:
        repo = ImageRepository(session)
        assert await repo.url_exists("/local/new.png") is False

        image = await repo.add("/local/new.png", ["desktop"])
        await repo.commit()

        assert image.id is not None
        assert await repo.url_exists("/local/new.png") is True
        assert await repo.count() == 1
