"""Test cases for the filesystem blob store."""

import os
from pathlib import Path

import pytest

from rangpic.core.exceptions import BlobNotFoundError, BlobReadError
from rangpic.core.local_store import LocalBlobStore


@pytest.fixture
def store(local_root: Path) -> LocalBlobStore:
    return LocalBlobStore(local_root)


# =============================================================================
# Name resolution
# =============================================================================


def test_resolve_plain_and_nested_names(store: LocalBlobStore, local_root: Path) -> None:
    assert store.resolve("a.png") == local_root.resolve() / "a.png"
    assert store.resolve("sub/a.png") == local_root.resolve() / "sub" / "a.png"
    assert store.resolve("sub/../a.png") == local_root.resolve() / "a.png"


@pytest.mark.parametrize(
    "name",
    ["", "/etc/passwd", "../secret.png", "sub/../../secret.png", "..", ".", "a\x00.png"],
)
def test_resolve_rejects_names_outside_root(store: LocalBlobStore, name: str) -> None:
    with pytest.raises(BlobNotFoundError):
        store.resolve(name)


def test_resolve_rejects_symlink_escaping_root(store: LocalBlobStore, local_root: Path) -> None:
    outside = local_root.parent / "outside.png"
    outside.write_bytes(b"nope")
    os.symlink(outside, local_root / "link.png")

    with pytest.raises(BlobNotFoundError):
        store.resolve("link.png")


def test_content_type_guess_and_default(local_root: Path) -> None:
    store = LocalBlobStore(local_root, default_content_type="image/jpeg")

    assert store.guess_content_type("a.png") == "image/png"
    assert store.guess_content_type("no-extension") == "image/jpeg"


# =============================================================================
# Opening and streaming
# =============================================================================


@pytest.mark.anyio
async def test_open_streams_whole_file_in_chunks(store: LocalBlobStore, local_root: Path) -> None:
    payload = bytes(range(256)) * 10
    (local_root / "a.png").write_bytes(payload)

    blob = await store.open("a.png")
    chunks = [chunk async for chunk in blob.iter_bytes(100)]

    assert blob.size == len(payload)
    assert blob.content_type == "image/png"
    assert blob.modified_at.tzinfo is not None
    assert b"".join(chunks) == payload
    assert max(len(c) for c in chunks) == 100
    # Handle released once the stream is exhausted
    assert blob._file is None


@pytest.mark.anyio
async def test_open_missing_file(store: LocalBlobStore) -> None:
    with pytest.raises(BlobNotFoundError) as exc_info:
        await store.open("missing.png")

    assert exc_info.value.status_code == 404


@pytest.mark.anyio
async def test_open_directory_is_not_found(store: LocalBlobStore, local_root: Path) -> None:
    (local_root / "dir").mkdir()

    with pytest.raises(BlobNotFoundError):
        await store.open("dir")


@pytest.mark.anyio
@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
async def test_open_unreadable_file_is_read_error(store: LocalBlobStore, local_root: Path) -> None:
    path = local_root / "locked.png"
    path.write_bytes(b"data")
    path.chmod(0)

    try:
        with pytest.raises(BlobReadError) as exc_info:
            await store.open("locked.png")
    finally:
        path.chmod(0o644)

    assert exc_info.value.status_code == 500


@pytest.mark.anyio
async def test_aclose_is_idempotent(store: LocalBlobStore, local_root: Path) -> None:
    (local_root / "a.png").write_bytes(b"data")

    blob = await store.open("a.png")
    await blob.aclose()
    await blob.aclose()

    assert [chunk async for chunk in blob.iter_bytes(10)] == []
