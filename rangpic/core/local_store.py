"""
Filesystem-backed store of downloaded images.

Files live flat or nested under one root directory and are addressed by their
path relative to that root. Every name is resolved and checked against the
root before anything is opened, so ``..`` segments, absolute names and
symlinks pointing outside the root are treated as missing files.

Usage:
    store = LocalBlobStore(Path("/app/local_images"))
    blob = await store.open("wallpapers/b.webp")
    async for chunk in blob.iter_bytes(64 * 1024):
        ...
"""

import logging
import mimetypes
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import anyio

from rangpic.core.exceptions import BlobNotFoundError, BlobReadError

logger = logging.getLogger(__name__)

__all__ = ["LocalBlob", "LocalBlobStore"]


@dataclass
class LocalBlob:
    """An opened local file. Owns the file handle until ``aclose``."""

    name: str
    path: Path
    size: int
    modified_at: datetime
    content_type: str
    _file: anyio.AsyncFile | None = field(default=None, repr=False)

    async def iter_bytes(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield the file contents in chunks, closing the handle at the end."""
        try:
            while self._file is not None:
                chunk = await self._file.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._file is not None:
            file, self._file = self._file, None
            await file.aclose()


class LocalBlobStore:
    """Read-only view over the local image directory."""

    def __init__(self, root: Path, default_content_type: str = "application/octet-stream") -> None:
        self.root = Path(root).resolve()
        self.default_content_type = default_content_type

    def resolve(self, name: str) -> Path:
        """Map ``name`` to a path inside the root.

        Raises:
            BlobNotFoundError: The name is empty, absolute, or escapes the root
        """
        if not name or name.startswith(("/", "\\")) or "\x00" in name:
            raise BlobNotFoundError(name)

        candidate = (self.root / name).resolve()
        if candidate == self.root or not candidate.is_relative_to(self.root):
            logger.warning("Rejected local image name outside store root: %r", name)
            raise BlobNotFoundError(name)
        return candidate

    def guess_content_type(self, name: str) -> str:
        content_type, _ = mimetypes.guess_type(name)
        return content_type or self.default_content_type

    async def open(self, name: str) -> LocalBlob:
        """Open a local image for streaming.

        Raises:
            BlobNotFoundError: No regular file by that name beneath the root
            BlobReadError: The file exists but could not be opened
        """
        path = self.resolve(name)
        try:
            file = await anyio.open_file(path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise BlobNotFoundError(name) from e
        except OSError as e:
            logger.error("Failed to open local image %s: %s", path, e)
            raise BlobReadError(name) from e

        try:
            stat = await anyio.Path(path).stat()
        except OSError as e:
            await file.aclose()
            logger.error("Failed to stat local image %s: %s", path, e)
            raise BlobReadError(name) from e

        return LocalBlob(
            name=name,
            path=path,
            size=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, UTC),
            content_type=self.guess_content_type(name),
            _file=file,
        )
