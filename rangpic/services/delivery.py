"""
Turning a selected catalog record into a streamed HTTP response.

Records whose URL starts with the local marker (``/local/`` by default) are
read from the local blob store; anything else is relayed from its origin.
Both branches open their source before the response is built, so every
failure up to the first byte becomes a regular error response. Once bytes are
flowing a failure can only be logged and the stream ended.
"""

import logging
from collections.abc import AsyncIterator
from email.utils import format_datetime

import httpx
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from rangpic.core.local_store import LocalBlobStore
from rangpic.core.origin import OriginFetcher
from rangpic.models.image import Image

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


async def _relay(chunks: AsyncIterator[bytes], location: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in chunks:
            yield chunk
    except (httpx.HTTPError, OSError) as e:
        logger.warning("Streaming %s to client aborted mid-transfer: %r", location, e)


class ImageDelivery:
    """Streams the bytes behind an ``Image`` record to the caller."""

    def __init__(
        self,
        blob_store: LocalBlobStore,
        fetcher: OriginFetcher,
        local_prefix: str = "/local/",
        local_chunk_size: int = 64 * 1024,
    ) -> None:
        self.blob_store = blob_store
        self.fetcher = fetcher
        self.local_prefix = local_prefix
        self.local_chunk_size = local_chunk_size

    def local_name(self, url: str) -> str | None:
        """Return the blob name for a local reference, None for remote URLs."""
        if url.startswith(self.local_prefix):
            return url[len(self.local_prefix):]
        return None

    async def stream(self, image: Image) -> StreamingResponse:
        """Open the image source and wrap it in a no-cache streaming response.

        Raises:
            BlobNotFoundError, BlobReadError: local branch
            UpstreamTimeoutError, UpstreamConnectionError,
            UpstreamStatusError, UpstreamBodyTooLargeError: remote branch
        """
        name = self.local_name(image.url)
        if name is not None:
            return await self.stream_local(name, headers=NO_CACHE_HEADERS)

        origin = await self.fetcher.fetch(image.url)
        logger.info("Relaying image %d from %s (%s)", image.id, image.url, origin.content_type)
        return StreamingResponse(
            _relay(origin.iter_bytes(), image.url),
            media_type=origin.content_type,
            headers=NO_CACHE_HEADERS,
            background=BackgroundTask(origin.aclose),
        )

    async def stream_local(self, name: str, headers: dict[str, str] | None = None) -> StreamingResponse:
        """Stream a file from the local blob store."""
        blob = await self.blob_store.open(name)
        logger.info("Serving local image %s (%d bytes)", blob.name, blob.size)
        return StreamingResponse(
            _relay(blob.iter_bytes(self.local_chunk_size), blob.name),
            media_type=blob.content_type,
            headers={"Last-Modified": format_datetime(blob.modified_at, usegmt=True), **(headers or {})},
            background=BackgroundTask(blob.aclose),
        )
