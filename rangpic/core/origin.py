"""
Fetching image bytes from remote origins.

``OriginFetcher.fetch`` issues exactly one GET and hands back the open,
streaming response once the status line and headers are in. Failures are
mapped onto the delivery errors:

    timeout                      -> UpstreamTimeoutError
    connect / transport failure  -> UpstreamConnectionError
    status other than 200        -> UpstreamStatusError (body discarded)
    declared body over the limit -> UpstreamBodyTooLargeError

The timeout covers the whole fetch: a body still arriving when it runs out
is cut off and the stream ends. Nothing is retried.
"""

import logging
import math
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import anyio
import httpx

from rangpic.core.exceptions import (
    UpstreamBodyTooLargeError,
    UpstreamConnectionError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_CONTENT_TYPE", "OriginFetcher", "OriginResponse"]

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class OriginResponse:
    """A successful origin response whose body has not been read yet."""

    url: str
    content_type: str
    content_length: int | None
    max_body_bytes: int
    deadline: float = math.inf
    _response: httpx.Response | None = field(default=None, repr=False)

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Relay the body chunk by chunk as it arrives.

        Stops early (with a warning) once ``max_body_bytes`` have been relayed
        or the fetch deadline passes. Transport errors after the first byte
        propagate to the caller. The upstream response is always closed on
        the way out.
        """
        sent = 0
        try:
            if self._response is None:
                return
            chunks = self._response.aiter_bytes()
            while True:
                remaining = self.deadline - anyio.current_time()
                try:
                    with anyio.fail_after(max(remaining, 0)):
                        chunk = await anext(chunks)
                except StopAsyncIteration:
                    return
                except TimeoutError:
                    logger.warning("Origin body for %s not complete before the fetch deadline", self.url)
                    return
                sent += len(chunk)
                if sent > self.max_body_bytes:
                    logger.warning(
                        "Origin body for %s exceeded %d bytes, truncating", self.url, self.max_body_bytes
                    )
                    return
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._response is not None:
            response, self._response = self._response, None
            await response.aclose()


class OriginFetcher:
    """Single-shot GET against an image origin using a shared client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 15.0,
        max_body_bytes: int = 50 * 1024 * 1024,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.max_body_bytes = max_body_bytes

    async def fetch(self, url: str) -> OriginResponse:
        """GET ``url`` and return the streaming response.

        Raises:
            UpstreamTimeoutError: No response within the timeout
            UpstreamConnectionError: The origin could not be reached
            UpstreamStatusError: The origin answered with anything but 200
            UpstreamBodyTooLargeError: Declared Content-Length is over the limit
        """
        deadline = anyio.current_time() + self.timeout
        try:
            request = self.client.build_request("GET", url, timeout=self.timeout)
            with anyio.fail_after(self.timeout):
                response = await self.client.send(request, stream=True)
        except (httpx.TimeoutException, TimeoutError) as e:
            logger.error("Timed out after %ss fetching origin image %s", self.timeout, url)
            raise UpstreamTimeoutError(url, self.timeout) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Failed to fetch origin image %s: %r", url, e)
            raise UpstreamConnectionError(url) from e

        if response.status_code != httpx.codes.OK:
            await response.aclose()
            logger.error("Origin %s returned status %d", url, response.status_code)
            raise UpstreamStatusError(url, response.status_code)

        content_length = _parse_content_length(response.headers.get("content-length"))
        if content_length is not None and content_length > self.max_body_bytes:
            await response.aclose()
            logger.error(
                "Origin %s declared %d bytes, limit is %d", url, content_length, self.max_body_bytes
            )
            raise UpstreamBodyTooLargeError(url, self.max_body_bytes)

        return OriginResponse(
            url=url,
            content_type=response.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            content_length=content_length,
            max_body_bytes=self.max_body_bytes,
            deadline=deadline,
            _response=response,
        )


def _parse_content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
