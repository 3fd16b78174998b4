"""
Shared httpx client pool for outbound requests to image origins.

One ``httpx.AsyncClient`` is created lazily and shared by every request so
connections to popular image hosts are reused. It is configured from
``OriginConfig``:

    - a single 15 second budget for connect, read, write and pool waits
    - no transport-level retries (a failed fetch fails the request)
    - redirects are not followed
    - HTTP/2 when the origin supports it

Usage:
    client = await HttpxRestClientPool.get_client()
    request = client.build_request("GET", url)
    response = await client.send(request, stream=True)

    # At shutdown (in lifespan)
    await HttpxRestClientPool.dispose()
"""

import asyncio

import httpx
from pydantic import BaseModel, Field

from rangpic.main_config import OriginConfig

__all__ = [
    "ClientConfig",
    "HttpxRestClientPool",
]


class TimeoutConfig(BaseModel):
    """HTTP client timeout settings."""

    connect: float = Field(default=15.0, description="Connection timeout (seconds)")
    read: float = Field(default=15.0, description="Read timeout (seconds)")
    write: float = Field(default=15.0, description="Write timeout (seconds)")
    pool: float = Field(default=15.0, description="Pool timeout (seconds)")

    def to_httpx_timeout(self) -> httpx.Timeout:
        """Convert to httpx.Timeout."""
        return httpx.Timeout(**self.model_dump())


class PoolConfig(BaseModel):
    """Connection pool settings."""

    max_connections: int = Field(default=100, description="Max total connections")
    max_keepalive: int = Field(default=20, description="Max idle connections")
    keepalive_expiry: float = Field(default=30.0, description="Idle connection TTL (seconds)")


class ClientConfig(BaseModel):
    """HTTP client configuration."""

    timeout: TimeoutConfig = Field(default_factory=TimeoutConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    retries: int = Field(default=0, description="Transport retry attempts on connect failure")
    http2: bool = Field(default=True, description="Enable HTTP/2")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=False, description="Follow redirects")
    user_agent: str = Field(default="rangpic/0.1")

    @classmethod
    def from_origin_config(cls, config: OriginConfig) -> "ClientConfig":
        return cls(
            timeout=TimeoutConfig(
                connect=config.timeout, read=config.timeout, write=config.timeout, pool=config.timeout
            ),
            pool=PoolConfig(
                max_connections=config.max_connections,
                max_keepalive=config.max_keepalive,
                keepalive_expiry=config.keepalive_expiry,
            ),
            http2=config.http2,
            verify_ssl=config.verify_ssl,
            follow_redirects=config.follow_redirects,
            user_agent=config.user_agent,
        )


class HttpxRestClientPool:
    """Singleton HTTP client pool with connection reuse."""

    _client: httpx.AsyncClient | None = None
    _config: ClientConfig = ClientConfig()
    _lock: asyncio.Lock | None = None

    @classmethod
    def _get_lock(cls) -> asyncio.Lock:
        """Get or create lock for current event loop."""
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    def configure(cls, config: ClientConfig | None = None) -> None:
        """Set custom client configuration."""
        if config is not None:
            cls._config = config

    @classmethod
    async def get_client(cls) -> httpx.AsyncClient:
        """Get shared HTTP client (async-safe)."""
        if cls._client is None:
            async with cls._get_lock():
                if cls._client is None:
                    limits = httpx.Limits(
                        max_connections=cls._config.pool.max_connections,
                        max_keepalive_connections=cls._config.pool.max_keepalive,
                        keepalive_expiry=cls._config.pool.keepalive_expiry,
                    )

                    transport = httpx.AsyncHTTPTransport(
                        retries=cls._config.retries,
                        http2=cls._config.http2,
                        verify=cls._config.verify_ssl,
                        limits=limits,
                    )

                    cls._client = httpx.AsyncClient(
                        transport=transport,
                        timeout=cls._config.timeout.to_httpx_timeout(),
                        follow_redirects=cls._config.follow_redirects,
                        headers={"User-Agent": cls._config.user_agent},
                    )
        return cls._client

    @classmethod
    async def dispose(cls) -> None:
        """Close client and release resources."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None
            cls._lock = None
