"""Exception handling package for FastAPI application.

Provides custom exception hierarchy and handlers for standardized error responses.
"""

from .delivery_errors import (
    BlobNotFoundError,
    BlobReadError,
    ImageNotFoundError,
    StorageError,
    UpstreamBodyTooLargeError,
    UpstreamConnectionError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)
from .handlers import register_exception_handlers
from .http_exceptions import (
    AppError,
    BadGatewayError,
    ClientError,
    ErrorResponse,
    InternalServerError,
    NotFoundError,
    ServerError,
    ServiceUnavailableError,
)

__all__ = [
    # Base exceptions
    "AppError",
    "BadGatewayError",
    # Delivery failures
    "BlobNotFoundError",
    "BlobReadError",
    # Client exceptions (4xx)
    "ClientError",
    # Models
    "ErrorResponse",
    "ImageNotFoundError",
    # Server Error (5xx)
    "InternalServerError",
    "NotFoundError",
    "ServerError",
    "ServiceUnavailableError",
    "StorageError",
    "UpstreamBodyTooLargeError",
    "UpstreamConnectionError",
    "UpstreamStatusError",
    "UpstreamTimeoutError",
    # Handlers
    "register_exception_handlers",
]
