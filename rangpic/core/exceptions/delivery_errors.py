"""Failures raised while selecting and delivering an image.

Each class pins the status code and ``error_code`` the caller sees, so the
catalog, local store and origin fetcher can raise them directly and the
registered ``AppError`` handler renders them.

    ImageNotFoundError          404  ImageNotFound
    BlobNotFoundError           404  BlobNotFound
    StorageError                500  StorageError
    BlobReadError               500  BlobReadError
    UpstreamTimeoutError        500  UpstreamTimeout
    UpstreamConnectionError     500  UpstreamError
    UpstreamStatusError         502  UpstreamStatus
    UpstreamBodyTooLargeError   502  UpstreamBodyTooLarge
"""

from typing import Any

from .http_exceptions import BadGatewayError, InternalServerError, NotFoundError


class ImageNotFoundError(NotFoundError):
    """No catalog record matches the requested tag."""

    def __init__(self, tag: str | None = None) -> None:
        detail: dict[str, Any] | None = {"tag": tag} if tag is not None else None
        message = f"No image found with tag '{tag}'" if tag is not None else "The catalog is empty"
        super().__init__(message, "ImageNotFound", detail)
        self.tag = tag


class BlobNotFoundError(NotFoundError):
    """The named local file does not exist beneath the store root."""

    def __init__(self, name: str) -> None:
        super().__init__("Local image not found", "BlobNotFound", {"name": name})
        self.name = name


class StorageError(InternalServerError):
    """The catalog database could not be queried."""

    def __init__(self, message: str = "Image catalog is unavailable") -> None:
        super().__init__(message, "StorageError")


class BlobReadError(InternalServerError):
    """A local file exists but could not be read."""

    def __init__(self, name: str) -> None:
        super().__init__("Local image could not be read", "BlobReadError", {"name": name})
        self.name = name


class UpstreamTimeoutError(InternalServerError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__("Timed out fetching image from origin", "UpstreamTimeout", {"timeout": timeout})
        self.url = url


class UpstreamConnectionError(InternalServerError):
    def __init__(self, url: str) -> None:
        super().__init__("Could not fetch image from origin", "UpstreamError")
        self.url = url


class UpstreamStatusError(BadGatewayError):
    """Origin answered with a non-200 status. Its body is never forwarded."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(
            f"Origin returned status {status_code}",
            "UpstreamStatus",
            {"upstream_status": status_code},
        )
        self.url = url
        self.upstream_status = status_code


class UpstreamBodyTooLargeError(BadGatewayError):
    def __init__(self, url: str, limit: int) -> None:
        super().__init__("Origin image exceeds the size limit", "UpstreamBodyTooLarge", {"limit": limit})
        self.url = url
