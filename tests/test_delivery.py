"""Test cases for the streamed /random-image endpoint."""

from pathlib import Path

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

NO_CACHE = "no-cache, no-store, must-revalidate"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def assert_no_cache(response) -> None:
    assert response.headers["cache-control"] == NO_CACHE
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"


# =============================================================================
# Tag filtering scenario (remote mobile image, local desktop image)
# =============================================================================


@pytest.fixture
def mixed_catalog(seed, local_root: Path) -> list[int]:
    (local_root / "b.png").write_bytes(PNG_BYTES)
    return seed(
        ("https://x.example/a.webp", ["mobile"]),
        ("/local/b.png", ["desktop"]),
    )


def test_desktop_tag_streams_local_file(
    client: TestClient, mixed_catalog: list[int], origin_calls: list[str]
) -> None:
    for _ in range(10):
        response = client.get("/random-image", params={"tag": "desktop"})

        assert response.status_code == status.HTTP_200_OK
        assert response.content == PNG_BYTES
        assert response.headers["content-type"] == "image/png"
        assert_no_cache(response)

    assert origin_calls == []


def test_mobile_tag_relays_origin_bytes(client: TestClient, mixed_catalog, use_origin, origin_calls) -> None:
    use_origin(lambda request: httpx.Response(200, headers={"content-type": "image/webp"}, content=b"RIFFwebp"))

    response = client.get("/random-image", params={"tag": "mobile"})

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"RIFFwebp"
    assert response.headers["content-type"] == "image/webp"
    assert_no_cache(response)
    assert origin_calls == ["https://x.example/a.webp"]


def test_unknown_tag_is_404(client: TestClient, mixed_catalog) -> None:
    response = client.get("/random-image", params={"tag": "tablet"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["error_code"] == "ImageNotFound"
    assert data["detail"] == {"tag": "tablet"}


def test_tag_match_is_case_sensitive(client: TestClient, mixed_catalog) -> None:
    response = client.get("/random-image", params={"tag": "Desktop"})

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_empty_catalog_is_404(client: TestClient) -> None:
    response = client.get("/random-image")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error_code"] == "ImageNotFound"


def test_empty_tag_param_means_no_filter(client: TestClient, seed, local_root: Path) -> None:
    (local_root / "only.png").write_bytes(PNG_BYTES)
    seed(("/local/only.png", []))

    response = client.get("/random-image?tag=")

    assert response.status_code == status.HTTP_200_OK
    assert response.content == PNG_BYTES


# =============================================================================
# Origin failures
# =============================================================================


@pytest.fixture
def remote_only(seed) -> list[int]:
    return seed(("https://x.example/a.webp", ["mobile"]))


def test_origin_timeout_is_server_error_without_image_body(client: TestClient, remote_only, use_origin) -> None:
    def timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    use_origin(timeout)

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.headers["content-type"] == "application/json"
    assert response.json()["error_code"] == "UpstreamTimeout"


def test_origin_connect_failure_is_server_error(client: TestClient, remote_only, use_origin) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    use_origin(refuse)

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error_code"] == "UpstreamError"


@pytest.mark.parametrize("upstream_status", [403, 404, 500, 503])
def test_origin_error_status_is_bad_gateway(client: TestClient, remote_only, use_origin, upstream_status) -> None:
    use_origin(
        lambda request: httpx.Response(
            upstream_status, headers={"content-type": "text/html"}, text="<html>origin error page</html>"
        )
    )

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    data = response.json()
    assert data["error_code"] == "UpstreamStatus"
    assert data["detail"] == {"upstream_status": upstream_status}
    assert "origin error page" not in response.text


def test_origin_redirect_is_not_followed(client: TestClient, remote_only, use_origin, origin_calls) -> None:
    use_origin(lambda request: httpx.Response(302, headers={"location": "https://elsewhere.example/z.png"}))

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert origin_calls == ["https://x.example/a.webp"]


def test_origin_declared_oversize_body_is_bad_gateway(client: TestClient, remote_only, use_origin) -> None:
    use_origin(
        lambda request: httpx.Response(200, headers={"content-type": "image/webp"}, content=b"x" * 100),
        max_body_bytes=10,
    )

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["error_code"] == "UpstreamBodyTooLarge"


def test_origin_without_content_type_falls_back(client: TestClient, remote_only, use_origin) -> None:
    use_origin(lambda request: httpx.Response(200, content=b"bytes"))

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"] == "application/octet-stream"


def test_origin_failure_mid_stream_ends_response(client: TestClient, remote_only, use_origin) -> None:
    async def broken_body():
        yield b"first-chunk"
        raise httpx.ReadError("connection reset by peer")

    use_origin(lambda request: httpx.Response(200, headers={"content-type": "image/webp"}, content=broken_body()))

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"first-chunk"


# =============================================================================
# Local store failures
# =============================================================================


def test_missing_local_file_is_404(client: TestClient, seed) -> None:
    seed(("/local/gone.png", []))

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error_code"] == "BlobNotFound"


def test_local_reference_cannot_escape_root(client: TestClient, seed, local_root: Path) -> None:
    (local_root.parent / "secret.png").write_bytes(b"top secret")
    seed(("/local/../secret.png", []))

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert b"top secret" not in response.content


def test_catalog_failure_is_500(client: TestClient, tmp_path: Path) -> None:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import NullPool

    from rangpic.core.dependencies import get_db
    from rangpic.main import app

    broken = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/catalog.db", poolclass=NullPool)
    maker = async_sessionmaker(broken, class_=AsyncSession)

    async def broken_db():
        async with maker() as session:
            yield session

    app.dependency_overrides[get_db] = broken_db

    response = client.get("/random-image")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error_code"] == "StorageError"
