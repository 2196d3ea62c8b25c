import httpx
import pytest

from app.core.errors import UploadError, ValidationError
from app.core.storage import StorageClient, build_object_path


def _client(handler):
    return StorageClient(
        base_url="https://project.supabase.test",
        service_key="service-key",
        bucket="media",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def test_object_paths_are_unique_and_keep_folder():
    first = build_object_path("status_images", "image", "jpg")
    second = build_object_path("status_images", "image", "jpg")

    assert first.startswith("status_images/image_")
    assert first.endswith(".jpg")
    assert first != second


async def test_upload_puts_bytes_and_returns_public_url():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"Key": "media/status_images/a.jpg"})

    storage = _client(handler)

    url = await storage.upload(b"jpeg-bytes", "status_images/a.jpg", "image/jpeg")

    assert url == "https://project.supabase.test/storage/v1/object/public/media/status_images/a.jpg"
    request = requests[0]
    assert request.method == "PUT"
    assert request.url.path == "/storage/v1/object/media/status_images/a.jpg"
    assert request.headers["Authorization"] == "Bearer service-key"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Content-Type"] == "image/jpeg"
    assert request.content == b"jpeg-bytes"
    await storage.close()


async def test_rejected_upload_raises_upload_error():
    storage = _client(lambda request: httpx.Response(403, json={"error": "denied"}))

    with pytest.raises(UploadError):
        await storage.upload(b"x", "status_images/a.jpg", "image/jpeg")
    await storage.close()


async def test_transport_failure_raises_upload_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    storage = _client(handler)

    with pytest.raises(UploadError):
        await storage.upload(b"x", "status_images/a.jpg", "image/jpeg")
    await storage.close()


async def test_delete_resolves_path_from_public_url():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={})

    storage = _client(handler)

    await storage.delete(storage.public_url("profile_pictures/p.png"))

    assert requests[0].method == "DELETE"
    assert requests[0].url.path == "/storage/v1/object/media/profile_pictures/p.png"
    await storage.close()


def test_path_from_foreign_url_is_rejected():
    storage = _client(lambda request: httpx.Response(200))

    with pytest.raises(ValidationError):
        storage.path_from_url("https://elsewhere.test/images/a.jpg")
    assert storage.path_from_url(storage.public_url("a/b.jpg?token=1")) == "a/b.jpg"


def test_custom_public_base_is_used_for_urls():
    storage = StorageClient(
        base_url="https://project.supabase.test",
        service_key="k",
        bucket="media",
        public_base_url="https://cdn.test/",
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))),
    )

    assert storage.public_url("x.jpg") == "https://cdn.test/public/media/x.jpg"
