from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bepawa.core.exceptions import ConfigurationError, ExternalServiceError
from bepawa.core.permissions import UserRole
from bepawa.infrastructure import storage as storage_module
from bepawa.infrastructure.storage import Bucket, StorageService, StoredFile, build_object_path


@pytest.fixture
def configured():
    with patch.object(storage_module, "configure", return_value=True):
        yield


@pytest.mark.unit
def test_object_path_layout():
    assert build_object_path("u1", "lab report  final.pdf", timestamp_ms=1700000000000) == \
        "u1/1700000000000_lab_report_final.pdf"
    assert build_object_path("u1", "x.png", "p42/", timestamp_ms=1) == "u1/p42/1_x.png"
    assert build_object_path("u1", None, timestamp_ms=5) == "u1/5_file"


@pytest.mark.unit
def test_bucket_privacy():
    assert not Bucket.PRESCRIPTIONS.is_public
    assert Bucket.PRESCRIPTIONS.delivery_type == "authenticated"
    assert Bucket.PRODUCT_IMAGES.is_public
    assert Bucket.LAB_RESULTS.delivery_type == "upload"


@pytest.mark.asyncio
async def test_unconfigured_storage_raises_configuration_error():
    with patch.object(storage_module, "configure", return_value=False):
        with pytest.raises(ConfigurationError):
            await StorageService("test").upload(Bucket.LAB_RESULTS, "u1", b"data", "r.pdf")


@pytest.mark.asyncio
async def test_upload_to_public_bucket_returns_public_url(configured):
    with patch.object(storage_module.cloudinary.uploader, "upload") as upload, \
            patch.object(storage_module.cloudinary.utils, "cloudinary_url", return_value=("https://cdn/img", {})):
        stored = await StorageService("test").upload(Bucket.PRODUCT_IMAGES, "u1", b"img", "box shot.png")

    kwargs = upload.call_args.kwargs
    assert kwargs["public_id"] == f"test/product-images/{stored.path}"
    assert kwargs["resource_type"] == "raw"
    assert stored.path.startswith("u1/") and stored.path.endswith("_box_shot.png")
    assert stored.public_url == "https://cdn/img"


@pytest.mark.asyncio
async def test_private_bucket_gets_signed_url(configured):
    with patch.object(storage_module.cloudinary.utils, "private_download_url", return_value="https://signed") as signed:
        url = await StorageService("test").get_url(Bucket.PRESCRIPTIONS, "u1/1_rx.pdf")

    assert url == "https://signed"
    args, kwargs = signed.call_args
    assert args[0] == "test/prescriptions/u1/1_rx.pdf"
    assert kwargs["type"] == "authenticated"


@pytest.mark.asyncio
async def test_provider_failures_become_external_service_errors(configured):
    with patch.object(storage_module.cloudinary.uploader, "destroy", side_effect=RuntimeError("boom")):
        with pytest.raises(ExternalServiceError):
            await StorageService("test").delete(Bucket.LAB_RESULTS, "u1/1_r.pdf")


@pytest.mark.asyncio
async def test_storage_api_keeps_users_in_their_folder(client, make_profile, headers_for):
    from bepawa.api.deps import get_storage
    from bepawa.main import app

    user = await make_profile(UserRole.INDIVIDUAL)
    fake = MagicMock(spec=StorageService)
    app.dependency_overrides[get_storage] = lambda: fake

    response = await client.delete(
        "/api/v1/storage/prescriptions", params={"path": "someone-else/1_rx.pdf"}, headers=headers_for(user)
    )
    assert response.status_code == 403
    fake.delete.assert_not_called()

    response = await client.get("/api/v1/storage/unknown-bucket", headers=headers_for(user))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_only_sellers_publish_product_images(client, make_profile, headers_for):
    from bepawa.api.deps import get_storage
    from bepawa.main import app

    customer = await make_profile(UserRole.INDIVIDUAL)
    pharmacy = await make_profile(UserRole.RETAIL)
    pending = await make_profile(UserRole.WHOLESALE, approved=False)
    fake = MagicMock(spec=StorageService)
    fake.upload = AsyncMock(return_value=StoredFile(path="p/1_img.png", public_url="https://cdn/img"))
    app.dependency_overrides[get_storage] = lambda: fake
    files = {"file": ("img.png", b"\x89PNG", "image/png")}

    response = await client.post("/api/v1/storage/product-images", files=files, headers=headers_for(customer))
    assert response.status_code == 403
    response = await client.post("/api/v1/storage/product-images", files=files, headers=headers_for(pending))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ACCOUNT_NOT_APPROVED"
    response = await client.post("/api/v1/storage/lab-results", files=files, headers=headers_for(customer))
    assert response.status_code == 403
    fake.upload.assert_not_awaited()

    response = await client.post("/api/v1/storage/product-images", files=files, headers=headers_for(pharmacy))
    assert response.status_code == 201
    assert response.json()["public_url"] == "https://cdn/img"
    assert fake.upload.await_args.args[3] == "img.png"

    # customers still keep their own uploads in the private bucket
    response = await client.post("/api/v1/storage/prescriptions", files=files, headers=headers_for(customer))
    assert response.status_code == 201
