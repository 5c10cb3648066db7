from typing import List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from bepawa.api.deps import ensure_permissions, get_client_storage, get_current_user, get_storage
from bepawa.api.v1.storage.schemas import (
    ClientValue,
    FileEntry,
    FileUrlResponse,
    StoredFileResponse,
    WishlistResponse,
)
from bepawa.core.exceptions import AuthorizationError, ValidationError
from bepawa.core.permissions import Permissions, UserRole
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.redis import ClientStorage
from bepawa.infrastructure.storage import Bucket, StorageService

router = APIRouter(tags=["Storage"])

# Buckets whose content is published by a particular kind of account
_BUCKET_WRITERS = {
    Bucket.PRODUCT_IMAGES: [Permissions.PRODUCTS_WRITE_OWN, Permissions.PRODUCTS_WRITE],
    Bucket.LAB_RESULTS: [Permissions.APPOINTMENTS_PROVIDE],
}


def _check_owner(path: str, user: Profile) -> None:
    # Users only reach objects under their own folder
    if UserRole.parse(user.role) is UserRole.ADMIN:
        return
    if not path.startswith(f"{user.id}/") or ".." in path:
        raise AuthorizationError("Cannot access files owned by another account")


def _check_kind(kind: str) -> None:
    if kind not in ClientStorage.KINDS:
        raise ValidationError(f"Unknown client storage kind: {kind}")


# ==================== File buckets ====================

@router.post("/storage/{bucket}", response_model=StoredFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    bucket: Bucket,
    file: UploadFile = File(...),
    extra_path: str = Form(""),
    current_user: Profile = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    if bucket in _BUCKET_WRITERS:
        ensure_permissions(current_user, _BUCKET_WRITERS[bucket])
    if extra_path and (".." in extra_path or not extra_path.endswith("/")):
        raise ValidationError("extra_path must be a folder ending in '/'")
    stored = await storage.upload(bucket, current_user.id, file.file, file.filename or "file", extra_path=extra_path)
    return StoredFileResponse(path=stored.path, public_url=stored.public_url)


@router.get("/storage/{bucket}", response_model=List[FileEntry])
async def list_files(
    bucket: Bucket,
    current_user: Profile = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    return await storage.list_files(bucket, current_user.id)


@router.get("/storage/{bucket}/url", response_model=FileUrlResponse)
async def file_url(
    bucket: Bucket,
    path: str = Query(..., min_length=1),
    current_user: Profile = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    """Public URL, or a signed URL for the private prescriptions bucket"""
    if not bucket.is_public:
        _check_owner(path, current_user)
    return FileUrlResponse(url=await storage.get_url(bucket, path))


@router.delete("/storage/{bucket}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    bucket: Bucket,
    path: str = Query(..., min_length=1),
    current_user: Profile = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
):
    _check_owner(path, current_user)
    await storage.delete(bucket, path)


# ==================== Client key/value storage ====================

@router.get("/client-storage/wishlist", response_model=WishlistResponse)
async def get_wishlist(
    current_user: Profile = Depends(get_current_user),
    client_storage: ClientStorage = Depends(get_client_storage),
):
    return WishlistResponse(items=await client_storage.wishlist(current_user.id))


@router.post("/client-storage/wishlist/{product_id}", response_model=WishlistResponse)
async def toggle_wishlist(
    product_id: str,
    current_user: Profile = Depends(get_current_user),
    client_storage: ClientStorage = Depends(get_client_storage),
):
    return WishlistResponse(items=await client_storage.toggle_wishlist(current_user.id, product_id))


@router.get("/client-storage/{kind}", response_model=ClientValue)
async def read_value(
    kind: str,
    current_user: Profile = Depends(get_current_user),
    client_storage: ClientStorage = Depends(get_client_storage),
):
    _check_kind(kind)
    return ClientValue(value=await client_storage.get(kind, current_user.id))


@router.put("/client-storage/{kind}", response_model=ClientValue)
async def write_value(
    kind: str,
    data: ClientValue,
    current_user: Profile = Depends(get_current_user),
    client_storage: ClientStorage = Depends(get_client_storage),
):
    _check_kind(kind)
    await client_storage.set(kind, current_user.id, data.value)
    return data


@router.delete("/client-storage/{kind}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_value(
    kind: str,
    current_user: Profile = Depends(get_current_user),
    client_storage: ClientStorage = Depends(get_client_storage),
):
    _check_kind(kind)
    await client_storage.delete(kind, current_user.id)
