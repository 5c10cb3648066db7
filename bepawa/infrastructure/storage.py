"""
File buckets on Cloudinary

Three logical buckets live as folders under ``STORAGE_ROOT_FOLDER``.
``prescriptions`` is private and only reachable through short-lived signed
URLs; ``product-images`` and ``lab-results`` are public.
"""

from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, List, Optional
import enum
import logging
import re
import time

import cloudinary
import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
from starlette.concurrency import run_in_threadpool

from bepawa.core.config import settings
from bepawa.core.exceptions import ConfigurationError, handle_external_service_error

logger = logging.getLogger(__name__)

# Documents and images are stored byte-for-byte so paths keep their extension
RESOURCE_TYPE = "raw"


class Bucket(str, enum.Enum):
    PRESCRIPTIONS = "prescriptions"
    PRODUCT_IMAGES = "product-images"
    LAB_RESULTS = "lab-results"

    @property
    def is_public(self) -> bool:
        return self is not Bucket.PRESCRIPTIONS

    @property
    def delivery_type(self) -> str:
        return "upload" if self.is_public else "authenticated"


@dataclass
class StoredFile:
    path: str
    public_url: Optional[str] = None


def build_object_path(user_id: str, filename: Optional[str], extra_path: str = "", timestamp_ms: Optional[int] = None) -> str:
    """``<user_id>/<extra_path><timestamp>_<filename>`` with whitespace runs replaced by ``_``"""
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    safe_name = re.sub(r"\s+", "_", filename or "file")
    return f"{user_id}/{extra_path}{timestamp_ms}_{safe_name}"


def configure() -> bool:
    if not settings.CLOUDINARY_CLOUD_NAME:
        return False
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )
    return True


class StorageService:
    def __init__(self, root_folder: Optional[str] = None):
        self.root_folder = root_folder or settings.STORAGE_ROOT_FOLDER

    def _public_id(self, bucket: Bucket, path: str) -> str:
        return f"{self.root_folder}/{bucket.value}/{path}"

    def _ensure_configured(self) -> None:
        if not configure():
            raise ConfigurationError("File storage is not configured")

    def public_url(self, bucket: Bucket, path: str) -> str:
        url, _ = cloudinary.utils.cloudinary_url(
            self._public_id(bucket, path),
            resource_type=RESOURCE_TYPE,
            type=bucket.delivery_type,
            secure=True,
        )
        return url

    def signed_url(self, bucket: Bucket, path: str, ttl_seconds: Optional[int] = None) -> str:
        ttl = ttl_seconds or settings.SIGNED_URL_TTL_SECONDS
        return cloudinary.utils.private_download_url(
            self._public_id(bucket, path),
            "",
            resource_type=RESOURCE_TYPE,
            type=bucket.delivery_type,
            expires_at=int(time.time()) + ttl,
        )

    async def upload(
        self,
        bucket: Bucket,
        user_id: str,
        file_obj: BinaryIO,
        filename: str,
        extra_path: str = "",
    ) -> StoredFile:
        self._ensure_configured()
        bucket = Bucket(bucket)
        path = build_object_path(user_id, filename, extra_path)
        try:
            await run_in_threadpool(
                cloudinary.uploader.upload,
                file_obj,
                public_id=self._public_id(bucket, path),
                resource_type=RESOURCE_TYPE,
                type=bucket.delivery_type,
                overwrite=False,
            )
        except Exception as e:
            raise handle_external_service_error(e, "cloudinary", "upload") from e

        logger.info(f"Stored {path} in {bucket.value}")
        return StoredFile(path=path, public_url=self.public_url(bucket, path) if bucket.is_public else None)

    async def list_files(self, bucket: Bucket, user_id: str) -> List[Dict[str, Any]]:
        self._ensure_configured()
        bucket = Bucket(bucket)
        prefix = self._public_id(bucket, f"{user_id}/")
        try:
            response = await run_in_threadpool(
                cloudinary.api.resources,
                type=bucket.delivery_type,
                resource_type=RESOURCE_TYPE,
                prefix=prefix,
                max_results=100,
            )
        except Exception as e:
            raise handle_external_service_error(e, "cloudinary", "list") from e

        root = self._public_id(bucket, "")
        return [
            {
                "path": resource["public_id"][len(root):],
                "size": resource.get("bytes"),
                "created_at": resource.get("created_at"),
            }
            for resource in response.get("resources", [])
        ]

    async def get_url(self, bucket: Bucket, path: str) -> str:
        """Public URL for public buckets, otherwise a signed URL valid for two hours"""
        self._ensure_configured()
        bucket = Bucket(bucket)
        if bucket.is_public:
            return self.public_url(bucket, path)
        return self.signed_url(bucket, path)

    async def delete(self, bucket: Bucket, path: str) -> None:
        self._ensure_configured()
        bucket = Bucket(bucket)
        try:
            await run_in_threadpool(
                cloudinary.uploader.destroy,
                self._public_id(bucket, path),
                resource_type=RESOURCE_TYPE,
                type=bucket.delivery_type,
            )
        except Exception as e:
            raise handle_external_service_error(e, "cloudinary", "delete") from e


storage_service = StorageService()
