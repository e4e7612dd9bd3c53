"""Photo storage service with provider interface (GCS/S3)."""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from functools import partial
from typing import Optional

from relief_tracker.core.config import get_settings, StorageProvider

logger = logging.getLogger(__name__)


class UploadFailedError(ValueError):
    """The storage provider rejected or failed an upload."""


class UploadTimeoutError(UploadFailedError):
    """The upload did not finish within the configured timeout."""


class StorageProviderInterface(ABC):
    """Abstract interface for storage providers.

    Provider SDKs are blocking; implementations do plain synchronous work
    and StorageService runs them in a worker thread.
    """

    @abstractmethod
    def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        """Store ``content`` under ``object_path``."""

    @abstractmethod
    def public_url(self, object_path: str) -> str:
        """Publicly resolvable URL of a stored object."""

    @abstractmethod
    def verify_object_exists(self, object_path: str) -> bool:
        """Verify an object exists in storage."""

    @abstractmethod
    def delete_object(self, object_path: str) -> bool:
        """Delete an object from storage."""


class GCSStorageProvider(StorageProviderInterface):
    """Google Cloud Storage provider."""

    def __init__(self, bucket_name: str, project_id: Optional[str] = None):
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client(project=self.project_id)
        return self._client

    @property
    def bucket(self):
        return self.client.bucket(self.bucket_name)

    def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        blob = self.bucket.blob(object_path)
        blob.upload_from_string(content, content_type=mime_type)

    def public_url(self, object_path: str) -> str:
        return self.bucket.blob(object_path).public_url

    def verify_object_exists(self, object_path: str) -> bool:
        return self.bucket.blob(object_path).exists()

    def delete_object(self, object_path: str) -> bool:
        blob = self.bucket.blob(object_path)
        if blob.exists():
            blob.delete()
            return True
        return False


class S3StorageProvider(StorageProviderInterface):
    """AWS S3 storage provider."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self._client = None
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key

    @property
    def client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )
        return self._client

    def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=object_path,
            Body=content,
            ContentType=mime_type,
        )

    def public_url(self, object_path: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{object_path}"

    def verify_object_exists(self, object_path: str) -> bool:
        from botocore.exceptions import ClientError
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=object_path)
            return True
        except ClientError:
            return False

    def delete_object(self, object_path: str) -> bool:
        from botocore.exceptions import ClientError
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=object_path)
            return True
        except ClientError:
            return False


class StorageService:
    """High-level photo storage wrapping a provider."""

    ALLOWED_MIME_TYPES = {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
        "image/heic": "heic",
        "image/gif": "gif",
    }

    def __init__(
        self,
        provider: StorageProviderInterface,
        prefix: str = "relief-photos",
        max_upload_size_mb: int = 5,
        timeout_seconds: float = 30.0,
    ):
        self.provider = provider
        self.prefix = prefix
        self.max_upload_size_mb = max_upload_size_mb
        self.timeout_seconds = timeout_seconds

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def generate_object_path(self, user_id: str, mime_type: str) -> str:
        """Generate a unique object path for a pin photo.

        The extension follows the validated MIME type, never the client's file name.
        """
        ext = self.ALLOWED_MIME_TYPES[mime_type]
        return f"{self.prefix}/{user_id}-{uuid.uuid4().hex}.{ext}"

    def validate(self, mime_type: str, size_bytes: int) -> None:
        if mime_type not in self.ALLOWED_MIME_TYPES:
            raise ValueError(f"Unsupported photo type: {mime_type}")
        if size_bytes == 0:
            raise ValueError("Photo is empty")
        if size_bytes > self.max_upload_bytes:
            raise ValueError(f"Photo must be less than {self.max_upload_size_mb}MB")

    async def _run(self, func, *args):
        return await asyncio.wait_for(
            asyncio.to_thread(partial(func, *args)),
            timeout=self.timeout_seconds,
        )

    async def upload_photo(
        self,
        user_id: str,
        mime_type: str,
        content: bytes,
    ) -> tuple[str, str]:
        """Validate and upload a photo.

        Returns:
            Tuple of (public_url, object_path)
        """
        self.validate(mime_type, len(content))
        object_path = self.generate_object_path(user_id, mime_type)

        try:
            await self._run(self.provider.upload_object, object_path, content, mime_type)
        except asyncio.TimeoutError:
            logger.error(f"[STORAGE] Upload timed out: {object_path}")
            raise UploadTimeoutError("Photo upload timed out")
        except Exception as e:
            logger.error(f"[STORAGE] Upload failed for {object_path}: {e}")
            raise UploadFailedError("Failed to upload photo") from e

        return self.provider.public_url(object_path), object_path

    async def verify_upload(self, object_path: str) -> bool:
        """Verify an upload was completed."""
        return await self._run(self.provider.verify_object_exists, object_path)

    async def discard(self, object_path: str) -> None:
        """Best-effort removal of a staged photo."""
        try:
            await self._run(self.provider.delete_object, object_path)
        except Exception as e:
            logger.warning(f"[STORAGE] Could not delete {object_path}: {e}")

    def object_path_for(self, photo_url: str) -> Optional[str]:
        """Recover the object path from a URL this service produced.

        Returns None for anything outside this bucket's photo prefix.
        """
        base = self.provider.public_url(f"{self.prefix}/")
        if not photo_url.startswith(base) or photo_url == base:
            return None
        return f"{self.prefix}/{photo_url[len(base):]}"


def get_storage_service() -> StorageService:
    """Factory function to get storage service based on config."""
    settings = get_settings()
    if settings.storage_provider == StorageProvider.GCS:
        provider = GCSStorageProvider(
            bucket_name=settings.bucket_name,
            project_id=settings.gcs_project_id,
        )
    else:
        provider = S3StorageProvider(
            bucket_name=settings.bucket_name,
            region=settings.aws_region or "us-east-1",
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )

    return StorageService(
        provider,
        prefix=settings.photo_prefix,
        max_upload_size_mb=settings.max_upload_size_mb,
        timeout_seconds=settings.upload_timeout_seconds,
    )
