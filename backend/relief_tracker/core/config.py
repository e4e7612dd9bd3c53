"""Relief Tracker settings, read from the environment and .env."""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageProvider(str, Enum):
    GCS = "gcs"
    S3 = "s3"


class ModerationPolicy(str, Enum):
    """Initial status policy for new and edited pins."""
    STRICT = "strict"    # Always start at pending
    TRUSTED = "trusted"  # Auto-approved, time window required


class Settings(BaseSettings):
    """Process-wide settings. Use get_settings() rather than instantiating."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Relief Tracker"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    # Database
    database_url: str
    database_echo: bool = False

    # Firebase Auth
    firebase_project_id: str
    google_application_credentials: Optional[str] = None

    # Comma-separated emails promoted to admin when their profile is first created
    bootstrap_admin_emails: str = ""

    # Moderation
    moderation_policy: ModerationPolicy = ModerationPolicy.STRICT

    # Storage
    storage_provider: StorageProvider = StorageProvider.GCS

    # GCS
    gcs_bucket_name: Optional[str] = None
    gcs_project_id: Optional[str] = None

    # S3
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Photo uploads
    photo_prefix: str = "relief-photos"
    max_upload_size_mb: int = 5
    upload_timeout_seconds: float = 30.0

    @property
    def bucket_name(self) -> str:
        """Bucket of the configured provider. Raises ValueError when it is unset."""
        buckets = {
            StorageProvider.GCS: ("GCS_BUCKET_NAME", self.gcs_bucket_name),
            StorageProvider.S3: ("S3_BUCKET_NAME", self.s3_bucket_name),
        }
        variable, bucket = buckets[self.storage_provider]
        if not bucket:
            raise ValueError(f"{variable} required when STORAGE_PROVIDER={self.storage_provider.value}")
        return bucket

    @property
    def admin_emails(self) -> set[str]:
        return {
            email.strip().lower()
            for email in self.bootstrap_admin_emails.split(",")
            if email.strip()
        }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
