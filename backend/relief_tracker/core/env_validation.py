"""
Startup configuration gate.

Relief Tracker refuses to boot on a configuration it cannot serve: a missing
database or Firebase project, a storage provider without its bucket and
keys, or a production deployment that still allows every CORS origin.
Problems are printed together so one restart fixes them all.
"""

import os
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from relief_tracker.core.config import ModerationPolicy


class ProductionSettings(BaseSettings):
    """Environment as the running service needs it. Unknown keys are ignored."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Required
    database_url: str
    firebase_project_id: str
    storage_provider: str
    allowed_origins: str

    google_application_credentials: Optional[str] = None

    # Bucket settings, one set per provider
    gcs_bucket_name: Optional[str] = None
    gcs_project_id: Optional[str] = None
    s3_bucket_name: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = None

    app_name: str = "Relief Tracker"
    debug: bool = False
    moderation_policy: ModerationPolicy = ModerationPolicy.STRICT
    max_upload_size_mb: int = 5
    upload_timeout_seconds: float = 30.0


def check_settings(settings: ProductionSettings) -> list[str]:
    """Rules spanning several variables. Returns one message per problem."""
    problems = []

    if not settings.debug:
        if "*" in {origin.strip() for origin in settings.allowed_origins.split(",")}:
            problems.append(
                "Wildcard CORS origin (*) detected in production mode. "
                "List the dashboard domains in ALLOWED_ORIGINS instead."
            )
        if not settings.database_url.startswith("postgresql"):
            problems.append(
                "DATABASE_URL must be a PostgreSQL connection string (postgresql+asyncpg://...) "
                "unless DEBUG is enabled"
            )

    provider = settings.storage_provider.lower()
    if provider == "gcs":
        if not (settings.gcs_bucket_name and settings.gcs_project_id):
            problems.append("STORAGE_PROVIDER=gcs needs GCS_BUCKET_NAME and GCS_PROJECT_ID")
    elif provider == "s3":
        missing = [
            name
            for name, value in (
                ("S3_BUCKET_NAME", settings.s3_bucket_name),
                ("AWS_ACCESS_KEY_ID", settings.aws_access_key_id),
                ("AWS_SECRET_ACCESS_KEY", settings.aws_secret_access_key),
            )
            if not value
        ]
        if missing:
            problems.append(f"STORAGE_PROVIDER=s3 needs {', '.join(missing)}")
    else:
        problems.append(f"Invalid STORAGE_PROVIDER '{settings.storage_provider}' (expected gcs or s3)")

    credentials = settings.google_application_credentials
    if credentials and not os.path.exists(credentials):
        problems.append(f"Firebase credentials file not found: {credentials}")

    return problems


def validate_environment() -> ProductionSettings:
    """Load and check the environment, exiting with status 1 on any problem.

    Called at import time by ``relief_tracker.main``, before the app exists.
    """
    try:
        settings = ProductionSettings()
    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        for error in e.errors():
            variable = ".".join(str(part) for part in error["loc"]).upper()
            print(f"   • {variable}: {error['msg']}", file=sys.stderr)
        print("Set the variables above in .env or the process environment.", file=sys.stderr)
        sys.exit(1)

    problems = check_settings(settings)
    if problems:
        for problem in problems:
            print(f"❌ FATAL: {problem}", file=sys.stderr)
        sys.exit(1)

    print(
        f"✅ {settings.app_name} configuration OK "
        f"(debug={settings.debug}, storage={settings.storage_provider}, "
        f"policy={settings.moderation_policy.value}, origins={settings.allowed_origins})"
    )
    return settings


if __name__ == "__main__":
    validate_environment()
