from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "compsubmit-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "CompSubmit")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/compsubmit_dev")

    # Upload storage (S3 / MinIO)
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "compsubmit-uploads-dev")
    s3_public_base_url: str = os.getenv("S3_PUBLIC_BASE_URL", "")  # defaults to endpoint/bucket
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # Spreadsheet mirror
    google_sheets_credentials: str = os.getenv("GOOGLE_SHEETS_CREDENTIALS", "")
    google_sheet_id: str = os.getenv("GOOGLE_SHEET_ID", "")
    google_sheet_range: str = os.getenv("GOOGLE_SHEET_RANGE", "Sheet1")
    sheets_timeout_seconds: float = float(os.getenv("SHEETS_TIMEOUT_SECONDS", "10"))

    # Admin access
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password_hash: str = os.getenv("ADMIN_PASSWORD_HASH", "")
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me-0123456789abcdef")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "720"))

    # Winner reconciliation; the store rejects "in" filters above 30 values
    reconcile_chunk_size: int = int(os.getenv("RECONCILE_CHUNK_SIZE", "30"))

settings = Settings()
