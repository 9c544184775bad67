from __future__ import annotations
import io
from functools import lru_cache

import structlog
from minio import Minio
from minio.error import S3Error
from starlette.concurrency import run_in_threadpool

from portal.config import settings

log = structlog.get_logger()


def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure


class FileStorage:
    """Uploaded entry files in an S3-compatible bucket."""

    def __init__(self, client: Minio, bucket: str, public_base_url: str):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self._bucket_checked = False

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
        except S3Error as e:
            # creation may race with another worker; a real failure shows up on put
            log.warning("bucket_check_failed", bucket=self.bucket, code=e.code)
        self._bucket_checked = True

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket()
        self.client.put_object(self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type)

    async def put_bytes(self, key: str, data: bytes, content_type: str) -> str:
        """Store the object and return its public URL."""
        await run_in_threadpool(self._put, key, data, content_type)
        log.info("upload_stored", key=key, size=len(data), content_type=content_type)
        return self.url_for(key)

    async def remove(self, key: str) -> None:
        """Best-effort delete; an object left behind is logged with its key."""
        try:
            await run_in_threadpool(self.client.remove_object, self.bucket, key)
        except S3Error as e:
            log.warning("upload_orphaned", key=key, code=e.code)
            return
        log.info("upload_removed", key=key)

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"


@lru_cache(maxsize=1)
def _default_storage() -> FileStorage:
    host, secure = _parse_endpoint(settings.s3_endpoint)
    client = Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)
    base = settings.s3_public_base_url or f"{settings.s3_endpoint.rstrip('/')}/{settings.s3_bucket_uploads}"
    return FileStorage(client, settings.s3_bucket_uploads, base)


def get_file_storage() -> FileStorage:
    return _default_storage()
