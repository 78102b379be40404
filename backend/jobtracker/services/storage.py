"""
File Storage Service - private buckets for avatars and resumes

Objects live under ``{storage_root}/{bucket}/{path}``. Nothing is publicly
readable; read access goes through short-lived signed URLs whose token names
exactly one bucket/path pair.

Usage:
    storage = get_storage()
    await storage.upload("resumes", f"{user_id}.pdf", data)
    url = storage.create_signed_url("resumes", f"{user_id}.pdf", expires_in=60)
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from jose import JWTError, jwt

from jobtracker.config import get_settings
from jobtracker.exceptions import TrackerError

logger = logging.getLogger(__name__)

BUCKETS = ("avatars", "resumes")
SIGNED_URL_SCOPE = "storage"


class StorageError(TrackerError):
    status_code = 400


class ObjectNotFound(StorageError):
    status_code = 404


class FileStorage:
    def __init__(self, root: str, secret_key: str, base_url: str):
        self.root = Path(root)
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")
        parts = PurePosixPath(path).parts
        if not parts or PurePosixPath(path).is_absolute() or ".." in parts:
            raise StorageError(f"Invalid object path: {path}")
        return self.root / bucket / Path(*parts)

    async def upload(self, bucket: str, path: str, data: bytes, upsert: bool = True) -> str:
        target = self._resolve(bucket, path)
        if target.exists() and not upsert:
            raise StorageError(f"Object already exists: {bucket}/{path}")

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.info(f"Stored {len(data)} bytes at {bucket}/{path}")
        return path

    async def download(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError:
            raise ObjectNotFound(f"Object not found: {bucket}/{path}")

    async def delete(self, bucket: str, path: str) -> None:
        target = self._resolve(bucket, path)
        await asyncio.to_thread(target.unlink, True)

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        self._resolve(bucket, path)
        expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        token = jwt.encode(
            {"scope": SIGNED_URL_SCOPE, "bucket": bucket, "path": path, "exp": expire},
            self.secret_key,
            algorithm="HS256",
        )
        return f"{self.base_url}/storage/{bucket}/{quote(path)}?token={token}"

    def verify_signed_token(self, token: str, bucket: str, path: str) -> bool:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=["HS256"])
        except JWTError:
            return False
        return (
            payload.get("scope") == SIGNED_URL_SCOPE
            and payload.get("bucket") == bucket
            and payload.get("path") == path
        )


@lru_cache
def get_storage() -> FileStorage:
    settings = get_settings()
    return FileStorage(settings.storage_root, settings.secret_key, settings.api_url)
