"""
Path-addressed blob storage for generated artifacts (shipping labels).

``upload_file`` is the only write: it stores the blob and returns a durable
public URL. If the URL cannot be produced the blob is removed again, so a
caller never ends up with an uploaded object it has no reference to.
"""
import asyncio
import os
import shutil
from abc import ABC, abstractmethod
from functools import lru_cache

import firebase_admin
import structlog
from firebase_admin import credentials, storage

from shared.config import settings

logger = structlog.get_logger(__name__)


class ObjectStore(ABC):

    @abstractmethod
    async def upload_file(self, local_path: str, key: str, content_type: str) -> str:
        """Uploads ``local_path`` under ``key`` and returns its download URL."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


class LocalObjectStore(ObjectStore):
    """Keeps blobs under a directory that the cluster app serves at /media."""

    def __init__(self, root: str, public_base_url: str):
        self.root = root
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> str:
        return os.path.join(self.root, *key.split("/"))

    def _copy(self, local_path: str, key: str) -> None:
        target = self._path(key)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        shutil.copyfile(local_path, target)

    async def upload_file(self, local_path: str, key: str, content_type: str) -> str:
        await asyncio.to_thread(self._copy, local_path, key)
        logger.info("blob_uploaded", backend="local", key=key)
        return f"{self.public_base_url}/{key}"

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            await asyncio.to_thread(os.remove, path)


class FirebaseObjectStore(ObjectStore):
    """Firebase Storage bucket; objects are made public once uploaded."""

    def __init__(self, bucket_name: str, credentials_path: str = ""):
        try:
            app = firebase_admin.get_app()
        except ValueError:
            cred = credentials.Certificate(credentials_path) if credentials_path else None
            app = firebase_admin.initialize_app(cred, {"storageBucket": bucket_name})
        self.bucket = storage.bucket(bucket_name or None, app=app)

    def _upload_and_publish(self, local_path: str, key: str, content_type: str) -> str:
        blob = self.bucket.blob(key)
        blob.upload_from_filename(local_path, content_type=content_type)
        try:
            blob.make_public()
            return blob.public_url
        except Exception:
            blob.delete()
            raise

    async def upload_file(self, local_path: str, key: str, content_type: str) -> str:
        url = await asyncio.to_thread(self._upload_and_publish, local_path, key, content_type)
        logger.info("blob_uploaded", backend="firebase", key=key)
        return url

    async def delete(self, key: str) -> None:
        blob = self.bucket.blob(key)
        await asyncio.to_thread(blob.delete)


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """FastAPI dependency; one store per process, picked by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "firebase":
        return FirebaseObjectStore(settings.FIREBASE_STORAGE_BUCKET, settings.FIREBASE_CREDENTIALS)
    return LocalObjectStore(settings.MEDIA_ROOT, settings.PUBLIC_BASE_URL)
