"""
Object storage backends for image variants.

Both backends expose the same three calls:
    upload(path, data, content_type)
    public_url(path)
    remove(paths)
"""

import logging
import threading
from urllib.parse import quote

import requests
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage backend rejects or fails an operation"""


class SupabaseStorage:
    """
    Client for the Supabase Storage REST API.
    """

    def __init__(self, url, key, bucket='images', timeout=30, session=None):
        if not url or not key:
            logger.error("[STORAGE] Supabase URL or key not configured. Storage operations will fail.")
            raise StorageError('SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) must be set')
        self.url = url.rstrip('/')
        self.key = key
        self.bucket = bucket
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.info(f"[STORAGE] Supabase storage ready (bucket={bucket})")

    def _headers(self, **extra):
        headers = {
            'Authorization': f'Bearer {self.key}',
            'apikey': self.key,
        }
        headers.update(extra)
        return headers

    def _object_url(self, path=''):
        base = f"{self.url}/storage/v1/object/{self.bucket}"
        return f"{base}/{quote(path)}" if path else base

    def upload(self, path, data, content_type):
        try:
            response = self.session.post(
                self._object_url(path),
                data=data,
                headers=self._headers(**{
                    'Content-Type': content_type,
                    'Cache-Control': 'max-age=3600',
                    'x-upsert': 'false',
                }),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[STORAGE] Error uploading file {path}: {e}")
            raise StorageError(f"Failed to upload file: {e}") from e

        if not response.ok:
            logger.error(f"[STORAGE] Failed to upload file {path}: {response.status_code} {response.text}")
            raise StorageError(f"Failed to upload file: {self._error_message(response)}")

    def public_url(self, path):
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    def remove(self, paths):
        if not paths:
            return
        try:
            response = self.session.delete(
                self._object_url(),
                json={'prefixes': list(paths)},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[STORAGE] Error deleting files: {e}")
            raise StorageError(f"Failed to delete files: {e}") from e

        if not response.ok:
            logger.error(f"[STORAGE] Failed to delete files: {response.status_code} {response.text}")
            raise StorageError(f"Failed to delete files: {self._error_message(response)}")

    @staticmethod
    def _error_message(response):
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason
        return body.get('message') or body.get('error') or response.reason


class DjangoFileStorage:
    """Stores variants through a Django Storage (MEDIA_ROOT by default)"""

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def upload(self, path, data, content_type):
        if self.storage.exists(path):
            raise StorageError(f"Failed to upload file: {path} already exists")
        self.storage.save(path, ContentFile(data))

    def public_url(self, path):
        return self.storage.url(path)

    def remove(self, paths):
        for path in paths:
            if self.storage.exists(path):
                self.storage.delete(path)


def build_storage():
    """Create the backend named by settings.IMAGE_STORAGE['BACKEND']"""
    config = getattr(settings, 'IMAGE_STORAGE', {}) or {}
    backend = config.get('BACKEND', 'local')
    if backend == 'supabase':
        return SupabaseStorage(
            url=config.get('SUPABASE_URL'),
            key=config.get('SUPABASE_KEY'),
            bucket=config.get('BUCKET', 'images'),
            timeout=config.get('TIMEOUT', 30),
        )
    if backend == 'local':
        return DjangoFileStorage()
    raise StorageError(f"Unknown image storage backend: {backend}")


_storage = None
_storage_lock = threading.Lock()


def get_storage():
    """Process-wide storage backend, created on first use"""
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = build_storage()
    return _storage


def reset_storage():
    global _storage
    with _storage_lock:
        _storage = None
