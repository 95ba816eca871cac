"""
Image Service
Validates uploads, derives resized variants, pushes every variant to object
storage and records one metadata row per image.
"""

import logging
import mimetypes
import os
import uuid
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import unquote, urlparse

import requests
from django.core.exceptions import ValidationError as DjangoValidationError

from common.errors import InternalError, NotFoundError, ValidationError, is_client_error
from common.pagination import paginate

from .models import Image
from .processing import (
    ALLOWED_MIME_TYPES, MAX_FILE_SIZE, ORIGINAL, RESOLUTION_NAMES,
    derive_resolutions, output_mime_type, read_dimensions, resize_image,
)
from .storage import StorageError, get_storage

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30
FETCH_CHUNK_SIZE = 64 * 1024


def file_extension(filename):
    return os.path.splitext(filename or '')[1]


def storage_key(resolution, filename):
    return f"{resolution}/{filename}"


class ImageService:
    """
    `storage` and `resizer` default to the configured backend and the Pillow
    resizer; tests hand in their own.
    """

    def __init__(self, storage=None, resizer=resize_image, http=None):
        self._storage = storage
        self.resizer = resizer
        self.http = http or requests

    @property
    def storage(self):
        if self._storage is None:
            self._storage = get_storage()
        return self._storage

    def validate(self, data, mime_type, size=None):
        if data is None:
            raise ValidationError('No file provided')
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(f"Invalid file type. Allowed types: {', '.join(ALLOWED_MIME_TYPES)}")
        if (size if size is not None else len(data)) > MAX_FILE_SIZE:
            raise ValidationError('File size exceeds maximum limit of 10MB')

    def upload(self, data, mime_type, original_name, user=None):
        """Store the original and its derived resolutions; return the saved Image"""
        self.validate(data, mime_type)

        try:
            filename = f"{uuid.uuid4()}{file_extension(original_name)}"
            width, height = read_dimensions(data)
            variants = derive_resolutions(data, mime_type, resizer=self.resizer)

            self._upload_all(filename, data, mime_type, variants)

            urls = {
                resolution: self.storage.public_url(storage_key(resolution, filename))
                for resolution in (ORIGINAL, *variants)
            }

            image = Image.objects.create(
                filename=filename,
                original_name=original_name,
                mime_type=mime_type,
                size=len(data),
                width=width,
                height=height,
                url_tiny=urls.get('tiny'),
                url_medium=urls.get('medium'),
                url_large=urls.get('large'),
                url_original=urls[ORIGINAL],
                user=user,
            )
        except Exception as e:
            if is_client_error(e):
                raise
            logger.error(f"[IMAGES] Failed to upload image: {e}")
            raise InternalError(f"Failed to upload image: {e}") from e

        logger.info(f"[IMAGES] Image uploaded successfully: {image.id}")
        return image

    def _upload_all(self, filename, data, mime_type, variants):
        """Upload every variant in parallel and wait for all of them"""
        jobs = [(storage_key(ORIGINAL, filename), data, mime_type)]
        derived_type = output_mime_type(mime_type)
        jobs.extend(
            (storage_key(resolution, filename), payload, derived_type)
            for resolution, payload in variants.items()
        )

        with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
            futures = [pool.submit(self.storage.upload, *job) for job in jobs]
            errors = [future.exception() for future in futures]

        failed = [error for error in errors if error is not None]
        if failed:
            raise failed[0]

    def upload_from_url(self, url, user=None):
        """Fetch a remote image and run it through upload()"""
        parsed = urlparse(url or '')
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValidationError('Invalid URL. Only http and https URLs are supported')

        try:
            response = self.http.get(url, stream=True, timeout=FETCH_TIMEOUT)
        except requests.RequestException as e:
            raise ValidationError(f"Failed to fetch image from URL: {e}") from e

        try:
            if not response.ok:
                raise ValidationError(f"Failed to fetch image from URL: HTTP {response.status_code}")

            mime_type = (response.headers.get('Content-Type') or '').split(';')[0].strip().lower()
            if not mime_type.startswith('image/'):
                raise ValidationError('URL does not point to an image')

            declared = response.headers.get('Content-Length')
            if declared and declared.isdigit() and int(declared) > MAX_FILE_SIZE:
                raise ValidationError('File size exceeds maximum limit of 10MB')

            data = self._read_limited(response)
        finally:
            response.close()

        original_name = unquote(os.path.basename(parsed.path))
        if not original_name:
            original_name = f"image{mimetypes.guess_extension(mime_type) or ''}"

        return self.upload(data, mime_type, original_name, user=user)

    def _read_limited(self, response):
        chunks = []
        total = 0
        try:
            for chunk in response.iter_content(chunk_size=FETCH_CHUNK_SIZE):
                total += len(chunk)
                if total > MAX_FILE_SIZE:
                    raise ValidationError('File size exceeds maximum limit of 10MB')
                chunks.append(chunk)
        except requests.RequestException as e:
            raise ValidationError(f"Failed to fetch image from URL: {e}") from e
        return b''.join(chunks)

    def list(self, page=1, limit=10, user=None, preferred=None):
        if preferred is not None and preferred not in RESOLUTION_NAMES:
            raise ValidationError(f"Invalid type. Allowed types: {', '.join(RESOLUTION_NAMES)}")
        queryset = Image.objects.all()
        if user is not None:
            queryset = queryset.filter(user=user)
        return paginate(queryset.order_by('-uploaded_at'), page, limit)

    def get(self, image_id):
        try:
            image = Image.objects.filter(pk=image_id).first()
        except (DjangoValidationError, ValueError):
            image = None
        if image is None:
            raise NotFoundError(f"Image with ID {image_id} not found")
        return image

    def get_by_filename(self, filename):
        image = Image.objects.filter(filename=filename).first()
        if image is None:
            raise NotFoundError(f"Image with filename {filename} not found")
        return image

    def remove(self, image_id):
        """Delete the stored variants first, then the metadata row"""
        image = self.get(image_id)
        keys = [storage_key(resolution, image.filename) for resolution in RESOLUTION_NAMES]
        try:
            self.storage.remove(keys)
        except StorageError as e:
            logger.error(f"[IMAGES] Failed to delete image {image_id}: {e}")
            raise InternalError(f"Failed to delete image: {e}") from e

        image.delete()
        logger.info(f"[IMAGES] Image deleted successfully: {image_id}")
