import io
import threading
from datetime import timedelta
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from PIL import Image as PILImage
from rest_framework import status
from rest_framework.test import APIClient

from common.errors import InternalError, NotFoundError, ValidationError

from .models import Image
from .processing import MAX_FILE_SIZE, derive_resolutions, resize_image
from .services import ImageService
from .storage import DjangoFileStorage, StorageError, SupabaseStorage, get_storage, reset_storage


def make_image_bytes(width=1600, height=900, fmt='JPEG', mode='RGB'):
    buffer = io.BytesIO()
    PILImage.new(mode, (width, height), color=(200, 40, 40) if mode == 'RGB' else 1).save(buffer, fmt)
    return buffer.getvalue()


class RecordingStorage:
    """In-memory storage that records every call"""

    def __init__(self, fail_on=None):
        self.objects = {}
        self.calls = []
        self.fail_on = fail_on
        self._lock = threading.Lock()

    def upload(self, path, data, content_type):
        with self._lock:
            self.calls.append(('upload', path))
        if self.fail_on and path.startswith(self.fail_on):
            raise StorageError(f"Failed to upload file: {path} rejected")
        with self._lock:
            self.objects[path] = (data, content_type)

    def public_url(self, path):
        return f"https://cdn.example.com/images/{path}"

    def remove(self, paths):
        self.calls.append(('remove', tuple(paths)))
        for path in paths:
            self.objects.pop(path, None)


class FakeResponse:
    def __init__(self, body=b'', status_code=200, headers=None):
        self.body = body
        self.status_code = status_code
        self.headers = headers or {}
        self.closed = False

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start:start + chunk_size]

    def close(self):
        self.closed = True


class FakeHttp:
    def __init__(self, response):
        self.response = response
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        return self.response


class ImageServiceUploadTests(TestCase):
    def setUp(self):
        self.storage = RecordingStorage()
        self.service = ImageService(storage=self.storage)

    def test_upload_then_remove(self):
        data = make_image_bytes()
        image = self.service.upload(data, 'image/jpeg', 'holiday.jpg')

        self.assertTrue(image.url_original)
        self.assertEqual(image.size, len(data))
        self.assertEqual((image.width, image.height), (1600, 900))
        self.assertTrue(image.filename.endswith('.jpg'))
        self.assertEqual(
            sorted(self.storage.objects),
            sorted(f"{res}/{image.filename}" for res in ('original', 'tiny', 'medium', 'large')),
        )

        self.service.remove(image.id)

        self.assertEqual(self.storage.objects, {})
        with self.assertRaises(NotFoundError):
            self.service.get(image.id)

    def test_rejects_unsupported_mime_before_any_storage_call(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.upload(b'hello world', 'text/plain', 'notes.txt')

        self.assertIn('Invalid file type', ctx.exception.message)
        self.assertEqual(self.storage.calls, [])
        self.assertFalse(Image.objects.exists())

    def test_rejects_oversize_file(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.upload(b'\0' * (MAX_FILE_SIZE + 1), 'image/png', 'big.png')

        self.assertEqual(ctx.exception.message, 'File size exceeds maximum limit of 10MB')
        self.assertEqual(self.storage.calls, [])

    def test_missing_file(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.upload(None, 'image/png', 'x.png')
        self.assertEqual(ctx.exception.message, 'No file provided')

    def test_failed_profile_is_omitted(self):
        def flaky_resizer(data, mime_type, width, quality):
            if width == 1200:
                raise OSError('resize exploded')
            return resize_image(data, mime_type, width, quality)

        service = ImageService(storage=self.storage, resizer=flaky_resizer)
        image = service.upload(make_image_bytes(), 'image/jpeg', 'photo.jpg')

        self.assertIsNone(image.url_large)
        self.assertTrue(image.url_medium)
        self.assertTrue(image.url_tiny)
        self.assertNotIn(f"large/{image.filename}", self.storage.objects)

    def test_storage_failure_aborts_before_metadata(self):
        service = ImageService(storage=RecordingStorage(fail_on='medium/'))

        with self.assertRaises(InternalError) as ctx:
            service.upload(make_image_bytes(), 'image/jpeg', 'photo.jpg')

        self.assertTrue(ctx.exception.message.startswith('Failed to upload image:'))
        self.assertFalse(Image.objects.exists())

    def test_derived_variants_use_encoded_type(self):
        image = self.service.upload(make_image_bytes(fmt='GIF', mode='P'), 'image/gif', 'anim.gif')

        _, original_type = self.storage.objects[f"original/{image.filename}"]
        _, tiny_type = self.storage.objects[f"tiny/{image.filename}"]
        self.assertEqual(original_type, 'image/gif')
        self.assertEqual(tiny_type, 'image/png')

    def test_svg_passes_through(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"></svg>'
        image = self.service.upload(svg, 'image/svg+xml', 'logo.svg')

        self.assertIsNone(image.width)
        self.assertEqual(self.storage.objects[f"tiny/{image.filename}"][0], svg)

    def test_oversized_pixel_count_stores_without_dimensions(self):
        data = make_image_bytes(width=100, height=100, fmt='PNG')

        with mock.patch.object(PILImage, 'MAX_IMAGE_PIXELS', 1000):
            image = self.service.upload(data, 'image/png', 'huge.png')

        self.assertIsNone(image.width)
        self.assertIsNone(image.height)
        self.assertTrue(image.url_original)
        self.assertIn(f"original/{image.filename}", self.storage.objects)

    def test_remove_aborts_when_storage_fails(self):
        image = self.service.upload(make_image_bytes(), 'image/jpeg', 'photo.jpg')

        with mock.patch.object(self.storage, 'remove', side_effect=StorageError('bucket gone')):
            with self.assertRaises(InternalError):
                self.service.remove(image.id)

        self.assertTrue(Image.objects.filter(pk=image.id).exists())


class ResizeTests(TestCase):
    def test_never_upscales(self):
        small = make_image_bytes(width=100, height=50)
        with PILImage.open(io.BytesIO(resize_image(small, 'image/jpeg', 600, 85))) as img:
            self.assertEqual(img.size, (100, 50))

    def test_keeps_aspect_ratio(self):
        data = make_image_bytes(width=1600, height=900)
        with PILImage.open(io.BytesIO(resize_image(data, 'image/png', 150, 80))) as img:
            self.assertEqual(img.size, (150, 84))
            self.assertEqual(img.format, 'PNG')

    def test_derive_all_profiles(self):
        variants = derive_resolutions(make_image_bytes(), 'image/webp')
        self.assertEqual(set(variants), {'tiny', 'medium', 'large'})


class UploadFromUrlTests(TestCase):
    def setUp(self):
        self.storage = RecordingStorage()

    def service_for(self, response):
        return ImageService(storage=self.storage, http=FakeHttp(response))

    def test_fetches_and_uploads(self):
        response = FakeResponse(make_image_bytes(), headers={'Content-Type': 'image/jpeg'})
        image = self.service_for(response).upload_from_url('https://example.com/pics/cat%20one.jpg')

        self.assertEqual(image.original_name, 'cat one.jpg')
        self.assertEqual(image.mime_type, 'image/jpeg')
        self.assertTrue(response.closed)

    def test_name_falls_back_to_mime_extension(self):
        response = FakeResponse(make_image_bytes(fmt='PNG'), headers={'Content-Type': 'image/png'})
        image = self.service_for(response).upload_from_url('https://example.com/')
        self.assertEqual(image.original_name, 'image.png')

    def test_rejects_non_http_scheme(self):
        service = self.service_for(FakeResponse())
        with self.assertRaises(ValidationError):
            service.upload_from_url('ftp://example.com/a.jpg')
        self.assertEqual(service.http.requested, [])

    def test_rejects_non_image_content(self):
        response = FakeResponse(b'<html></html>', headers={'Content-Type': 'text/html; charset=utf-8'})
        with self.assertRaises(ValidationError):
            self.service_for(response).upload_from_url('https://example.com/page')
        self.assertEqual(self.storage.calls, [])

    def test_rejects_error_status(self):
        response = FakeResponse(status_code=404, headers={'Content-Type': 'image/png'})
        with self.assertRaises(ValidationError):
            self.service_for(response).upload_from_url('https://example.com/missing.png')

    def test_rejects_oversize_body(self):
        response = FakeResponse(b'\0' * (MAX_FILE_SIZE + 1), headers={'Content-Type': 'image/png'})
        with self.assertRaises(ValidationError):
            self.service_for(response).upload_from_url('https://example.com/huge.png')
        self.assertEqual(self.storage.calls, [])


class ImageListTests(TestCase):
    def setUp(self):
        now = timezone.now()
        for i in range(25):
            Image.objects.create(
                filename=f"img-{i}.jpg",
                original_name=f"img-{i}.jpg",
                mime_type='image/jpeg',
                size=100,
                url_original=f"https://cdn.example.com/original/img-{i}.jpg",
                url_tiny=f"https://cdn.example.com/tiny/img-{i}.jpg" if i % 2 == 0 else None,
                uploaded_at=now - timedelta(minutes=i),
            )
        self.service = ImageService(storage=RecordingStorage())

    def test_second_page_in_descending_upload_order(self):
        items, total = self.service.list(page=2, limit=10)

        self.assertEqual(total, 25)
        self.assertEqual([image.filename for image in items], [f"img-{i}.jpg" for i in range(10, 20)])

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.list(preferred='huge')


class ImageAPITests(TestCase):
    def setUp(self):
        self.storage = RecordingStorage()
        patcher = mock.patch('images.services.get_storage', return_value=self.storage)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = APIClient()

    def upload(self, name='photo.jpg', content_type='image/jpeg', data=None):
        upload = SimpleUploadedFile(name, data or make_image_bytes(), content_type=content_type)
        return self.client.post('/api/images/upload', {'file': upload}, format='multipart')

    def test_upload_returns_camel_case_metadata(self):
        response = self.upload()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        for key in ('id', 'filename', 'originalName', 'mimeType', 'url', 'urlTiny', 'urlOriginal', 'uploadedAt'):
            self.assertIn(key, response.data)
        self.assertEqual(response.data['url'], response.data['urlOriginal'])
        self.assertIsNone(response.data['userId'])

    def test_upload_without_file(self):
        response = self.client.post('/api/images/upload', {}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {
            'statusCode': 400,
            'message': 'No file provided',
            'error': 'Bad Request',
        })

    def test_upload_wrong_type(self):
        response = self.upload(name='notes.txt', content_type='text/plain', data=b'plain text')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.storage.calls, [])

    def test_upload_over_limit_is_rejected_before_reading(self):
        with mock.patch('images.services.MAX_FILE_SIZE', 1024), \
                mock.patch.object(ImageService, 'upload') as upload:
            response = self.upload(data=make_image_bytes())

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'File size exceeds maximum limit of 10MB')
        upload.assert_not_called()
        self.assertEqual(self.storage.calls, [])

    def test_list_with_preferred_type(self):
        self.upload()
        response = self.client.get('/api/images', {'type': 'tiny'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        item = response.data['items'][0]
        self.assertEqual(item['url'], item['urlTiny'])

    def test_list_with_bad_type(self):
        response = self.client.get('/api/images', {'type': 'poster'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_file_redirects_to_original(self):
        created = self.upload().data
        response = self.client.get(f"/api/images/file/{created['filename']}")

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], created['urlOriginal'])

    def test_retrieve_and_delete(self):
        created = self.upload().data

        self.assertEqual(self.client.get(f"/api/images/{created['id']}").status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.delete(f"/api/images/{created['id']}").status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f"/api/images/{created['id']}").status_code, status.HTTP_404_NOT_FOUND)

    def test_unknown_id_is_not_found(self):
        response = self.client.get('/api/images/not-a-uuid')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class StorageSelectionTests(TestCase):
    def setUp(self):
        reset_storage()
        self.addCleanup(reset_storage)

    @override_settings(IMAGE_STORAGE={'BACKEND': 'local'})
    def test_local_backend_is_shared(self):
        storage = get_storage()

        self.assertIsInstance(storage, DjangoFileStorage)
        self.assertIs(get_storage(), storage)

    @override_settings(IMAGE_STORAGE={
        'BACKEND': 'supabase',
        'SUPABASE_URL': 'https://project.supabase.co/',
        'SUPABASE_KEY': 'service-key',
        'BUCKET': 'media',
    })
    def test_supabase_backend_from_settings(self):
        storage = get_storage()

        self.assertIsInstance(storage, SupabaseStorage)
        self.assertEqual(storage.bucket, 'media')
        self.assertEqual(storage.url, 'https://project.supabase.co')

    @override_settings(IMAGE_STORAGE={'BACKEND': 'ftp'})
    def test_unknown_backend(self):
        with self.assertRaises(StorageError):
            get_storage()
