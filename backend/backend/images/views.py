from django.shortcuts import redirect
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from common.errors import ValidationError
from common.owners import request_owner
from common.pagination import envelope, parse_page_params

from .serializers import ImageSerializer, UploadFromUrlSerializer
from .services import ImageService


class ImageViewSet(viewsets.ViewSet):
    """
    Upload, list, look up and delete images.
    """
    permission_classes = [permissions.AllowAny]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    service_class = ImageService

    def get_service(self):
        return self.service_class()

    def list(self, request):
        page, limit = parse_page_params(request.query_params)
        preferred = request.query_params.get('type') or None
        items, total = self.get_service().list(page, limit, preferred=preferred)
        data = ImageSerializer(items, many=True, context={'preferred': preferred}).data
        return Response(envelope(data, total, page, limit))

    def retrieve(self, request, pk=None):
        return Response(ImageSerializer(self.get_service().get(pk)).data)

    def destroy(self, request, pk=None):
        self.get_service().remove(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def upload(self, request):
        """Upload an image (multipart field `file`)"""
        upload = request.FILES.get('file')
        if upload is None:
            raise ValidationError('No file provided')
        service = self.get_service()
        # Reject on the declared size before the body is read into memory
        service.validate(upload, upload.content_type, upload.size)
        image = service.upload(
            upload.read(),
            upload.content_type,
            upload.name,
            user=request_owner(request),
        )
        return Response(ImageSerializer(image).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='upload-from-url')
    def upload_from_url(self, request):
        serializer = UploadFromUrlSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        image = self.get_service().upload_from_url(
            serializer.validated_data['url'],
            user=request_owner(request),
        )
        return Response(ImageSerializer(image).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path=r'file/(?P<filename>[^/]+)')
    def file(self, request, filename=None):
        """Redirect to the stored original"""
        image = self.get_service().get_by_filename(filename)
        return redirect(image.url_original)
