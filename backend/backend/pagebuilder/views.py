from django.apps import apps
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from common.owners import request_owner
from common.pagination import envelope, paginate, parse_page_params

from .serializers import (
    PageInputSerializer, PageSerializer, component_list, component_payload,
)
from .services import PageService


class PageViewSet(viewsets.ViewSet):
    """
    ViewSet for CRUD operations on pages and the components inside them.
    """
    permission_classes = [permissions.AllowAny]
    lookup_value_regex = r'\d+'
    service_class = PageService

    def get_service(self):
        return self.service_class()

    def list(self, request):
        page, limit = parse_page_params(request.query_params)
        items, total = self.get_service().list(page, limit)
        return Response(envelope(PageSerializer(items, many=True).data, total, page, limit))

    def create(self, request):
        serializer = PageInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        page = self.get_service().create(serializer.validated_data, user=request_owner(request))
        return Response(PageSerializer(page).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(PageSerializer(self.get_service().get(pk)).data)

    def partial_update(self, request, pk=None):
        serializer = PageInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        page = self.get_service().update(pk, serializer.validated_data)
        return Response(PageSerializer(page).data)

    def destroy(self, request, pk=None):
        self.get_service().remove(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path=r'slug/(?P<slug>[^/]+)')
    def slug(self, request, slug=None):
        """Get a page by slug"""
        return Response(PageSerializer(self.get_service().get_by_slug(slug)).data)

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        return Response(PageSerializer(self.get_service().publish(pk)).data)

    @action(detail=True, methods=['post'])
    def unpublish(self, request, pk=None):
        return Response(PageSerializer(self.get_service().unpublish(pk)).data)

    @action(detail=True, methods=['get'], url_path='export-jsx')
    def export_jsx(self, request, pk=None):
        """Export page as JSX component code"""
        return Response(self.get_service().export_jsx(pk))

    @action(detail=True, methods=['get', 'post'], url_path='components')
    def components(self, request, pk=None):
        service = self.get_service()
        if request.method == 'POST':
            component = service.add_component(pk, component_payload(request.data))
            return Response(component.to_dict(), status=status.HTTP_201_CREATED)
        items = component_list(service.list_components(pk))
        return Response(envelope(items, len(items), 1, len(items)))

    @action(
        detail=True, methods=['get', 'patch', 'delete'],
        url_path=r'components/(?P<component_id>[^/]+)',
    )
    def component_detail(self, request, pk=None, component_id=None):
        service = self.get_service()
        if request.method == 'PATCH':
            patch = component_payload(request.data, partial=True)
            return Response(service.update_component(pk, component_id, patch).to_dict())
        if request.method == 'DELETE':
            service.remove_component(pk, component_id)
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(service.get_component(pk, component_id).to_dict())


class ComponentViewSet(viewsets.ViewSet):
    """
    Standalone component tree shared by the whole process.
    The tree is created once when the app loads and handed over through the
    app config.
    """
    permission_classes = [permissions.AllowAny]

    def get_store(self):
        return apps.get_app_config('pagebuilder').component_store

    def list(self, request):
        store = self.get_store()
        component_type = request.query_params.get('type')
        components = store.find_by_type(component_type) if component_type else store.list_all()
        items = component_list(components)
        page, limit = parse_page_params(request.query_params)
        if 'limit' not in request.query_params:
            limit = max(len(items), 1)
        page_items, total = paginate(items, page, limit)
        return Response(envelope(page_items, total, page, limit))

    def create(self, request):
        component = self.get_store().create(component_payload(request.data))
        return Response(component.to_dict(), status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(self.get_store().find_by_id(pk).to_dict())

    def partial_update(self, request, pk=None):
        patch = component_payload(request.data, partial=True)
        return Response(self.get_store().update(pk, patch).to_dict())

    def destroy(self, request, pk=None):
        self.get_store().remove(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def types(self, request):
        """Get available component types"""
        return Response(self.get_store().available_types())
