from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ComponentViewSet, PageViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r'pages', PageViewSet, basename='page')
router.register(r'components', ComponentViewSet, basename='component')

urlpatterns = [
    path('', include(router.urls)),
]
