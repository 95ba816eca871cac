from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ConsumptionViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r'consumption', ConsumptionViewSet, basename='consumption')

urlpatterns = [
    path('', include(router.urls)),
]
