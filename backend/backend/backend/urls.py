from django.contrib import admin
from django.urls import path, include

from .views import greeting, test_db

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/greeting', greeting, name='greeting'),
    path('api/test-db', test_db, name='test_db'),
    path('api/users/', include('authentication.urls')),
    path('api/', include('pagebuilder.urls')),
    path('api/', include('images.urls')),
    path('api/', include('groups.urls')),
    path('api/', include('consumption.urls')),
]
