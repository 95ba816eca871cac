from django.urls import path

from .user_views import me, search_users

urlpatterns = [
    path('me', me, name='users_me'),
    path('search', search_users, name='users_search'),
]
