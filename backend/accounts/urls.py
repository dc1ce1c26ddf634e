"""
Accounts app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/accounts/', include('accounts.urls')),

Endpoint summary
----------------
GET  /api/accounts/users/    — user directory (assignment candidates)
"""

from django.urls import path

from .views import UserDirectoryView

app_name = "accounts"

urlpatterns = [
    path("users/", UserDirectoryView.as_view(), name="user-directory"),
]
