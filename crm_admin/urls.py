# crm_admin/urls.py
from django.contrib import admin
from django.urls import path, include
from crm_admin.views import health

urlpatterns = [
    path("admin/", admin.site.urls),

    # Health
    path("health/", health, name="health"),
    path("api/health", health, name="api_health"),

    # App routers
    path("api/users/", include("users.urls")),
    path("api/admin/", include("permisos.urls")),
]
