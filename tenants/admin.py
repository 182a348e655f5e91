from django.contrib import admin
from .models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("id", "nombre", "slug", "activo", "created_at")
    list_filter = ("activo",)
    search_fields = ("nombre", "slug")
    ordering = ("nombre",)
