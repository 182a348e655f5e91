from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "user_id", "full_name", "email", "platform_role", "tenant", "rol", "equipo", "is_active", "is_deleted")
    list_select_related = ("tenant", "rol")
    list_filter = ("platform_role", "tenant", "is_active", "is_deleted")
    search_fields = ("user_id", "full_name", "email", "tenant__nombre", "rol__nombre")
    ordering = ("-created_at",)
    exclude = ("password",)

    def get_queryset(self, request):
        # admin sees soft-deleted rows too
        return User.all_objects.select_related("tenant", "rol")
