from django.contrib import admin
from .models import Modulo, Rol, RolModulo, RolTemplate, TemplateModulo


class TemplateModuloInline(admin.TabularInline):
    model = TemplateModulo
    extra = 0
    fields = ("modulo", "puede_ver", "puede_crear", "puede_editar", "puede_eliminar", "alcance_ver", "alcance_editar")


class RolModuloInline(admin.TabularInline):
    model = RolModulo
    extra = 0
    fields = ("modulo", "puede_ver", "puede_crear", "puede_editar", "puede_eliminar", "alcance_ver", "alcance_editar")


@admin.register(Modulo)
class ModuloAdmin(admin.ModelAdmin):
    list_display = ("id", "codigo", "nombre", "categoria", "orden", "es_submenu", "modulo_padre", "activo")
    list_select_related = ("modulo_padre",)
    list_filter = ("categoria", "es_submenu", "activo")
    search_fields = ("codigo", "nombre")
    ordering = ("categoria", "orden")


@admin.register(RolTemplate)
class RolTemplateAdmin(admin.ModelAdmin):
    list_display = ("id", "codigo", "nombre", "categoria", "es_activo", "visible_para_tenants", "updated_at")
    list_filter = ("categoria", "es_activo", "visible_para_tenants")
    search_fields = ("codigo", "nombre")
    ordering = ("nombre",)
    # grants are edited through the matrix endpoints; shown here for support
    inlines = (TemplateModuloInline,)


@admin.register(Rol)
class RolAdmin(admin.ModelAdmin):
    list_display = ("id", "nombre", "codigo", "tenant", "template", "es_activo")
    list_select_related = ("tenant", "template")
    list_filter = ("tenant", "template", "es_activo")
    search_fields = ("nombre", "codigo", "tenant__nombre", "template__nombre")
    inlines = (RolModuloInline,)
