from django.core.exceptions import ValidationError
from django.db import models

from tenants.models import Tenant
from .grants import GRANT_FIELDS, SCOPE_CHOICES, SCOPE_OWN, is_consistent


class Modulo(models.Model):
    """A CRM section a role can be granted (contactos, propiedades, ...)."""

    CATEGORIA_CHOICES = [
        ("crm", "CRM"),
        ("finanzas", "Finanzas"),
        ("rendimiento", "Rendimiento"),
        ("comunicacion", "Comunicación"),
        ("features", "Features"),
        ("admin", "Administración"),
    ]

    codigo = models.SlugField(max_length=100, unique=True)
    nombre = models.CharField(max_length=255)
    # presentational grouping only, not a permission boundary
    categoria = models.CharField(max_length=30, choices=CATEGORIA_CHOICES, default="crm")
    orden = models.PositiveIntegerField(default=0)

    es_submenu = models.BooleanField(default=False)
    modulo_padre = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="submodulos",
    )

    activo = models.BooleanField(default=True)

    class Meta:
        ordering = ["categoria", "orden", "id"]

    def __str__(self):
        return self.nombre

    def clean(self):
        if self.es_submenu and not self.modulo_padre_id:
            raise ValidationError({"modulo_padre": "Un submódulo necesita un módulo padre."})
        if not self.es_submenu and self.modulo_padre_id:
            raise ValidationError({"modulo_padre": "Solo los submódulos pueden tener padre."})


class RolTemplate(models.Model):
    """Reusable, named bundle of per-module grants that tenant roles inherit from."""

    codigo = models.SlugField(max_length=100, unique=True)
    nombre = models.CharField(max_length=255)
    descripcion = models.TextField(null=True, blank=True)
    categoria = models.CharField(max_length=50, default="general")
    icono = models.CharField(max_length=100, null=True, blank=True)
    color = models.CharField(max_length=20, null=True, blank=True)

    es_activo = models.BooleanField(default=True)
    visible_para_tenants = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["nombre"]

    def __str__(self):
        return f"{self.nombre} ({self.codigo})"


class Rol(models.Model):
    """A tenant role. When `template` is set, propagation overwrites its grants."""

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="roles")
    codigo = models.SlugField(max_length=100)
    nombre = models.CharField(max_length=255)
    template = models.ForeignKey(
        RolTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="roles",
    )
    es_activo = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["tenant", "nombre"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "codigo"], name="uniq_rol_tenant_codigo"),
        ]

    def __str__(self):
        return f"{self.nombre} @ {self.tenant}"


# ---------- Grants ----------
class GrantBase(models.Model):
    """
    Capability flags + scopes for one module. View is a prerequisite for
    create/edit/delete; clean() refuses rows that break that.
    """

    modulo = models.ForeignKey(Modulo, on_delete=models.CASCADE, related_name="+")

    puede_ver = models.BooleanField(default=False)
    puede_crear = models.BooleanField(default=False)
    puede_editar = models.BooleanField(default=False)
    puede_eliminar = models.BooleanField(default=False)

    alcance_ver = models.CharField(max_length=10, choices=SCOPE_CHOICES, default=SCOPE_OWN)
    alcance_editar = models.CharField(max_length=10, choices=SCOPE_CHOICES, default=SCOPE_OWN)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def clean(self):
        if not is_consistent(self.as_grant()):
            raise ValidationError("puede_ver es obligatorio para crear/editar/eliminar.")

    def as_grant(self) -> dict:
        return {f: getattr(self, f) for f in GRANT_FIELDS}

    def apply_grant(self, grant: dict):
        for f in GRANT_FIELDS:
            setattr(self, f, grant[f])


class TemplateModulo(GrantBase):
    template = models.ForeignKey(RolTemplate, on_delete=models.CASCADE, related_name="grants")
    # field-level permissions, stored as-is
    permisos_campos = models.JSONField(default=dict, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["template", "modulo"], name="uniq_template_modulo"),
        ]

    def __str__(self):
        return f"{self.template.codigo}:{self.modulo.codigo}"


class RolModulo(GrantBase):
    rol = models.ForeignKey(Rol, on_delete=models.CASCADE, related_name="grants")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["rol", "modulo"], name="uniq_rol_modulo"),
        ]

    def __str__(self):
        return f"{self.rol.codigo}:{self.modulo.codigo}"
