# permisos/serializers.py
from rest_framework import serializers

from .grants import SCOPE_CHOICES, SCOPE_OWN, is_consistent
from .models import Modulo, RolTemplate, TemplateModulo


class ModuloSerializer(serializers.ModelSerializer):
    esSubmenu = serializers.BooleanField(source="es_submenu", required=False)
    moduloPadreId = serializers.PrimaryKeyRelatedField(
        source="modulo_padre",
        queryset=Modulo.objects.all(),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = Modulo
        fields = ["id", "codigo", "nombre", "categoria", "orden", "esSubmenu", "moduloPadreId", "activo"]

    def validate(self, attrs):
        es_submenu = attrs.get("es_submenu", getattr(self.instance, "es_submenu", False))
        padre = attrs.get("modulo_padre", getattr(self.instance, "modulo_padre", None))
        if es_submenu and not padre:
            raise serializers.ValidationError({"moduloPadreId": "Un submódulo necesita un módulo padre."})
        if not es_submenu and padre:
            raise serializers.ValidationError({"moduloPadreId": "Solo los submódulos pueden tener padre."})
        if padre and self.instance and padre.pk == self.instance.pk:
            raise serializers.ValidationError({"moduloPadreId": "Un módulo no puede ser su propio padre."})
        return attrs


class RolTemplateSerializer(serializers.ModelSerializer):
    esActivo = serializers.BooleanField(source="es_activo", required=False)
    visibleParaTenants = serializers.BooleanField(source="visible_para_tenants", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    totalRoles = serializers.SerializerMethodField()
    totalTenants = serializers.SerializerMethodField()

    class Meta:
        model = RolTemplate
        fields = [
            "id",
            "codigo",
            "nombre",
            "descripcion",
            "categoria",
            "icono",
            "color",
            "esActivo",
            "visibleParaTenants",
            "createdAt",
            "updatedAt",
            "totalRoles",
            "totalTenants",
        ]

    # listing annotates these; detail falls back to a query
    def get_totalRoles(self, obj):
        value = getattr(obj, "total_roles", None)
        return value if value is not None else obj.roles.count()

    def get_totalTenants(self, obj):
        value = getattr(obj, "total_tenants", None)
        return value if value is not None else obj.roles.values("tenant").distinct().count()


class GrantInputSerializer(serializers.Serializer):
    """
    One module grant as sent by the matrix client:
      {moduloId, puedeVer, puedeCrear, puedeEditar, puedeEliminar,
       alcanceVer, alcanceEditar, permisosCampos?}
    """

    moduloId = serializers.PrimaryKeyRelatedField(source="modulo", queryset=Modulo.objects.all(), required=False)
    puedeVer = serializers.BooleanField(source="puede_ver", default=False)
    puedeCrear = serializers.BooleanField(source="puede_crear", default=False)
    puedeEditar = serializers.BooleanField(source="puede_editar", default=False)
    puedeEliminar = serializers.BooleanField(source="puede_eliminar", default=False)
    alcanceVer = serializers.ChoiceField(source="alcance_ver", choices=SCOPE_CHOICES, default=SCOPE_OWN)
    alcanceEditar = serializers.ChoiceField(source="alcance_editar", choices=SCOPE_CHOICES, default=SCOPE_OWN)
    permisosCampos = serializers.JSONField(source="permisos_campos", required=False)

    def validate(self, attrs):
        if not is_consistent(attrs):
            raise serializers.ValidationError("puedeVer es obligatorio para puedeCrear/puedeEditar/puedeEliminar.")
        return attrs


class GrantPatchSerializer(GrantInputSerializer):
    """Partial grant for the single-module upsert: absent keys keep their stored value."""

    puedeVer = serializers.BooleanField(source="puede_ver", required=False)
    puedeCrear = serializers.BooleanField(source="puede_crear", required=False)
    puedeEditar = serializers.BooleanField(source="puede_editar", required=False)
    puedeEliminar = serializers.BooleanField(source="puede_eliminar", required=False)
    alcanceVer = serializers.ChoiceField(source="alcance_ver", choices=SCOPE_CHOICES, required=False)
    alcanceEditar = serializers.ChoiceField(source="alcance_editar", choices=SCOPE_CHOICES, required=False)

    def validate(self, attrs):
        # consistency is checked after merging with the stored grant
        return attrs


class TemplateModuloSerializer(serializers.ModelSerializer):
    templateId = serializers.IntegerField(source="template_id", read_only=True)
    moduloId = serializers.IntegerField(source="modulo_id", read_only=True)
    puedeVer = serializers.BooleanField(source="puede_ver")
    puedeCrear = serializers.BooleanField(source="puede_crear")
    puedeEditar = serializers.BooleanField(source="puede_editar")
    puedeEliminar = serializers.BooleanField(source="puede_eliminar")
    alcanceVer = serializers.CharField(source="alcance_ver")
    alcanceEditar = serializers.CharField(source="alcance_editar")
    permisosCampos = serializers.JSONField(source="permisos_campos")
    moduloNombre = serializers.CharField(source="modulo.nombre", read_only=True)
    moduloCategoria = serializers.CharField(source="modulo.categoria", read_only=True)
    moduloOrden = serializers.IntegerField(source="modulo.orden", read_only=True)
    moduloEsSubmenu = serializers.BooleanField(source="modulo.es_submenu", read_only=True)
    moduloPadreId = serializers.IntegerField(source="modulo.modulo_padre_id", read_only=True, allow_null=True)

    class Meta:
        model = TemplateModulo
        fields = [
            "id",
            "templateId",
            "moduloId",
            "puedeVer",
            "puedeCrear",
            "puedeEditar",
            "puedeEliminar",
            "alcanceVer",
            "alcanceEditar",
            "permisosCampos",
            "moduloNombre",
            "moduloCategoria",
            "moduloOrden",
            "moduloEsSubmenu",
            "moduloPadreId",
        ]
