import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions_matrix_guard import RoleActionPermission
from .models import Modulo, RolTemplate, TemplateModulo
from .serializers import (
    GrantInputSerializer,
    GrantPatchSerializer,
    ModuloSerializer,
    RolTemplateSerializer,
    TemplateModuloSerializer,
)
from .services.matrix import (
    InvalidGrant,
    StaleGrant,
    build_matrix,
    propagate_module,
    remove_template_grant,
    replace_template_grants,
    upsert_template_grant,
)

logger = logging.getLogger(__name__)

PermTemplates = RoleActionPermission.for_module("templates")
PermModulos = RoleActionPermission.for_module("modulos")

MODULO_ID = r"(?P<modulo_id>\d+)"


def _truthy(v) -> bool:
    return (v or "").lower() in ("1", "true", "yes")


class ModuloViewSet(viewsets.ModelViewSet):
    """Module catalog the template matrix is built from."""

    serializer_class = ModuloSerializer
    permission_classes = [IsAuthenticated, PermModulos]

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["categoria", "es_submenu", "activo"]
    search_fields = ["codigo", "nombre"]
    ordering_fields = ["categoria", "orden", "nombre"]
    ordering = ["categoria", "orden", "id"]

    queryset = Modulo.objects.select_related("modulo_padre").all()


class RolTemplateViewSet(viewsets.ModelViewSet):
    """
    Role templates + their permission matrix.

    Matrix module_key="templates" (platform matrix):
      - list/create/update/delete for the catalog and the grant endpoints
      - 'propagate' for the per-module fan-out to inheriting roles
    """

    serializer_class = RolTemplateSerializer
    permission_classes = [IsAuthenticated, PermTemplates]

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["categoria", "visible_para_tenants"]
    search_fields = ["codigo", "nombre", "descripcion"]
    ordering_fields = ["nombre", "codigo", "created_at"]
    ordering = ["nombre"]

    queryset = RolTemplate.objects.all()

    def get_queryset(self):
        qs = super().get_queryset().annotate(
            total_roles=Count("roles", distinct=True),
            total_tenants=Count("roles__tenant", distinct=True),
        )
        if self.action == "list" and not _truthy(self.request.query_params.get("incluirInactivos")):
            qs = qs.filter(es_activo=True)
        return qs

    # ---------- catalog ----------

    def list(self, request, *args, **kwargs):
        qs = self.filter_queryset(self.get_queryset())
        return Response({"templates": self.get_serializer(qs, many=True).data})

    def retrieve(self, request, *args, **kwargs):
        return Response({"template": self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        template = serializer.save()
        return Response({"template": self.get_serializer(template).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        template = serializer.save()
        return Response({"template": self.get_serializer(template).data})

    def destroy(self, request, *args, **kwargs):
        template = self.get_object()
        if template.roles.exists():
            return Response(
                {"detail": "Hay roles que heredan de esta plantilla; desactívala en su lugar."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        template.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="toggle")
    def toggle(self, request, pk=None):
        template = self.get_object()
        if "esActivo" not in request.data:
            raise ValidationError({"esActivo": "Este campo es obligatorio."})
        template.es_activo = serializers.BooleanField().to_internal_value(request.data.get("esActivo"))
        template.save(update_fields=["es_activo", "updated_at"])
        return Response({"template": self.get_serializer(template).data})

    # ---------- matrix ----------

    @action(detail=True, methods=["get"], url_path="matrix")
    def matrix(self, request, pk=None):
        template = self.get_object()
        return Response({
            "template": self.get_serializer(template).data,
            "modulos": build_matrix(template),
        })

    @action(detail=True, methods=["get", "put"], url_path="modulos")
    def modulos(self, request, pk=None):
        template = self.get_object()

        if request.method == "PUT":
            payload = request.data
            if isinstance(payload, dict):
                payload = payload.get("modulos")
            if not isinstance(payload, list):
                raise ValidationError({"modulos": "Se esperaba una lista de permisos por módulo."})

            ser = GrantInputSerializer(data=payload, many=True)
            ser.is_valid(raise_exception=True)
            for i, item in enumerate(ser.validated_data):
                if "modulo" not in item:
                    raise ValidationError({"modulos": {i: {"moduloId": "Este campo es obligatorio."}}})
            try:
                replace_template_grants(template, ser.validated_data)
            except InvalidGrant as exc:
                raise ValidationError({"modulos": str(exc)})

        rows = TemplateModulo.objects.filter(template=template).select_related("modulo")
        return Response({"modulos": TemplateModuloSerializer(rows, many=True).data})

    @action(detail=True, methods=["put", "delete"], url_path=f"modulos/{MODULO_ID}")
    def modulo(self, request, pk=None, modulo_id=None):
        template = self.get_object()
        modulo = get_object_or_404(Modulo, pk=modulo_id)

        if request.method == "DELETE":
            remove_template_grant(template, modulo)
            return Response(status=status.HTTP_204_NO_CONTENT)

        ser = GrantPatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            row = upsert_template_grant(template, modulo, ser.validated_data)
        except InvalidGrant as exc:
            raise ValidationError({"detail": str(exc)})
        return Response({"modulo": TemplateModuloSerializer(row).data if row else None})

    @action(
        detail=True,
        methods=["post"],
        url_path=f"modulos/{MODULO_ID}/propagate",
        permission_classes=[IsAuthenticated, PermTemplates.action("propagate")],
    )
    def propagate(self, request, pk=None, modulo_id=None):
        template = self.get_object()
        modulo = get_object_or_404(Modulo, pk=modulo_id)

        ser = GrantInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sent = ser.validated_data.get("modulo")
        if sent is not None and sent.pk != modulo.pk:
            raise ValidationError({"moduloId": "No coincide con el módulo de la URL."})

        try:
            count = propagate_module(template, modulo, ser.validated_data)
        except InvalidGrant as exc:
            raise ValidationError({"detail": str(exc)})
        except StaleGrant as exc:
            logger.warning("stale propagate on template=%s modulo=%s", template.codigo, modulo.codigo)
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response({"propagatedCount": count})

    # Legacy path the admin front-end still calls: /templates/{id}/propagate/{moduloId}
    @action(
        detail=True,
        methods=["post"],
        url_path=f"propagate/{MODULO_ID}",
        permission_classes=[IsAuthenticated, PermTemplates.action("propagate")],
    )
    def propagate_legacy(self, request, pk=None, modulo_id=None):
        return self.propagate(request, pk=pk, modulo_id=modulo_id)
