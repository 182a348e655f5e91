from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import User
from .serializers import UserSerializer, UserLiteSerializer
from .permissions_matrix_guard import RoleActionPermission
from .scoping import grant_scope_qs, is_platform


class UserViewSet(viewsets.ModelViewSet):
    """
    User CRUD with matrix permissions and soft-delete.

    Module key "usuarios":
      - platform users: PLATFORM_PERMS["usuarios"]
      - CRM users: their role grant for "usuarios"; rows are scoped by its
        alcance_ver (own / team / all within the tenant)
    """

    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, RoleActionPermission.for_module("usuarios")]

    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ["tenant", "rol", "equipo", "platform_role"]
    ordering_fields = ["created_at", "full_name", "user_id", "is_active"]
    ordering = ["-created_at"]

    queryset = User.objects.all().order_by("-created_at")

    def get_queryset(self):
        """
        Platform users may include soft-deleted via ?include_deleted=true.
        """
        user = self.request.user
        include_deleted = (self.request.query_params.get("include_deleted") or "").lower() in (
            "1",
            "true",
            "yes",
        )
        if is_platform(user):
            base = User.all_objects if include_deleted else User.objects
            return base.all().order_by(*self.ordering)

        return grant_scope_qs(
            user,
            User.objects.all(),
            "usuarios",
            owner_lookup="pk",
            team_lookup="equipo",
        ).order_by(*self.ordering)

    def list(self, request, *args, **kwargs):
        q = (request.query_params.get("q") or "").strip()
        if request.query_params.get("summary") in ("1", "true", "yes"):
            qs = self.filter_queryset(self.get_queryset()).filter(is_active=True)
            if q:
                qs = qs.filter(
                    Q(full_name__icontains=q) | Q(user_id__icontains=q) | Q(email__icontains=q)
                )
            return Response(UserLiteSerializer(qs.order_by("full_name", "user_id"), many=True).data)
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        user = self.request.user
        if is_platform(user):
            serializer.save()
            return
        # CRM users can only create inside their own tenant
        serializer.save(tenant=user.tenant, platform_role=None)

    def perform_update(self, serializer):
        user = self.request.user
        if is_platform(user):
            serializer.save()
            return
        serializer.save(tenant=user.tenant, platform_role=None)

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response({"detail": "No puedes eliminar tu propia cuenta"}, status=status.HTTP_400_BAD_REQUEST)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=True,
        methods=["post"],
        url_path="restore",
        permission_classes=[IsAuthenticated, RoleActionPermission.for_module("usuarios", op="update")],
    )
    def restore(self, request, pk=None):
        if not is_platform(request.user):
            return Response({"detail": "Solo los usuarios de plataforma pueden restaurar cuentas"}, status=status.HTTP_403_FORBIDDEN)
        try:
            user = User.all_objects.get(pk=pk)
        except User.DoesNotExist:
            return Response({"detail": "Usuario no encontrado"}, status=status.HTTP_404_NOT_FOUND)

        if not user.is_deleted:
            return Response({"detail": "El usuario no está eliminado"}, status=status.HTTP_400_BAD_REQUEST)
        user.restore()
        return Response({"detail": "Usuario restaurado correctamente"})
