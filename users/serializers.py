# users/serializers.py
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed, ValidationError

from permisos.models import Rol
from tenants.models import Tenant
from .models import User


# Lightweight user serializer for dropdowns / summaries
class UserLiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "full_name", "user_id"]


class UserSerializer(serializers.ModelSerializer):
    tenant = serializers.PrimaryKeyRelatedField(queryset=Tenant.objects.all(), required=False, allow_null=True)
    rol = serializers.PrimaryKeyRelatedField(queryset=Rol.objects.all(), required=False, allow_null=True)
    # Not required by default; enforced in validate() for create
    password = serializers.CharField(write_only=True, required=False)

    class Meta:
        model = User
        fields = [
            "id",
            "user_id",
            "full_name",
            "email",
            "password",
            "platform_role",
            "tenant",
            "rol",
            "equipo",
            "is_active",
            "is_deleted",
            "created_at",
        ]
        read_only_fields = ["is_deleted", "created_at"]

    def validate(self, attrs):
        is_create = self.instance is None
        if is_create and not attrs.get("password"):
            raise ValidationError({"password": "La contraseña es obligatoria."})

        platform_role = attrs.get("platform_role", getattr(self.instance, "platform_role", None))
        tenant = attrs.get("tenant", getattr(self.instance, "tenant", None))
        rol = attrs.get("rol", getattr(self.instance, "rol", None))

        if platform_role:
            # platform users live outside tenants
            attrs["tenant"] = None
            attrs["rol"] = None
            return attrs

        if not tenant:
            raise ValidationError({"tenant": "Los usuarios del CRM necesitan un tenant."})
        if rol and rol.tenant_id != tenant.id:
            raise ValidationError({"rol": "El rol pertenece a otro tenant."})
        return attrs

    def create(self, validated_data):
        email = validated_data.get("email")
        if email is not None and not str(email).strip():
            validated_data["email"] = None

        password = validated_data.pop("password")
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)

        if "email" in validated_data and not str(validated_data["email"] or "").strip():
            validated_data["email"] = None

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Accepts user_id | email + password, blocks soft-deleted users and adds
    platform_role / tenant_id / rol_id claims for the admin front-end.
    """
    username_field = "user_id"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields[self.username_field].required = False
        # CharField so non-email text in email field doesn't blow up validation
        self.fields["email"] = serializers.CharField(required=False, allow_blank=True)

    def _coerce_credentials(self):
        incoming = dict(self.initial_data or {})

        candidate = (incoming.get("user_id") or "").strip()
        if not candidate:
            raw = (incoming.get("email") or "").strip()
            if "@" in raw:
                qs = User.objects.filter(email__iexact=raw)
                if qs.count() > 1:
                    raise ValidationError({"email": "Hay varios usuarios con este email."})
                # unknown email: let auth fail cleanly with the raw text
                candidate = qs.first().user_id if qs.exists() else raw
            else:
                candidate = raw

        if not candidate:
            raise ValidationError({self.username_field: "Este campo es obligatorio."})

        password = incoming.get("password")
        if not password:
            raise ValidationError({"password": "Este campo es obligatorio."})

        return {self.username_field: candidate, "password": password}

    @staticmethod
    def _claims(user) -> dict:
        return {
            "user_id": user.user_id,
            "platform_role": user.platform_role,
            "tenant_id": user.tenant_id,
            "rol_id": user.rol_id,
        }

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        for key, value in cls._claims(user).items():
            token[key] = value
        return token

    def validate(self, attrs):
        coerced = self._coerce_credentials()
        data = super().validate(coerced)

        if self.user.is_deleted:
            raise AuthenticationFailed("Esta cuenta ha sido eliminada.", code="user_deleted")

        # Extra response fields (mirrors get_token for convenience)
        data.update(self._claims(self.user))
        return data
