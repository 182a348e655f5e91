from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db.models.functions import Lower

from tenants.models import Tenant


# ---------- Soft delete helpers ----------
class SoftDeleteQuerySet(models.QuerySet):
    def delete(self):
        # queryset-level soft delete
        return super().update(is_deleted=True)

    def hard_delete(self):
        return super().delete()

    def alive(self):
        return self.filter(is_deleted=False)

    def dead(self):
        return self.filter(is_deleted=True)


class AllUsersManager(BaseUserManager):
    """
    Returns ALL users (including soft-deleted).
    Useful for admin/maintenance tasks.
    """
    def get_queryset(self):
        return SoftDeleteQuerySet(self.model, using=self._db)

    def create_user(self, user_id, password=None, **extra_fields):
        if not user_id:
            raise ValueError("Users must have a user_id")
        user = self.model(user_id=user_id, **extra_fields)
        if password:
            user.set_password(password)
        else:
            # external provisioning (SSO); still store an unusable hash
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, user_id, password=None, **extra_fields):
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("platform_role", User.PLATFORM_ADMIN)
        return self.create_user(user_id, password, **extra_fields)


class SoftDeleteUserManager(AllUsersManager):
    """Default manager: returns only non-deleted users."""
    def get_queryset(self):
        return super().get_queryset().alive()


class User(AbstractBaseUser, PermissionsMixin):
    # Platform roles administer the template catalog across tenants.
    # CRM users have none and are authorized through their tenant role.
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    PLATFORM_SUPPORT = "PLATFORM_SUPPORT"
    PLATFORM_ROLE_CHOICES = [
        (PLATFORM_ADMIN, "Platform Admin"),
        (PLATFORM_SUPPORT, "Platform Support"),
    ]

    # Auth + identity
    user_id = models.CharField(max_length=50, unique=True, db_index=True)
    full_name = models.CharField(max_length=255)
    email = models.EmailField(null=True, blank=True, unique=False)

    platform_role = models.CharField(max_length=20, choices=PLATFORM_ROLE_CHOICES, null=True, blank=True)

    # CRM membership
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, null=True, blank=True, related_name="users")
    rol = models.ForeignKey(
        "permisos.Rol",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
    )
    # team key used by the 'team' scope
    equipo = models.CharField(max_length=100, null=True, blank=True, db_index=True)

    # Django flags
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    # Soft delete flag
    is_deleted = models.BooleanField(default=False, db_index=True)

    USERNAME_FIELD = "user_id"
    REQUIRED_FIELDS: list[str] = []

    # Managers
    objects = SoftDeleteUserManager()   # default: excludes soft-deleted
    all_objects = AllUsersManager()     # includes soft-deleted

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                Lower("email"),
                name="uniq_user_email_lower",
                condition=models.Q(email__isnull=False),
            ),
        ]
        indexes = [
            models.Index(fields=["platform_role"], name="idx_user_platform_role"),
            models.Index(fields=["created_at"], name="idx_user_created_at"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.user_id})"

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    # Instance-level soft delete API
    def delete(self, using=None, keep_parents=False):
        self.is_deleted = True
        self.save(update_fields=["is_deleted"])

    def hard_delete(self, using=None, keep_parents=False):
        super().delete(using=using, keep_parents=keep_parents)

    def restore(self):
        if self.is_deleted:
            self.is_deleted = False
            self.save(update_fields=["is_deleted"])
