# users/scoping.py
from django.db.models import QuerySet

from permisos.grants import SCOPE_ALL, SCOPE_TEAM, VIEW
from .permissions_matrix_guard import user_grant


def is_platform(user) -> bool:
    return bool(getattr(user, "is_superuser", False) or getattr(user, "platform_role", None))


def grant_scope_qs(
    user,
    qs: QuerySet,
    modulo_codigo: str,
    *,
    scope_field: str = "alcance_ver",
    owner_lookup: str = "owner",
    team_lookup: str = "owner__equipo",
    tenant_lookup: str = "tenant",
) -> QuerySet:
    """
    Restrict a queryset by the scope of the user's role grant for a module.
      own  -> rows where owner_lookup is the user
      team -> rows where team_lookup is the user's team (own rows if no team)
      all  -> every row of the user's tenant
    Platform users are exempt. No grant / no view => empty queryset.
    """
    if is_platform(user):
        return qs

    grant = user_grant(user, modulo_codigo)
    if not grant or not grant.get(VIEW):
        return qs.none()

    tenant_id = getattr(user, "tenant_id", None)
    if not tenant_id:
        return qs.none()
    qs = qs.filter(**{f"{tenant_lookup}_id": tenant_id})

    scope = grant.get(scope_field)
    if scope == SCOPE_ALL:
        return qs
    if scope == SCOPE_TEAM and getattr(user, "equipo", None):
        return qs.filter(**{team_lookup: user.equipo})
    return qs.filter(**{owner_lookup: user.pk})
