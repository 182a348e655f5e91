# users/permissions_matrix_guard.py
from rest_framework.permissions import BasePermission

from permisos.grants import CREATE, DELETE, EDIT, VIEW

"""
Matrix-driven permission guard.

Two sources are consulted:
  - platform users (user.platform_role set): users.permissions_matrix.PLATFORM_PERMS
  - CRM users: the stored grant of their tenant role for the module
    (permisos.RolModulo), i.e. the grants the template matrix propagates.

Typical usage:
  PermTemplates = RoleActionPermission.for_module("templates")
  permission_classes = [IsAuthenticated, PermTemplates]

  # For custom @action endpoints (e.g., 'propagate'):
  @action(..., permission_classes=[IsAuthenticated, PermTemplates.action("propagate")])
"""

# HTTP → logical action (fallback when DRF view.action is absent)
HTTP_TO_ACTION = {
    "GET": "list",
    "HEAD": "list",
    "OPTIONS": "list",
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}

# DRF ViewSet action name → logical action
VIEW_ACTION_TO_ACTION = {
    "list": "list",
    "retrieve": "list",          # read treated as 'list'
    "create": "create",
    "update": "update",
    "partial_update": "update",
    "destroy": "delete",
}

# logical action → capability flag of a stored grant
ACTION_TO_CAPABILITY = {
    "list": VIEW,
    "create": CREATE,
    "update": EDIT,
    "delete": DELETE,
}


def _to_set(val) -> set[str]:
    """Accept list/tuple/set/singleton and normalize to a set of strings."""
    if val is None:
        return set()
    if isinstance(val, (list, tuple, set)):
        return {str(x) for x in val}
    return {str(val)}


def user_grant(user, modulo_codigo: str):
    """
    Grant dict of the user's tenant role for a module, or None when the role
    has no stored grant (meaning: nothing allowed).
    """
    from permisos.models import RolModulo

    rol_id = getattr(user, "rol_id", None)
    if not rol_id:
        return None
    row = (
        RolModulo.objects
        .filter(rol_id=rol_id, rol__es_activo=True, modulo__codigo=modulo_codigo)
        .first()
    )
    return row.as_grant() if row else None


class _RoleActionPermission(BasePermission):
    """
    Concrete permission class (created by RoleActionPermission.*) that checks
    the platform matrix or the stored role grant for the given module/op.
    """

    module: str = ""
    op: str | None = None
    action_map: dict | None = None

    def _resolve_action(self, request, view):
        action = self.op  # fixed for a custom @action
        if not action:
            view_action = getattr(view, "action", None)
            if view_action:
                action = VIEW_ACTION_TO_ACTION.get(view_action)
        if not action:
            mapping = self.action_map or HTTP_TO_ACTION
            action = mapping.get(request.method.upper())
        return action

    def has_permission(self, request, view):
        from .permissions_matrix import PLATFORM_PERMS

        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False

        # Superuser bypass
        if getattr(user, "is_superuser", False):
            return True

        action = self._resolve_action(request, view)
        if not action:
            return False

        # ---- platform users: static matrix ----
        platform_role = getattr(user, "platform_role", None)
        if platform_role:
            module_cfg = PLATFORM_PERMS.get(self.module, {})
            return platform_role in _to_set(module_cfg.get(action))

        # ---- CRM users: stored grant of their role ----
        capability = ACTION_TO_CAPABILITY.get(action)
        if not capability:
            # custom ops only exist in the platform matrix
            return False
        grant = user_grant(user, self.module)
        return bool(grant and grant.get(capability))

    # Allow calling PermX.action("propagate") on the already-bound class
    @classmethod
    def action(cls, action_name: str):
        module = getattr(cls, "module", None)
        if not module:
            raise RuntimeError(
                "RoleActionPermission.action() must be called on a class created via .for_module."
            )
        return RoleActionPermission.for_module(module=module, op=action_name, action_map=cls.action_map)


class RoleActionPermission:
    """
    Factory for DRF permission classes parameterized by (module, op).

    Use:
      RoleActionPermission.for_module("templates")
      RoleActionPermission.for_module("templates", op="propagate")
    """

    @classmethod
    def for_module(cls, module: str, op: str | None = None, action_map: dict | None = None):
        attrs = {
            "module": module,
            "op": op,
            "action_map": action_map,
            "__doc__": f"Permission guard for module='{module}', op='{op or 'auto'}'.",
        }
        name = f"Perm_{module}_{op or 'auto'}"
        return type(name, (_RoleActionPermission,), attrs)
