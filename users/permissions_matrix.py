# users/permissions_matrix.py
# Platform-level matrix: which platform roles may act on the admin modules.
#
# Only platform modules live here. CRM modules (contactos, propiedades,
# usuarios, ...) are authorized from the tenant role grants stored in
# permisos.RolModulo, which is what the template matrix edits.
#
# Mapping rules:
# - "Full access"  => list, create, update, delete
# - "View"         => list
# - custom ops (e.g. "propagate") are listed explicitly

PLATFORM_ADMIN = "PLATFORM_ADMIN"
PLATFORM_SUPPORT = "PLATFORM_SUPPORT"

PLATFORM_PERMS = {
    # --- Role templates + their permission matrix ---
    # Admin: Full access + propagate | Support: View
    "templates": {
        "list":      [PLATFORM_ADMIN, PLATFORM_SUPPORT],
        "create":    [PLATFORM_ADMIN],
        "update":    [PLATFORM_ADMIN],
        "delete":    [PLATFORM_ADMIN],
        # fan-out of one module grant to every inheriting role
        "propagate": [PLATFORM_ADMIN],
    },

    # --- Module catalog ---
    "modulos": {
        "list":   [PLATFORM_ADMIN, PLATFORM_SUPPORT],
        "create": [PLATFORM_ADMIN],
        "update": [PLATFORM_ADMIN],
        "delete": [PLATFORM_ADMIN],
    },

    # --- Users across tenants ---
    "usuarios": {
        "list":   [PLATFORM_ADMIN, PLATFORM_SUPPORT],
        "create": [PLATFORM_ADMIN],
        "update": [PLATFORM_ADMIN, PLATFORM_SUPPORT],
        "delete": [PLATFORM_ADMIN],
    },
}
