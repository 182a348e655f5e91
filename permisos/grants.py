# permisos/grants.py
"""
Capability flags + scope qualifiers of a module grant, and the dependency
rule between them.

Shared by the models, the API serializers and the matrix client, so this
module must stay free of Django imports.

Rule ("view is a prerequisite"):
  - puede_ver = False            => puede_crear = puede_editar = puede_eliminar = False
  - any of crear/editar/eliminar => puede_ver = True
"""

SCOPE_OWN = "own"
SCOPE_TEAM = "team"
SCOPE_ALL = "all"

SCOPES = (SCOPE_OWN, SCOPE_TEAM, SCOPE_ALL)
SCOPE_CHOICES = [
    (SCOPE_OWN, "Propios"),
    (SCOPE_TEAM, "Equipo"),
    (SCOPE_ALL, "Todos"),
]

VIEW = "puede_ver"
CREATE = "puede_crear"
EDIT = "puede_editar"
DELETE = "puede_eliminar"

CAPABILITY_FIELDS = (VIEW, CREATE, EDIT, DELETE)
DEPENDENT_CAPABILITIES = (CREATE, EDIT, DELETE)
SCOPE_FIELDS = ("alcance_ver", "alcance_editar")
GRANT_FIELDS = CAPABILITY_FIELDS + SCOPE_FIELDS

# JSON (camelCase) key -> python attribute
WIRE_TO_FIELD = {
    "puedeVer": VIEW,
    "puedeCrear": CREATE,
    "puedeEditar": EDIT,
    "puedeEliminar": DELETE,
    "alcanceVer": "alcance_ver",
    "alcanceEditar": "alcance_editar",
}
FIELD_TO_WIRE = {v: k for k, v in WIRE_TO_FIELD.items()}


def normalize_field(name: str) -> str:
    """Accept 'puedeVer' or 'puede_ver' and return the python attribute name."""
    if name in GRANT_FIELDS:
        return name
    if name in WIRE_TO_FIELD:
        return WIRE_TO_FIELD[name]
    raise ValueError(f"Unknown grant field: {name!r}")


def default_grant() -> dict:
    """The grant of a module nobody configured: nothing allowed, 'own' scopes."""
    return {
        VIEW: False,
        CREATE: False,
        EDIT: False,
        DELETE: False,
        "alcance_ver": SCOPE_OWN,
        "alcance_editar": SCOPE_OWN,
    }


def apply_field(grant: dict, field: str, value) -> dict:
    """
    Return a copy of `grant` with `field` set to `value` and the dependency
    rule re-applied. Raises ValueError for unknown fields or scopes.
    """
    field = normalize_field(field)
    updated = dict(grant)

    if field in SCOPE_FIELDS:
        if value not in SCOPES:
            raise ValueError(f"Invalid scope for {field}: {value!r}")
        updated[field] = value
        return updated

    value = bool(value)
    updated[field] = value

    if field == VIEW and not value:
        for dep in DEPENDENT_CAPABILITIES:
            updated[dep] = False

    if field in DEPENDENT_CAPABILITIES and value:
        updated[VIEW] = True

    return updated


def is_consistent(grant: dict) -> bool:
    if grant.get(VIEW):
        return True
    return not any(grant.get(dep) for dep in DEPENDENT_CAPABILITIES)


def grant_from_wire(data: dict | None) -> dict:
    """Build a full grant from a JSON payload. Missing payload/keys fall back to default_grant()."""
    grant = default_grant()
    if not data:
        return grant
    for wire_key, field in WIRE_TO_FIELD.items():
        if data.get(wire_key) is not None:
            grant[field] = data[wire_key]
    return grant


def grant_to_wire(grant: dict) -> dict:
    return {FIELD_TO_WIRE[f]: grant[f] for f in GRANT_FIELDS}
