# permisos/client/matrix.py
"""
In-memory editable permission matrix of one template.

Every edit goes through permisos.grants.apply_field, so the
"view is a prerequisite" rule holds after each single or bulk toggle.
"""
from dataclasses import asdict, dataclass

from ..grants import (
    GRANT_FIELDS,
    SCOPE_OWN,
    apply_field,
    default_grant,
    grant_from_wire,
    grant_to_wire,
    normalize_field,
)

CATEGORY_LABELS = {
    "crm": "CRM",
    "finanzas": "Finanzas",
    "rendimiento": "Rendimiento",
    "comunicacion": "Comunicación",
    "features": "Features",
    "admin": "Administración",
}


@dataclass
class ModuloRow:
    id: object
    nombre: str
    categoria: str
    orden: int
    es_submenu: bool = False
    modulo_padre_id: object = None
    puede_ver: bool = False
    puede_crear: bool = False
    puede_editar: bool = False
    puede_eliminar: bool = False
    alcance_ver: str = SCOPE_OWN
    alcance_editar: str = SCOPE_OWN

    @classmethod
    def from_wire(cls, m: dict) -> "ModuloRow":
        # absent "permisos" => default_grant()
        return cls(
            id=m["id"],
            nombre=m["nombre"],
            categoria=m["categoria"],
            orden=m.get("orden", 0),
            es_submenu=bool(m.get("esSubmenu")),
            modulo_padre_id=m.get("moduloPadreId"),
            **grant_from_wire(m.get("permisos")),
        )

    def grant(self) -> dict:
        return {f: getattr(self, f) for f in GRANT_FIELDS}

    def set_grant(self, grant: dict):
        for f in GRANT_FIELDS:
            setattr(self, f, grant[f])

    def to_wire(self) -> dict:
        return {"moduloId": self.id, **grant_to_wire(self.grant())}


def group_modules(rows) -> dict[str, list[ModuloRow]]:
    """
    Presentation order: each top-level module (by orden) followed by its
    children (by orden), then bucketed by categoria keeping that order.
    Children whose parent is not loaded are left out.
    """
    parents = sorted((r for r in rows if not r.es_submenu), key=lambda r: r.orden)
    children = [r for r in rows if r.es_submenu]

    ordered = []
    for parent in parents:
        ordered.append(parent)
        kids = sorted((c for c in children if c.modulo_padre_id == parent.id), key=lambda c: c.orden)
        ordered.extend(kids)

    grouped: dict[str, list[ModuloRow]] = {}
    for row in ordered:
        grouped.setdefault(row.categoria, []).append(row)
    return grouped


class MatrixTable:
    def __init__(self, rows=()):
        self.rows: list[ModuloRow] = list(rows)
        self._edited = False
        self._baseline = self._snapshot()

    @classmethod
    def from_matrix(cls, data: dict) -> "MatrixTable":
        return cls(ModuloRow.from_wire(m) for m in data.get("modulos", []))

    def _snapshot(self):
        return [asdict(r) for r in self.rows]

    @property
    def dirty(self) -> bool:
        return self._edited or self._snapshot() != self._baseline

    def row(self, module_id) -> ModuloRow | None:
        for r in self.rows:
            if r.id == module_id:
                return r
        return None

    # ---------- edits ----------

    def set_field(self, module_id, field: str, value) -> bool:
        """
        Set one field of one module and re-apply the dependency rule.
        Unknown module ids are ignored (returns False).
        """
        field = normalize_field(field)
        row = self.row(module_id)
        if row is None:
            return False
        row.set_grant(apply_field(row.grant(), field, value))
        self._edited = True
        return True

    def set_field_for_all(self, field: str, value):
        field = normalize_field(field)
        for row in self.rows:
            row.set_grant(apply_field(row.grant(), field, value))
        self._edited = True

    # ---------- commit support ----------

    def rows_to_save(self) -> list[dict]:
        # puede_ver=False means "no grant" and is not sent
        return [r.to_wire() for r in self.rows if r.puede_ver]

    def mark_saved(self):
        """The current rows become the baseline, as a reload would return them."""
        for r in self.rows:
            if not r.puede_ver:
                r.set_grant(default_grant())
        self._baseline = self._snapshot()
        self._edited = False

    def grouped(self) -> dict[str, list[ModuloRow]]:
        return group_modules(self.rows)
