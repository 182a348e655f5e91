# permisos/services/matrix.py
"""
Server side of the template permission matrix.

  build_matrix            -> GET  /admin/templates/{id}/matrix
  replace_template_grants -> PUT  /admin/templates/{id}/modulos
  upsert_template_grant   -> PUT  /admin/templates/{id}/modulos/{moduloId}
  remove_template_grant   -> DELETE same
  propagate_module        -> POST /admin/templates/{id}/modulos/{moduloId}/propagate

Only grants with puede_ver=True are stored; a module without a row reads
back as default_grant().
"""
import logging
from typing import Iterable

from django.db import transaction
from django.db.models import Q

from ..grants import GRANT_FIELDS, VIEW, apply_field, default_grant, grant_to_wire, is_consistent
from ..models import Modulo, Rol, RolModulo, RolTemplate, TemplateModulo

logger = logging.getLogger(__name__)


class StaleGrant(Exception):
    """The grant sent for propagation is not the one the template has stored."""


class InvalidGrant(ValueError):
    pass


def _check(grant: dict):
    if not is_consistent(grant):
        raise InvalidGrant("puedeVer es obligatorio para puedeCrear/puedeEditar/puedeEliminar.")


def _pick(grant: dict) -> dict:
    base = default_grant()
    base.update({f: grant[f] for f in GRANT_FIELDS if f in grant})
    return base


# ---------- read ----------
def build_matrix(template: RolTemplate) -> list[dict]:
    """One entry per active module, with the stored grant or None."""
    stored = {g.modulo_id: g for g in template.grants.all()}
    out = []
    for m in Modulo.objects.filter(activo=True).order_by("categoria", "orden", "id"):
        g = stored.get(m.id)
        out.append({
            "id": m.id,
            "codigo": m.codigo,
            "nombre": m.nombre,
            "categoria": m.categoria,
            "orden": m.orden,
            "esSubmenu": m.es_submenu,
            "moduloPadreId": m.modulo_padre_id,
            "permisos": grant_to_wire(g.as_grant()) if g else None,
        })
    return out


# ---------- write ----------
@transaction.atomic
def replace_template_grants(template: RolTemplate, items: Iterable[dict]) -> list[TemplateModulo]:
    """
    Make `items` the template's full grant set.

    Each item is {"modulo": Modulo, <grant fields>, optional "permisos_campos"}.
    Items with puede_ver=False mean "no grant" and are dropped, as are stored
    grants for active modules that are not in the set. Grants on inactive
    modules are not part of the matrix and are kept unless cleared explicitly.
    """
    RolTemplate.objects.select_for_update().filter(pk=template.pk).first()

    keep: dict[int, dict] = {}
    cleared: list[int] = []
    for item in items:
        grant = _pick(item)
        _check(grant)
        if not grant[VIEW]:
            cleared.append(item["modulo"].id)
            continue
        keep[item["modulo"].id] = {**grant, "permisos_campos": item.get("permisos_campos")}

    removed, _ = (
        template.grants
        .filter(Q(modulo__activo=True) | Q(modulo_id__in=cleared))
        .exclude(modulo_id__in=list(keep))
        .delete()
    )

    saved = []
    for modulo_id, grant in keep.items():
        campos = grant.pop("permisos_campos")
        defaults = dict(grant)
        if campos is not None:
            defaults["permisos_campos"] = campos
        row, _ = TemplateModulo.objects.update_or_create(
            template=template, modulo_id=modulo_id, defaults=defaults
        )
        saved.append(row)

    logger.info(
        "template %s: saved %d module grants (%d removed)",
        template.codigo, len(saved), removed,
    )
    return saved


@transaction.atomic
def upsert_template_grant(template: RolTemplate, modulo: Modulo, data: dict) -> TemplateModulo | None:
    """
    Merge `data` into the stored grant of one module. Ending with
    puede_ver=False removes the row (returns None).
    """
    current = TemplateModulo.objects.filter(template=template, modulo=modulo).first()
    grant = current.as_grant() if current else default_grant()
    grant.update({f: data[f] for f in GRANT_FIELDS if f in data})
    if VIEW in data and not data[VIEW]:
        grant = apply_field(grant, VIEW, False)
    _check(grant)

    if not grant[VIEW]:
        if current:
            current.delete()
        return None

    defaults = dict(grant)
    if data.get("permisos_campos") is not None:
        defaults["permisos_campos"] = data["permisos_campos"]
    row, _ = TemplateModulo.objects.update_or_create(template=template, modulo=modulo, defaults=defaults)
    return row


def remove_template_grant(template: RolTemplate, modulo: Modulo) -> bool:
    deleted, _ = TemplateModulo.objects.filter(template=template, modulo=modulo).delete()
    return bool(deleted)


# ---------- propagation ----------
@transaction.atomic
def propagate_module(template: RolTemplate, modulo: Modulo, grant: dict) -> int:
    """
    Overwrite `modulo`'s grant on every role inheriting from `template`.

    The supplied grant must equal the template's stored grant: a role must
    never receive something the template does not durably hold. Raises
    InvalidGrant / StaleGrant; all-or-nothing.
    """
    grant = _pick(grant)
    _check(grant)
    if not grant[VIEW]:
        raise InvalidGrant("Un módulo sin puedeVer no se puede propagar.")

    # serialize concurrent saves/propagations on the same template
    RolTemplate.objects.select_for_update().filter(pk=template.pk).first()

    stored = TemplateModulo.objects.filter(template=template, modulo=modulo).first()
    if stored is None or stored.as_grant() != grant:
        raise StaleGrant(
            "El permiso guardado de la plantilla para este módulo no coincide con el enviado. "
            "Guarda la matriz y recarga antes de propagar."
        )

    count = 0
    for rol in Rol.objects.filter(template=template).only("id"):
        RolModulo.objects.update_or_create(rol=rol, modulo=modulo, defaults=dict(grant))
        count += 1

    logger.info(
        "template %s: propagated module %s to %d roles",
        template.codigo, modulo.codigo, count,
    )
    return count
