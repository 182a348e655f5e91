# permisos/client/session.py
"""
Load / edit / save / propagate workflow for one template's matrix.

Remote failures never raise out of load(), save() or propagate(): they
land in `error` (a dismissible banner message) and leave the table as it
was, so no edit is ever lost to a failed call.
"""
import logging

from .api import ApiError
from .matrix import MatrixTable

logger = logging.getLogger(__name__)


class PropagationNotAllowed(Exception):
    """Client-side guard: the propagate control should have been disabled."""


def propagation_blocker(state: "MatrixSession", module_id) -> str | None:
    """Why `module_id` cannot be propagated right now, or None if it can."""
    if state.table.dirty:
        return "Guarda los cambios antes de propagar."
    if state.saving:
        return "Hay un guardado en curso."
    if module_id in state.propagating:
        return "Este módulo ya se está propagando."
    row = state.table.row(module_id)
    if row is None:
        return "Módulo desconocido."
    if not row.puede_ver:
        return "Un módulo sin permiso de ver no se puede propagar."
    return None


def can_propagate(state: "MatrixSession", module_id) -> bool:
    return propagation_blocker(state, module_id) is None


class MatrixSession:
    def __init__(self, api, template_id):
        self.api = api
        self.template_id = template_id

        self.template: dict | None = None
        self.table = MatrixTable()

        self.loading = False
        self.saving = False
        self.propagating: set = set()

        self.error: str | None = None
        self.success: str | None = None

        self._load_seq = 0

    # ---------- loader ----------

    def load(self) -> bool:
        """Fetch the matrix and replace the table. A superseded load's result is dropped."""
        self._load_seq += 1
        seq = self._load_seq
        self.loading = True
        self.error = None

        try:
            data = self.api.get_template_matrix(self.template_id)
        except ApiError as exc:
            if seq == self._load_seq:
                self.template = None
                self.table = MatrixTable()
                self.error = exc.message or "Error al cargar permisos"
                self.loading = False
            logger.warning("loading matrix of template %s failed: %s", self.template_id, exc.message)
            return False

        if seq != self._load_seq:
            return False

        self.template = data.get("template")
        self.table = MatrixTable.from_matrix(data)
        self.loading = False
        return True

    # ---------- edit engine ----------

    def set_field(self, module_id, field: str, value) -> bool:
        changed = self.table.set_field(module_id, field, value)
        if changed:
            self.success = None
        return changed

    def set_field_for_all(self, field: str, value):
        self.table.set_field_for_all(field, value)
        self.success = None

    # ---------- committer ----------

    def save(self) -> bool:
        """
        PUT the viewable rows as the template's full grant set. Refused (no
        remote call) while another save runs, before a successful load, or
        when there is nothing to save: an empty table would wipe the template.
        """
        if self.saving:
            logger.info("save of template %s ignored: another save is in flight", self.template_id)
            return False
        if self.template is None:
            logger.info("save of template %s ignored: matrix not loaded", self.template_id)
            return False
        if not self.table.dirty:
            return False

        self.saving = True
        self.error = None
        self.success = None
        try:
            self.api.update_template_modulos(self.template_id, self.table.rows_to_save())
        except ApiError as exc:
            self.error = exc.message or "Error al guardar permisos"
            logger.warning("saving matrix of template %s failed: %s", self.template_id, exc.message)
            return False
        finally:
            self.saving = False

        self.table.mark_saved()
        self.success = "Permisos guardados correctamente"
        return True

    def propagate(self, module_id) -> int | None:
        """
        Push one module's grant to every role inheriting from the template.
        Raises PropagationNotAllowed (no remote call) when the guard refuses.
        """
        reason = propagation_blocker(self, module_id)
        if reason:
            raise PropagationNotAllowed(reason)

        row = self.table.row(module_id)
        self.propagating.add(module_id)
        self.error = None
        try:
            count = self.api.propagate_template_modulo(self.template_id, module_id, row.to_wire())
        except ApiError as exc:
            self.error = exc.message or "Error al propagar"
            logger.warning(
                "propagating module %s of template %s failed: %s",
                module_id, self.template_id, exc.message,
            )
            return None
        finally:
            self.propagating.discard(module_id)

        self.success = f"Propagado a {count} roles"
        return count

    def dismiss_error(self):
        self.error = None
