import itertools

from django.test import SimpleTestCase

from permisos.client.matrix import MatrixTable, ModuloRow, group_modules
from permisos.grants import DEPENDENT_CAPABILITIES


def _row(id, **kw):
    base = {"nombre": f"Modulo {id}", "categoria": "crm", "orden": 0}
    base.update(kw)
    return ModuloRow(id=id, **base)


def _invariant_holds(table) -> bool:
    return all(r.puede_ver or not any(getattr(r, f) for f in DEPENDENT_CAPABILITIES) for r in table.rows)


class ModuloRowTest(SimpleTestCase):
    def test_from_wire_without_permisos_uses_default_grant(self):
        row = ModuloRow.from_wire({
            "id": 7, "nombre": "Contactos", "categoria": "crm", "orden": 1,
            "esSubmenu": False, "moduloPadreId": None, "permisos": None,
        })
        self.assertFalse(row.puede_ver)
        self.assertFalse(row.puede_eliminar)
        self.assertEqual(row.alcance_ver, "own")
        self.assertEqual(row.alcance_editar, "own")

    def test_to_wire(self):
        row = _row(3, puede_ver=True, alcance_ver="team")
        self.assertEqual(row.to_wire(), {
            "moduloId": 3,
            "puedeVer": True,
            "puedeCrear": False,
            "puedeEditar": False,
            "puedeEliminar": False,
            "alcanceVer": "team",
            "alcanceEditar": "own",
        })


class EditEngineTest(SimpleTestCase):
    def test_edit_then_disable_view_scenario(self):
        table = MatrixTable([_row("M1")])

        table.set_field("M1", "puedeEditar", True)
        m1 = table.row("M1")
        self.assertEqual(
            (m1.puede_ver, m1.puede_crear, m1.puede_editar, m1.puede_eliminar),
            (True, False, True, False),
        )

        table.set_field("M1", "puedeVer", False)
        self.assertEqual(
            (m1.puede_ver, m1.puede_crear, m1.puede_editar, m1.puede_eliminar),
            (False, False, False, False),
        )

    def test_bulk_enable_view_keeps_other_flags(self):
        rows = [
            _row(1, puede_ver=True, puede_crear=True),
            _row(2, puede_ver=True, puede_editar=True, puede_eliminar=True),
            _row(3, puede_ver=True),
            _row(4),
            _row(5),
        ]
        table = MatrixTable(rows)
        before = {r.id: (r.puede_crear, r.puede_editar, r.puede_eliminar) for r in rows[:3]}

        table.set_field_for_all("puedeVer", True)

        self.assertTrue(all(r.puede_ver for r in table.rows))
        for r in table.rows[:3]:
            self.assertEqual((r.puede_crear, r.puede_editar, r.puede_eliminar), before[r.id])

    def test_bulk_clear_is_idempotent(self):
        table = MatrixTable([
            _row(1, puede_ver=True, puede_crear=True, alcance_ver="all"),
            _row(2, puede_ver=True, puede_eliminar=True),
            _row(3),
        ])
        table.set_field_for_all("puedeVer", False)
        once = [r.grant() for r in table.rows]
        table.set_field_for_all("puedeVer", False)
        self.assertEqual([r.grant() for r in table.rows], once)
        self.assertFalse(any(r.puede_ver or r.puede_crear or r.puede_eliminar for r in table.rows))

    def test_bulk_enable_dependent_forces_view_everywhere(self):
        table = MatrixTable([_row(1), _row(2)])
        table.set_field_for_all("puede_eliminar", True)
        self.assertTrue(all(r.puede_ver and r.puede_eliminar for r in table.rows))

    def test_invariant_after_every_edit(self):
        table = MatrixTable([_row(1), _row(2, puede_ver=True, puede_crear=True)])
        fields = ["puedeVer", "puedeCrear", "puedeEditar", "puedeEliminar"]
        for field, value, target in itertools.product(fields, (True, False), (1, 2, None)):
            if target is None:
                table.set_field_for_all(field, value)
            else:
                table.set_field(target, field, value)
            self.assertTrue(_invariant_holds(table), (field, value, target))

    def test_scope_edit(self):
        table = MatrixTable([_row(1, puede_ver=True)])
        table.set_field(1, "alcanceEditar", "all")
        self.assertEqual(table.row(1).alcance_editar, "all")
        with self.assertRaises(ValueError):
            table.set_field(1, "alcanceVer", "nobody")

    def test_unknown_module_is_noop(self):
        table = MatrixTable([_row(1)])
        self.assertFalse(table.set_field(99, "puedeVer", True))
        self.assertFalse(table.dirty)
        self.assertFalse(table.row(1).puede_ver)

    def test_dirty_tracking(self):
        table = MatrixTable([_row(1)])
        self.assertFalse(table.dirty)
        table.set_field(1, "puedeVer", True)
        self.assertTrue(table.dirty)
        table.mark_saved()
        self.assertFalse(table.dirty)

    def test_direct_row_change_counts_as_dirty(self):
        table = MatrixTable([_row(1)])
        table.rows[0].puede_ver = True
        self.assertTrue(table.dirty)


class CommitSupportTest(SimpleTestCase):
    def test_rows_to_save_only_includes_viewable(self):
        table = MatrixTable([_row(1, puede_ver=True), _row(2), _row(3, puede_ver=True, puede_crear=True)])
        self.assertEqual([r["moduloId"] for r in table.rows_to_save()], [1, 3])

    def test_mark_saved_resets_unsaved_rows_to_default(self):
        table = MatrixTable([_row(1, alcance_ver="all", alcance_editar="team")])
        table.mark_saved()
        self.assertEqual(table.row(1).alcance_ver, "own")
        self.assertEqual(table.row(1).alcance_editar, "own")


class GroupingTest(SimpleTestCase):
    def test_parents_followed_by_children_grouped_by_category(self):
        rows = [
            _row("reportes", categoria="rendimiento", orden=2),
            _row("ventas", categoria="finanzas", orden=2, es_submenu=True, modulo_padre_id="finanzas"),
            _row("contactos", categoria="crm", orden=1),
            _row("finanzas", categoria="finanzas", orden=1),
            _row("comisiones", categoria="finanzas", orden=1, es_submenu=True, modulo_padre_id="finanzas"),
            _row("metas", categoria="rendimiento", orden=1),
            _row("huerfano", categoria="crm", orden=3, es_submenu=True, modulo_padre_id="nope"),
        ]
        grouped = group_modules(rows)

        self.assertEqual(list(grouped), ["crm", "finanzas", "rendimiento"])
        self.assertEqual([r.id for r in grouped["crm"]], ["contactos"])
        self.assertEqual([r.id for r in grouped["finanzas"]], ["finanzas", "comisiones", "ventas"])
        self.assertEqual([r.id for r in grouped["rendimiento"]], ["metas", "reportes"])
