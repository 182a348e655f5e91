from django.test import SimpleTestCase

from permisos.client.api import ApiError
from permisos.client.session import MatrixSession, PropagationNotAllowed, can_propagate, propagation_blocker


def _matrix(*modulos):
    return {"template": {"id": 1, "nombre": "Asesor"}, "modulos": list(modulos)}


def _modulo(id, permisos=None, **kw):
    base = {
        "id": id,
        "nombre": f"Modulo {id}",
        "categoria": "crm",
        "orden": id,
        "esSubmenu": False,
        "moduloPadreId": None,
        "permisos": permisos,
    }
    base.update(kw)
    return base


VIEW_ONLY = {
    "puedeVer": True, "puedeCrear": False, "puedeEditar": False, "puedeEliminar": False,
    "alcanceVer": "team", "alcanceEditar": "own",
}


class FakeApi:
    def __init__(self, matrix=None):
        self.matrix = matrix or _matrix(_modulo(1, VIEW_ONLY), _modulo(2))
        self.calls = []
        self.fail = {}
        self.propagated_count = 4
        self.on_save = None

    def _maybe_fail(self, name):
        if name in self.fail:
            raise self.fail[name]

    def get_template_matrix(self, template_id):
        self.calls.append(("matrix", template_id))
        self._maybe_fail("matrix")
        return self.matrix

    def update_template_modulos(self, template_id, modulos):
        self.calls.append(("save", template_id, modulos))
        if self.on_save:
            self.on_save()
        self._maybe_fail("save")
        return modulos

    def propagate_template_modulo(self, template_id, modulo_id, grant):
        self.calls.append(("propagate", template_id, modulo_id, grant))
        self._maybe_fail("propagate")
        return self.propagated_count


class LoaderTest(SimpleTestCase):
    def test_load_builds_rows(self):
        session = MatrixSession(FakeApi(), 1)
        self.assertTrue(session.load())
        self.assertEqual(session.template["nombre"], "Asesor")
        self.assertEqual(len(session.table.rows), 2)
        self.assertTrue(session.table.row(1).puede_ver)
        self.assertEqual(session.table.row(1).alcance_ver, "team")
        self.assertFalse(session.table.row(2).puede_ver)
        self.assertFalse(session.table.dirty)
        self.assertFalse(session.loading)

    def test_load_failure_leaves_table_empty_and_can_retry(self):
        api = FakeApi()
        api.fail["matrix"] = ApiError("Error 500: Internal Server Error", status=500)
        session = MatrixSession(api, 1)

        self.assertFalse(session.load())
        self.assertEqual(session.table.rows, [])
        self.assertEqual(session.error, "Error 500: Internal Server Error")
        self.assertFalse(session.loading)

        del api.fail["matrix"]
        self.assertTrue(session.load())
        self.assertIsNone(session.error)
        self.assertEqual(len(session.table.rows), 2)

    def test_reload_replaces_edits(self):
        session = MatrixSession(FakeApi(), 1)
        session.load()
        session.set_field(2, "puedeCrear", True)
        session.load()
        self.assertFalse(session.table.row(2).puede_ver)
        self.assertFalse(session.table.dirty)

    def test_superseded_load_result_is_dropped(self):
        stale = _matrix(_modulo(1))
        fresh = _matrix(_modulo(1, VIEW_ONLY), _modulo(2), _modulo(3))
        session = None

        class RacingApi(FakeApi):
            def get_template_matrix(self, template_id):
                if not self.calls:
                    self.calls.append("first")
                    # a newer load starts and finishes before this one returns
                    self.matrix = fresh
                    session.load()
                    return stale
                return super().get_template_matrix(template_id)

        session = MatrixSession(RacingApi(), 1)
        self.assertFalse(session.load())
        self.assertEqual(len(session.table.rows), 3)


class CommitterSaveTest(SimpleTestCase):
    def setUp(self):
        self.api = FakeApi()
        self.session = MatrixSession(self.api, 1)
        self.session.load()

    def test_save_sends_only_viewable_rows_and_clears_dirty(self):
        self.session.set_field(2, "puedeEliminar", True)
        self.assertTrue(self.session.save())

        _, template_id, sent = self.api.calls[-1]
        self.assertEqual(template_id, 1)
        self.assertEqual([m["moduloId"] for m in sent], [1, 2])
        self.assertTrue(sent[1]["puedeVer"])
        self.assertFalse(self.session.table.dirty)
        self.assertEqual(self.session.success, "Permisos guardados correctamente")

    def test_save_omits_disabled_modules(self):
        self.session.set_field(1, "puedeVer", False)
        self.session.save()
        self.assertEqual(self.api.calls[-1][2], [])

    def test_save_failure_keeps_edits_and_dirty(self):
        self.api.fail["save"] = ApiError("Validation failed", status=400)
        self.session.set_field(2, "puedeCrear", True)

        self.assertFalse(self.session.save())
        self.assertTrue(self.session.table.dirty)
        self.assertTrue(self.session.table.row(2).puede_crear)
        self.assertEqual(self.session.error, "Validation failed")
        self.assertFalse(self.session.saving)

        self.session.dismiss_error()
        self.assertIsNone(self.session.error)

    def test_save_without_changes_sends_nothing(self):
        self.assertFalse(self.session.save())
        self.assertEqual([c for c in self.api.calls if c[0] == "save"], [])

    def test_save_refused_until_a_load_succeeds(self):
        api = FakeApi()
        api.fail["matrix"] = ApiError("Error 500: Internal Server Error", status=500)
        session = MatrixSession(api, 1)
        session.load()

        # marks the empty table dirty
        session.set_field_for_all("puedeVer", True)
        self.assertTrue(session.table.dirty)
        self.assertFalse(session.save())
        self.assertEqual([c for c in api.calls if c[0] == "save"], [])
        self.assertEqual(session.error, "Error 500: Internal Server Error")

    def test_failed_reload_blocks_save(self):
        self.session.set_field(2, "puedeVer", True)
        self.api.fail["matrix"] = ApiError("Error 502: Bad Gateway", status=502)
        self.assertFalse(self.session.load())

        self.session.set_field_for_all("puedeVer", False)
        self.assertFalse(self.session.save())
        self.assertEqual([c for c in self.api.calls if c[0] == "save"], [])

    def test_save_is_not_reentrant(self):
        nested = []
        self.api.on_save = lambda: nested.append(self.session.save())
        self.session.set_field(2, "puedeVer", True)
        self.assertTrue(self.session.save())
        self.assertEqual(nested, [False])
        self.assertEqual(len([c for c in self.api.calls if c[0] == "save"]), 1)


class CommitterPropagateTest(SimpleTestCase):
    def setUp(self):
        self.api = FakeApi()
        self.session = MatrixSession(self.api, 1)
        self.session.load()

    def _propagate_calls(self):
        return [c for c in self.api.calls if c[0] == "propagate"]

    def test_propagate_returns_count(self):
        self.assertTrue(can_propagate(self.session, 1))
        self.assertEqual(self.session.propagate(1), 4)
        _, template_id, modulo_id, grant = self._propagate_calls()[0]
        self.assertEqual((template_id, modulo_id), (1, 1))
        self.assertEqual(grant["alcanceVer"], "team")
        self.assertEqual(self.session.success, "Propagado a 4 roles")
        self.assertEqual(self.session.propagating, set())

    def test_propagate_while_dirty_is_rejected_without_remote_call(self):
        self.session.set_field(2, "puedeVer", True)
        self.assertFalse(can_propagate(self.session, 1))
        self.assertEqual(propagation_blocker(self.session, 1), "Guarda los cambios antes de propagar.")
        with self.assertRaises(PropagationNotAllowed):
            self.session.propagate(1)
        self.assertEqual(self._propagate_calls(), [])

    def test_propagate_allowed_again_after_save(self):
        self.session.set_field(2, "puedeVer", True)
        self.session.save()
        self.assertEqual(self.session.propagate(2), 4)

    def test_propagate_disabled_module_is_rejected(self):
        self.assertFalse(can_propagate(self.session, 2))
        with self.assertRaises(PropagationNotAllowed):
            self.session.propagate(2)
        with self.assertRaises(PropagationNotAllowed):
            self.session.propagate(99)
        self.assertEqual(self._propagate_calls(), [])

    def test_propagate_blocked_while_saving_or_same_module_pending(self):
        self.session.saving = True
        self.assertFalse(can_propagate(self.session, 1))
        self.session.saving = False

        self.session.propagating.add(1)
        self.assertFalse(can_propagate(self.session, 1))

    def test_propagate_failure_is_reported_and_keeps_state(self):
        self.api.fail["propagate"] = ApiError("Error 502: Bad Gateway", status=502)
        self.assertIsNone(self.session.propagate(1))
        self.assertEqual(self.session.error, "Error 502: Bad Gateway")
        self.assertEqual(len(self.session.table.rows), 2)
        self.assertTrue(self.session.table.row(1).puede_ver)
        self.assertEqual(self.session.propagating, set())
