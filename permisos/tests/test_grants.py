from django.test import SimpleTestCase

from permisos.grants import (
    CAPABILITY_FIELDS,
    apply_field,
    default_grant,
    grant_from_wire,
    grant_to_wire,
    is_consistent,
    normalize_field,
)


class GrantRuleTest(SimpleTestCase):
    def test_default_grant_is_all_false_with_own_scopes(self):
        g = default_grant()
        self.assertFalse(any(g[f] for f in CAPABILITY_FIELDS))
        self.assertEqual(g["alcance_ver"], "own")
        self.assertEqual(g["alcance_editar"], "own")

    def test_disabling_view_clears_dependents(self):
        g = {**default_grant(), "puede_ver": True, "puede_crear": True, "puede_editar": True, "puede_eliminar": True}
        out = apply_field(g, "puedeVer", False)
        self.assertEqual(
            [out[f] for f in CAPABILITY_FIELDS],
            [False, False, False, False],
        )

    def test_enabling_dependent_forces_view(self):
        for field in ("puedeCrear", "puedeEditar", "puedeEliminar"):
            out = apply_field(default_grant(), field, True)
            self.assertTrue(out["puede_ver"], field)

    def test_disabling_dependent_keeps_view(self):
        g = apply_field(default_grant(), "puede_editar", True)
        out = apply_field(g, "puede_editar", False)
        self.assertTrue(out["puede_ver"])
        self.assertFalse(out["puede_editar"])

    def test_apply_field_does_not_mutate_input(self):
        g = default_grant()
        apply_field(g, "puede_crear", True)
        self.assertEqual(g, default_grant())

    def test_scope_fields(self):
        out = apply_field(default_grant(), "alcanceVer", "team")
        self.assertEqual(out["alcance_ver"], "team")
        with self.assertRaises(ValueError):
            apply_field(default_grant(), "alcanceEditar", "everyone")

    def test_unknown_field(self):
        with self.assertRaises(ValueError):
            normalize_field("puedeExportar")

    def test_is_consistent(self):
        self.assertTrue(is_consistent(default_grant()))
        self.assertFalse(is_consistent({**default_grant(), "puede_eliminar": True}))
        self.assertTrue(is_consistent({**default_grant(), "puede_ver": True, "puede_eliminar": True}))

    def test_wire_conversion(self):
        self.assertEqual(grant_from_wire(None), default_grant())
        g = grant_from_wire({"puedeVer": True, "alcanceVer": "all"})
        self.assertTrue(g["puede_ver"])
        self.assertEqual(g["alcance_ver"], "all")
        self.assertEqual(g["alcance_editar"], "own")
        self.assertEqual(grant_to_wire(g)["alcanceVer"], "all")
        self.assertEqual(set(grant_to_wire(g)), {
            "puedeVer", "puedeCrear", "puedeEditar", "puedeEliminar", "alcanceVer", "alcanceEditar",
        })
