import json
from unittest import mock

import requests
from django.test import SimpleTestCase

from permisos.client.api import ApiError, CrmApi, MissingCredential


def _response(status=200, body=None, reason="OK"):
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp._content = b"" if body is None else json.dumps(body).encode()
    return resp


class CrmApiTest(SimpleTestCase):
    def setUp(self):
        self.session = mock.Mock(spec=requests.Session)
        self.api = CrmApi(lambda: "tok-123", base_url="http://crm.local/api/", timeout=5, session=self.session)

    def test_bearer_header_and_url(self):
        self.session.request.return_value = _response(body={"template": {"id": 3}, "modulos": []})

        data = self.api.get_template_matrix(3)

        self.assertEqual(data["modulos"], [])
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "http://crm.local/api/admin/templates/3/matrix/"))
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok-123")
        self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")
        self.assertEqual(kwargs["timeout"], 5)

    def test_missing_token_fails_without_request(self):
        for token in (None, "", "  "):
            api = CrmApi(lambda: token, base_url="http://crm.local/api", session=self.session)
            with self.assertRaises(MissingCredential) as ctx:
                api.get_template_matrix(1)
            self.assertEqual(ctx.exception.status, 401)
        self.session.request.assert_not_called()

    def test_error_message_from_body(self):
        self.session.request.return_value = _response(403, {"detail": "Not allowed"}, "Forbidden")
        with self.assertRaises(ApiError) as ctx:
            self.api.update_template_modulos(1, [])
        self.assertEqual(ctx.exception.message, "Not allowed")
        self.assertEqual(ctx.exception.status, 403)

        self.session.request.return_value = _response(400, {"message": "bad grant", "detail": "x"}, "Bad Request")
        with self.assertRaises(ApiError) as ctx:
            self.api.update_template_modulos(1, [])
        self.assertEqual(ctx.exception.message, "bad grant")

    def test_error_message_fallback(self):
        self.session.request.return_value = _response(500, None, "Internal Server Error")
        with self.assertRaises(ApiError) as ctx:
            self.api.get_template_matrix(1)
        self.assertEqual(ctx.exception.message, "Error 500: Internal Server Error")

    def test_network_error(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ApiError) as ctx:
            self.api.get_template_matrix(1)
        self.assertEqual(ctx.exception.message, "No se pudo conectar con el servidor API en http://crm.local/api")
        self.assertIsNone(ctx.exception.status)

    def test_update_sends_list_and_unwraps(self):
        sent = [{"moduloId": 1, "puedeVer": True}]
        self.session.request.return_value = _response(body={"modulos": sent})
        self.assertEqual(self.api.update_template_modulos(2, sent), sent)
        args, kwargs = self.session.request.call_args
        self.assertEqual(args[0], "PUT")
        self.assertEqual(kwargs["json"], sent)

    def test_propagate_returns_count(self):
        self.session.request.return_value = _response(body={"propagatedCount": 7})
        grant = {"puedeVer": True}
        self.assertEqual(self.api.propagate_template_modulo(2, 9, grant), 7)
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", "http://crm.local/api/admin/templates/2/modulos/9/propagate/"))
        self.assertEqual(kwargs["json"], grant)

    def test_propagate_malformed_response(self):
        for body in (None, {}, {"propagatedCount": "7"}):
            self.session.request.return_value = _response(body=body)
            with self.assertRaises(ApiError):
                self.api.propagate_template_modulo(2, 9, {})

    def test_list_templates(self):
        self.session.request.return_value = _response(body={"templates": [{"id": 1}]})
        self.assertEqual(self.api.list_templates(include_inactive=True), [{"id": 1}])
        args, _ = self.session.request.call_args
        self.assertTrue(args[1].endswith("admin/templates/?incluirInactivos=1"))
