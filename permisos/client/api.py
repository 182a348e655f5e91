# permisos/client/api.py
"""
Thin `requests` wrapper around the template matrix endpoints.

Every call asks `token_provider` for a bearer token right before the
request; no token is a hard failure (MissingCredential), never an
anonymous request.
"""
import logging
from typing import Callable

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """HTTP or transport failure, with a message fit for the error banner."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class MissingCredential(ApiError):
    pass


def _error_message(resp) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return f"Error {resp.status_code}: {resp.reason}"


class CrmApi:
    def __init__(
        self,
        token_provider: Callable[[], str | None],
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.token_provider = token_provider
        self.base_url = (base_url or settings.CRM_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else getattr(settings, "CRM_API_TIMEOUT", 15)
        self.session = session or requests.Session()

    def _credential(self) -> str:
        token = self.token_provider()
        if not token or not str(token).strip():
            raise MissingCredential("No se pudo obtener el token de autenticación", status=401)
        return token

    def request(self, method: str, path: str, payload=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._credential()}",
        }
        logger.debug("%s %s", method, url)

        try:
            resp = self.session.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("network error on %s %s: %s", method, url, exc)
            raise ApiError(f"No se pudo conectar con el servidor API en {self.base_url}") from exc

        if not resp.ok:
            message = _error_message(resp)
            logger.warning("%s %s failed (%s): %s", method, url, resp.status_code, message)
            raise ApiError(message, status=resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ---------- templates ----------

    def list_templates(self, include_inactive: bool = False) -> list[dict]:
        path = "admin/templates/"
        if include_inactive:
            path += "?incluirInactivos=1"
        return self.request("GET", path)["templates"]

    def get_template_matrix(self, template_id) -> dict:
        return self.request("GET", f"admin/templates/{template_id}/matrix/")

    def update_template_modulos(self, template_id, modulos: list[dict]) -> list[dict]:
        data = self.request("PUT", f"admin/templates/{template_id}/modulos/", modulos)
        return data["modulos"]

    def propagate_template_modulo(self, template_id, modulo_id, grant: dict) -> int:
        data = self.request("POST", f"admin/templates/{template_id}/modulos/{modulo_id}/propagate/", grant)
        count = (data or {}).get("propagatedCount")
        if not isinstance(count, int):
            raise ApiError("Respuesta de propagación inválida: falta propagatedCount")
        return count
