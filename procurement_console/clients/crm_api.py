"""REST adapter for the external CRM.

Authentication is delegated to a TokenCache built around CrmLogin. Every
CRM request carries ``Authorization: Bearer <token>``; a 401 answer drops
the cached token and the request is sent once more with a fresh login.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import requests

from procurement_console.clients.http import RestClient, build_session
from procurement_console.core.domain.errors import AuthenticationError
from procurement_console.core.domain.types import LoginResult, Prospect

if TYPE_CHECKING:
    from procurement_console.core.auth.token_cache import TokenCache

LOGGER = logging.getLogger(__name__)

LOGIN_PATH = "/api/Auth/Login"
PROSPECTS_PATH = "/api/ContactoTipo/Prospecto"
VENDOR_PATH = "/api/Proveedor"


class CrmLogin:
    """Callable performing one CRM login; plugged into TokenCache."""

    def __init__(
        self,
        *,
        base_url: str,
        email: str,
        password: str,
        timeout_s: float = 12.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._email = email
        self._password = password
        self._timeout_s = timeout_s
        self._session = session if session is not None else build_session()

    def __call__(self) -> LoginResult:
        if not self._base_url:
            raise AuthenticationError("CRM_API_URL is not configured")
        if not self._email or not self._password:
            raise AuthenticationError("CRM_EMAIL/CRM_PASSWORD are not configured")

        try:
            resp = self._session.post(
                f"{self._base_url}{LOGIN_PATH}",
                json={"email": self._email, "password": self._password},
                timeout=self._timeout_s,
            )
        except requests.RequestException as exc:
            raise AuthenticationError(f"CRM login request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise AuthenticationError(f"CRM login rejected (HTTP {resp.status_code})")

        try:
            body = resp.json()
        except ValueError as exc:
            raise AuthenticationError("CRM login response is not valid JSON") from exc

        token = parse_token(body)
        if not token:
            raise AuthenticationError("CRM login response did not contain a token")

        return LoginResult(token=token, ttl_s=parse_expires_in(body))


class CrmApiClient(RestClient):
    """CRM adapter implementing CrmPort."""

    service_name = "crm"

    def __init__(
        self,
        *,
        base_url: str,
        token_cache: TokenCache,
        timeout_s: float = 12.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s, session=session)
        self._token_cache = token_cache

    def list_prospects(self, *, search: str | None = None, limit: int | None = None) -> list[Prospect]:
        """List CRM prospects; search and limit are applied client-side."""
        body = self._authorized("GET", PROSPECTS_PATH)
        rows = body.get("data") if isinstance(body, dict) else body
        if not isinstance(rows, list):
            return []

        prospects = [p for p in (prospect_from_payload(row) for row in rows) if p is not None]

        query = (search or "").strip().lower()
        if query:
            prospects = [
                p for p in prospects
                if query in p.name.lower() or query in (p.email or "").lower()
            ]

        if limit is not None and limit > 0:
            prospects = prospects[:limit]
        return prospects

    def create_vendor(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._authorized("POST", VENDOR_PATH, json=payload)
        return body if isinstance(body, dict) else {}

    def _authorized(self, method: str, path: str, *, json: Any = None) -> Any:
        token = self._token_cache.get_token()
        try:
            return self.request_json(method, path, json=json, headers=_bearer(token))
        except self.error_cls as exc:
            if exc.status_code != 401:
                raise
            LOGGER.info("crm_token_rejected", extra={"path": path})

        self._token_cache.invalidate()
        return self.request_json(method, path, json=json, headers=_bearer(self._token_cache.get_token()))


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def parse_token(body: Any) -> str | None:
    """Extract the bearer token from the shapes the CRM is known to return."""
    if not isinstance(body, dict):
        return None

    nested = body.get("data") if isinstance(body.get("data"), dict) else {}
    for candidate in (
        body.get("token"),
        body.get("access_token"),
        body.get("accessToken"),
        nested.get("token"),
        body.get("jwt"),
    ):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def parse_expires_in(body: Any) -> float | None:
    """Return the reported time-to-live in seconds, or None."""
    if not isinstance(body, dict):
        return None

    nested = body.get("data") if isinstance(body.get("data"), dict) else {}
    raw = body.get("expires_in") or body.get("expiresIn") or nested.get("expires_in")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def prospect_from_payload(row: Any) -> Prospect | None:
    """Map one CRM contact; contacts without any usable name are skipped."""
    if not isinstance(row, dict):
        return None

    name = row.get("nombre") or row.get("name") or row.get("nombreCompleto")
    if not name:
        name = " ".join(str(p) for p in (row.get("nombres"), row.get("apellidos")) if p).strip()
    if not name:
        return None

    contact_id = row.get("id") or row.get("contacto_id") or row.get("contactoId")
    return Prospect(
        id=None if contact_id is None else str(contact_id),
        name=str(name),
        email=row.get("email") or row.get("correo"),
        phone=row.get("telefono") or row.get("celular") or row.get("telefono1"),
        address=row.get("direccion") or row.get("domicilio") or row.get("direccionPrincipal"),
        city=row.get("ciudad") or row.get("municipio"),
        country=row.get("pais") or row.get("paisResidencia"),
    )
