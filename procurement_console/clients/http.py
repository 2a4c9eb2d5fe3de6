"""Shared plumbing for the REST adapters.

Every adapter owns a requests.Session and a per-call timeout. Transport and
HTTP failures are translated into ServiceCallError (or a subclass chosen by
the adapter) with ``raise ... from exc``; callers never see a requests
exception.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from procurement_console.core.domain.errors import ServiceCallError

LOGGER = logging.getLogger(__name__)


def build_session(headers: dict[str, str] | None = None) -> requests.Session:
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json"})
    if headers:
        session.headers.update(headers)
    return session


class RestClient:
    """Thin JSON-over-HTTP helper bound to one base URL."""

    service_name = "rest"
    error_cls: type[ServiceCallError] = ServiceCallError

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float,
        session: requests.Session | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError(f"{self.service_name}: timeout_s must be positive")

        self._base_url = base_url.rstrip("/")
        self._timeout_s = float(timeout_s)
        self._session = session if session is not None else build_session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._session.close()

    def request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (None if empty)."""
        resp = self.send(method, path, json=json, params=params, headers=headers)
        return self.decode(resp)

    def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.Timeout as exc:
            raise self.error_cls(service=self.service_name, message=f"{method} {path} timed out") from exc
        except requests.RequestException as exc:
            raise self.error_cls(service=self.service_name, message=f"{method} {path} failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            LOGGER.warning(
                "http_error_response",
                extra={
                    "service": self.service_name,
                    "method": method,
                    "path": path,
                    "status_code": resp.status_code,
                },
            )
            raise self.error_cls(
                service=self.service_name,
                message=f"{method} {path} -> {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    def decode(self, resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise self.error_cls(
                service=self.service_name,
                message="response body is not valid JSON",
                status_code=resp.status_code,
            ) from exc


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason or "error"

    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if isinstance(body.get(key), str):
                return body[key]
    return resp.reason or "error"
