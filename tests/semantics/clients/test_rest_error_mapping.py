"""
Semantic test: transport and HTTP failures become typed service errors.

Invariant:
Adapters never leak requests exceptions. Timeouts and connection errors
become the adapter's error type with no status code (server-class);
non-2xx answers carry their status code and the backend's message.
Task and inventory adapters raise DependentEffectFailure.
"""

from __future__ import annotations

import pytest
import requests

from procurement_console.clients.inventory_api import InventoryApiClient
from procurement_console.clients.purchasing_api import PurchasingApiClient
from procurement_console.clients.tasks_api import TasksApiClient
from procurement_console.core.domain.errors import DependentEffectFailure, ServiceCallError


def test_timeout_is_a_server_class_error(session_factory) -> None:
    session = session_factory(requests.Timeout("read timed out"))
    client = PurchasingApiClient(base_url="http://purchasing", session=session)

    with pytest.raises(ServiceCallError) as excinfo:
        client.get_order(1)

    assert excinfo.value.status_code is None
    assert excinfo.value.is_server_error
    assert isinstance(excinfo.value.__cause__, requests.Timeout)
    assert session.calls[0]["timeout"] == 10.0


def test_connection_error_from_task_service(session_factory) -> None:
    session = session_factory(requests.ConnectionError("refused"))
    client = TasksApiClient(base_url="http://tasks", session=session)

    with pytest.raises(DependentEffectFailure) as excinfo:
        client.find_by_title("OC-1 creada")

    assert excinfo.value.service == "tasks"
    assert excinfo.value.is_server_error


def test_http_error_carries_status_and_backend_message(session_factory, response_factory) -> None:
    session = session_factory(response_factory(500, {"message": "db down"}, reason="Server Error"))
    client = PurchasingApiClient(base_url="http://purchasing/", session=session)

    with pytest.raises(ServiceCallError) as excinfo:
        client.list_orders()

    assert excinfo.value.status_code == 500
    assert "db down" in str(excinfo.value)
    assert session.calls[0]["url"] == "http://purchasing/ordenes-compra"


def test_client_error_is_not_server_class(session_factory, response_factory) -> None:
    session = session_factory(response_factory(404, raw=b"not json", reason="Not Found"))
    client = InventoryApiClient(base_url="http://inventory", session=session)

    with pytest.raises(DependentEffectFailure) as excinfo:
        client.adjust(product_id=1, quantity=1, reason="x")

    assert excinfo.value.status_code == 404
    assert not excinfo.value.is_server_error
    assert "Not Found" in str(excinfo.value)


def test_invalid_json_body(session_factory, response_factory) -> None:
    session = session_factory(response_factory(200, raw=b"<html>"))
    client = PurchasingApiClient(base_url="http://purchasing", session=session)

    with pytest.raises(ServiceCallError, match="not valid JSON"):
        client.health()


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PurchasingApiClient(base_url="http://purchasing", timeout_s=0)
