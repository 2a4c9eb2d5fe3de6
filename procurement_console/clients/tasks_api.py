"""REST adapter for the external task tracking service."""

from __future__ import annotations

from typing import Any

import requests

from procurement_console.clients.http import RestClient
from procurement_console.core.domain.errors import DependentEffectFailure
from procurement_console.core.domain.types import TaskRecord


class TasksApiClient(RestClient):
    """Task service adapter implementing TaskPort.

    Failures are raised as DependentEffectFailure: tasks are auxiliary
    records and never block an order operation.
    """

    service_name = "tasks"
    error_cls = DependentEffectFailure

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 12.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s, session=session)

    def create(self, payload: dict[str, Any]) -> TaskRecord:
        body = self.request_json("POST", "/api/tareas", json=payload)
        record = task_from_payload(_unwrap(body))
        if record is None:
            # Some deployments answer 201 with an empty body.
            return TaskRecord(id="", title=str(payload.get("titulo", "")), status=payload.get("estado"))
        return record

    def find_by_title(self, title: str) -> TaskRecord | None:
        """Return the first task whose title matches exactly."""
        body = self.request_json("GET", "/api/tareas", params={"titulo": title})
        rows = body if isinstance(body, list) else _unwrap(body)
        if isinstance(rows, dict):
            rows = [rows]
        if not isinstance(rows, list):
            return None

        for row in rows:
            record = task_from_payload(row)
            if record is not None and record.title == title:
                return record
        return None

    def update_status(self, task_id: int | str, status: str) -> None:
        self.send("PUT", f"/api/tareas/{task_id}", json={"estado": status})


def task_from_payload(row: Any) -> TaskRecord | None:
    if not isinstance(row, dict):
        return None
    task_id = row.get("id", row.get("id_tarea"))
    if task_id is None:
        return None
    return TaskRecord(id=task_id, title=str(row.get("titulo", "")), status=row.get("estado"))


def _unwrap(body: Any) -> Any:
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body
