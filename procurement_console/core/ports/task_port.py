"""Task tracking API protocol.

Orders and tasks are correlated only through the task title; see
procurement_console.core.orchestration.task_sync.
"""

from __future__ import annotations

from typing import Any, Protocol

from procurement_console.core.domain.types import TaskRecord


class TaskPort(Protocol):
    def find_by_title(self, title: str) -> TaskRecord | None:
        """Return the task with exactly this title, or None."""

    def update_status(self, task_id: int | str, status: str) -> None:
        """Move a task to the given status."""

    def create(self, payload: dict[str, Any]) -> TaskRecord:
        """Create a task."""
