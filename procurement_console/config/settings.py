"""Console configuration model.

Settings come from a JSON document (``from_json_obj`` / ``from_json_file``)
or from environment variables (``from_env``). Validation problems surface
as ConfigurationError.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from procurement_console.core.auth.token_cache import DEFAULT_TOKEN_TTL_S
from procurement_console.core.domain.errors import ConfigurationError


class ServiceEndpoint(BaseModel):
    base_url: str = Field(..., min_length=1)
    timeout_s: float = Field(default=10.0, gt=0)

    model_config = ConfigDict(extra="forbid")


class CrmSettings(BaseModel):
    """CRM access. An empty base_url leaves the CRM unconfigured; calls then
    fail with AuthenticationError instead of at startup."""

    base_url: str = ""
    email: str = ""
    password: str = Field(default="", repr=False)
    timeout_s: float = Field(default=12.0, gt=0)
    default_token_ttl_s: float = Field(default=DEFAULT_TOKEN_TTL_S, gt=0)

    model_config = ConfigDict(extra="forbid")


class InventorySettings(ServiceEndpoint):
    timeout_s: float = Field(default=12.0, gt=0)
    location_id: int = Field(default=1, ge=1)
    user: str = Field(default="ERP-Compras", min_length=1)


class TaskSettings(ServiceEndpoint):
    timeout_s: float = Field(default=12.0, gt=0)
    default_due_days: int = Field(default=3, ge=0)
    default_priority: str = "Alta"
    default_assignee: str = "1"
    initial_state: str = "Pendiente"
    in_progress_state: str = "En Progreso"
    completed_state: str = "Completada"


class TransitionSettings(BaseModel):
    allow_approved_to_rejected: bool = True
    max_inventory_workers: int = Field(default=8, ge=1)

    model_config = ConfigDict(extra="forbid")


class ConsoleSettings(BaseModel):
    """Structured console configuration."""

    purchasing: ServiceEndpoint
    crm: CrmSettings = Field(default_factory=CrmSettings)
    inventory: InventorySettings
    tasks: TaskSettings
    transitions: TransitionSettings = Field(default_factory=TransitionSettings)

    # Order prices already include tax at this rate.
    tax_rate: Decimal = Field(default=Decimal("0.12"), ge=0)
    currency: str = "GTQ"
    payment_terms: str = "30 días"

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> ConsoleSettings:
        """Create settings from a JSON-compatible object."""
        try:
            return cls.model_validate(obj)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid console settings: {exc}") from exc

    @classmethod
    def from_json_file(cls, path: str | Path) -> ConsoleSettings:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"settings file not found: {path}")
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"settings file is not valid JSON: {path}") from exc
        return cls.from_json_obj(obj)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ConsoleSettings:
        """Build settings from environment variables.

        Required: PURCHASING_API_URL, INVENTORY_API_URL, TASKS_API_URL.
        """
        env = os.environ if environ is None else environ

        obj: dict[str, Any] = {
            "purchasing": {"base_url": env.get("PURCHASING_API_URL", "")},
            "crm": {
                "base_url": env.get("CRM_API_URL", ""),
                "email": env.get("CRM_EMAIL", ""),
                "password": env.get("CRM_PASSWORD", ""),
            },
            "inventory": _drop_missing(
                {
                    "base_url": env.get("INVENTORY_API_URL", ""),
                    "location_id": env.get("INVENTORY_LOCATION_ID"),
                    "user": env.get("INVENTORY_USER"),
                }
            ),
            "tasks": _drop_missing(
                {
                    "base_url": env.get("TASKS_API_URL", ""),
                    "default_due_days": env.get("TASKS_DEFAULT_DUE_DAYS"),
                    "default_priority": env.get("TASKS_DEFAULT_PRIORITY"),
                    "default_assignee": env.get("TASKS_DEFAULT_ASSIGNEE"),
                }
            ),
        }
        return cls.from_json_obj(obj)


def _drop_missing(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None and v != ""} | {"base_url": d["base_url"]}
