from __future__ import annotations

import json
import logging
import os
from typing import Any, Mapping

from prometheus_client import CollectorRegistry, Counter, push_to_gateway

from procurement_console.core.events.events import (
    OrderStatusTransitionEvent,
    SideEffectSettledEvent,
    TransitionRejectedEvent,
)

LOGGER = logging.getLogger(__name__)


class TransitionMetricsSink:
    """Event sink counting transitions and dependent effects in Prometheus.

    Optional environment:
    - PROMETHEUS_PUSHGATEWAY_URL: Pushgateway URL used by push_all().
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object used as grouping key.

    Metrics are best-effort: push failures are logged and swallowed so they
    can never fail a transition.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self._pushgateway_url = env.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key(env.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON"))
        self.registry = CollectorRegistry()

        self._transitions = Counter(
            "procurement_order_transitions",
            "Persisted order status transitions",
            labelnames=["status"],
            registry=self.registry,
        )
        self._rejections = Counter(
            "procurement_order_transition_rejections",
            "Transitions refused before or at persistence",
            labelnames=["reason"],
            registry=self.registry,
        )
        self._side_effects = Counter(
            "procurement_side_effects",
            "Settled dependent calls made by transitions",
            labelnames=["target", "result"],
            registry=self.registry,
        )

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @staticmethod
    def _load_grouping_key(raw: str | None) -> dict[str, str]:
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning(
                "Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring"
            )
            return {}

        if not isinstance(data, dict):
            return {}

        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def on_event(self, event: Any) -> None:
        if isinstance(event, OrderStatusTransitionEvent):
            self._transitions.labels(status=event.persisted_status).inc()
        elif isinstance(event, TransitionRejectedEvent):
            self._rejections.labels(reason=event.reason).inc()
        elif isinstance(event, SideEffectSettledEvent):
            self._side_effects.labels(target=event.target, result=event.result).inc()

    def value(self, name: str, labels: dict[str, str]) -> float:
        """Current sample value (0.0 if never incremented)."""
        sample = self.registry.get_sample_value(f"{name}_total", labels)
        return 0.0 if sample is None else sample

    def push_all(self, *, job: str) -> None:
        if not self._pushgateway_url:
            return

        try:
            push_to_gateway(
                gateway=self._pushgateway_url,
                job=job,
                registry=self.registry,
                grouping_key=self._grouping_key,
            )
        except OSError as exc:
            LOGGER.warning("Prometheus push failed", extra={"job": job, "error": str(exc)})
            return

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )

    def close(self) -> None:
        self.push_all(job="procurement_console")
