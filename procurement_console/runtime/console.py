"""Process-level wiring of adapters and services.

build_console() is the single place where the CRM TokenCache is created, so
exactly one token cache exists per console instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from procurement_console.clients.crm_api import CrmApiClient, CrmLogin
from procurement_console.clients.inventory_api import InventoryApiClient
from procurement_console.clients.purchasing_api import PurchasingApiClient
from procurement_console.clients.tasks_api import TasksApiClient
from procurement_console.core.auth.token_cache import TokenCache
from procurement_console.core.events.event_bus import EventBus
from procurement_console.core.events.sinks.sink_logging import LoggingEventSink
from procurement_console.core.orchestration.order_intake import OrderIntakeService
from procurement_console.core.orchestration.transition_orchestrator import OrderTransitionOrchestrator
from procurement_console.core.orchestration.vendor_onboarding import VendorOnboardingService
from procurement_console.runtime.metrics import TransitionMetricsSink

if TYPE_CHECKING:
    from procurement_console.config.settings import ConsoleSettings


@dataclass(slots=True)
class Console:
    settings: ConsoleSettings
    event_bus: EventBus
    token_cache: TokenCache

    purchasing: PurchasingApiClient
    crm: CrmApiClient
    tasks: TasksApiClient
    inventory: InventoryApiClient

    transitions: OrderTransitionOrchestrator
    intake: OrderIntakeService
    onboarding: VendorOnboardingService

    def close(self) -> None:
        self.event_bus.close()
        for client in (self.purchasing, self.crm, self.tasks, self.inventory):
            client.close()


def build_event_bus(*, with_metrics: bool = True) -> EventBus:
    sinks = [LoggingEventSink(logging.getLogger("procurement_console.bus"))]
    if with_metrics:
        sinks.append(TransitionMetricsSink())
    return EventBus(sinks)


def build_console(settings: ConsoleSettings, *, event_bus: EventBus | None = None) -> Console:
    bus = event_bus if event_bus is not None else build_event_bus()

    token_cache = TokenCache(
        login=CrmLogin(
            base_url=settings.crm.base_url,
            email=settings.crm.email,
            password=settings.crm.password,
            timeout_s=settings.crm.timeout_s,
        ),
        default_ttl_s=settings.crm.default_token_ttl_s,
    )

    purchasing = PurchasingApiClient(
        base_url=settings.purchasing.base_url,
        timeout_s=settings.purchasing.timeout_s,
    )
    crm = CrmApiClient(
        base_url=settings.crm.base_url,
        token_cache=token_cache,
        timeout_s=settings.crm.timeout_s,
    )
    tasks = TasksApiClient(
        base_url=settings.tasks.base_url,
        timeout_s=settings.tasks.timeout_s,
    )
    inventory = InventoryApiClient(
        base_url=settings.inventory.base_url,
        timeout_s=settings.inventory.timeout_s,
        location_id=settings.inventory.location_id,
        user=settings.inventory.user,
    )

    transitions = OrderTransitionOrchestrator(
        purchasing=purchasing,
        tasks=tasks,
        inventory=inventory,
        event_bus=bus,
        allow_approved_to_rejected=settings.transitions.allow_approved_to_rejected,
        max_inventory_workers=settings.transitions.max_inventory_workers,
        task_in_progress_state=settings.tasks.in_progress_state,
        task_completed_state=settings.tasks.completed_state,
    )

    return Console(
        settings=settings,
        event_bus=bus,
        token_cache=token_cache,
        purchasing=purchasing,
        crm=crm,
        tasks=tasks,
        inventory=inventory,
        transitions=transitions,
        intake=OrderIntakeService(purchasing=purchasing, tasks=tasks, settings=settings),
        onboarding=VendorOnboardingService(purchasing=purchasing, crm=crm),
    )
