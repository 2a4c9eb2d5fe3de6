"""In-memory collaborators shared by the semantic tests.

None of these fakes touch the network. Each records the calls it receives
so tests can assert on exact call counts and payloads.
"""

from __future__ import annotations

import json
import threading
from decimal import Decimal
from typing import Any

import pytest

from procurement_console.core.domain.errors import DependentEffectFailure, ServiceCallError
from procurement_console.core.domain.status_normalizer import to_backend
from procurement_console.core.domain.types import (
    LineItem,
    Order,
    OrderStatus,
    TaskRecord,
    Vendor,
    VendorData,
    VendorRef,
)
from procurement_console.core.events.event_bus import EventBus
from procurement_console.core.events.sinks.recording_sink import RecordingSink
from procurement_console.core.orchestration.transition_orchestrator import OrderTransitionOrchestrator


class FakePurchasing:
    def __init__(self) -> None:
        self.status_calls: list[tuple[int, OrderStatus]] = []
        self.created_orders: list[dict[str, Any]] = []
        self.created_vendors: list[VendorData] = []
        self.persisted_override: str | None = None
        self.fail_with: ServiceCallError | None = None
        self.next_order_id = 100
        self.orders: dict[int, Order] = {}

    def update_order_status(self, order_id: int, status: OrderStatus) -> str:
        self.status_calls.append((order_id, status))
        if self.fail_with is not None:
            raise self.fail_with
        return self.persisted_override if self.persisted_override is not None else to_backend(status)

    def create_order(self, payload: dict[str, Any]) -> Order:
        self.created_orders.append(payload)
        if self.fail_with is not None:
            raise self.fail_with
        return Order(
            id=self.next_order_id,
            vendor=VendorRef(id=payload["orden"]["id_proveedor"], name="ACME"),
            total=Decimal(str(payload["orden"]["total"])),
        )

    def create_vendor(self, data: VendorData) -> Vendor:
        self.created_vendors.append(data)
        if self.fail_with is not None:
            raise self.fail_with
        return Vendor(id=7, name=data.name, tax_id=data.tax_id, email=data.email, phone=data.phone)

    def list_vendors(self) -> list[Vendor]:
        return []

    def list_orders(self) -> list[Order]:
        return []

    def get_order(self, order_id: int) -> Order:
        if order_id not in self.orders:
            raise ServiceCallError(service="purchasing", message="not found", status_code=404)
        return self.orders[order_id]


class FakeTasks:
    def __init__(self) -> None:
        self.tasks: dict[str, TaskRecord] = {}
        self.lookups: list[str] = []
        self.updates: list[tuple[int | str, str]] = []
        self.created: list[dict[str, Any]] = []
        self.fail_with: ServiceCallError | None = None

    def add(self, task_id: int, title: str) -> None:
        self.tasks[title] = TaskRecord(id=task_id, title=title, status="Pendiente")

    def find_by_title(self, title: str) -> TaskRecord | None:
        self.lookups.append(title)
        if self.fail_with is not None:
            raise self.fail_with
        return self.tasks.get(title)

    def update_status(self, task_id: int | str, status: str) -> None:
        self.updates.append((task_id, status))

    def create(self, payload: dict[str, Any]) -> TaskRecord:
        self.created.append(payload)
        if self.fail_with is not None:
            raise self.fail_with
        return TaskRecord(id=len(self.created), title=payload["titulo"], status=payload["estado"])


class FakeInventory:
    """Records adjustments; products in fail_products raise.

    When barrier_parties is set, every call waits on a barrier so the test
    only passes if all calls are in flight at the same time.
    """

    def __init__(self, *, fail_products: set[int] | None = None, barrier_parties: int | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_products = fail_products or set()
        self._lock = threading.Lock()
        self._barrier = threading.Barrier(barrier_parties, timeout=5) if barrier_parties else None

    def adjust(self, *, product_id: int, quantity: int, reason: str) -> None:
        with self._lock:
            self.calls.append({"product_id": product_id, "quantity": quantity, "reason": reason})
        if self._barrier is not None:
            self._barrier.wait()
        if product_id in self.fail_products:
            raise DependentEffectFailure(service="inventory", message="adjust rejected", status_code=500)


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        body: Any = None,
        *,
        raw: bytes | None = None,
        reason: str = "OK",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        if raw is not None:
            self.content = raw
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode("utf-8")

    def json(self) -> Any:
        return json.loads(self.content)


class FakeSession:
    """Stands in for requests.Session; answers come from a queue.

    A queued exception instance is raised instead of returning a response.
    """

    def __init__(self, *answers: Any) -> None:
        self.answers: list[Any] = list(answers)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def queue(self, *answers: Any) -> None:
        self.answers.extend(answers)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        self.closed = True


def make_order(order_id: int, status: OrderStatus, quantities: list[int] | None = None) -> Order:
    items = [
        LineItem(product_id=100 + i, quantity=qty, unit_price=Decimal("10.00"), line_number=i + 1)
        for i, qty in enumerate(quantities or [])
    ]
    return Order(
        id=order_id,
        status=status,
        vendor=VendorRef(id=1, name="ACME"),
        line_items=items,
        subtotal=Decimal("0"),
        tax=Decimal("0"),
        total=Decimal("0"),
    )


@pytest.fixture
def purchasing() -> FakePurchasing:
    return FakePurchasing()


@pytest.fixture
def tasks() -> FakeTasks:
    return FakeTasks()


@pytest.fixture
def inventory() -> FakeInventory:
    return FakeInventory()


@pytest.fixture
def recorder() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def orchestrator_factory(purchasing, tasks, recorder):
    """Build an orchestrator; the inventory fake may be swapped per test."""

    def build(inventory: FakeInventory, **kwargs: Any) -> OrderTransitionOrchestrator:
        return OrderTransitionOrchestrator(
            purchasing=purchasing,
            tasks=tasks,
            inventory=inventory,
            event_bus=EventBus([recorder]),
            **kwargs,
        )

    return build


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def inventory_factory():
    return FakeInventory


@pytest.fixture
def session_factory():
    return FakeSession


@pytest.fixture
def response_factory():
    return FakeResponse
