from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from procurement_console.config.settings import ConsoleSettings
from procurement_console.core.domain.errors import ProcurementConsoleError
from procurement_console.core.domain.status_normalizer import STATUS_SYNONYMS, canonical_key
from procurement_console.core.domain.types import Notification, OrderStatus
from procurement_console.core.orchestration.transition_orchestrator import notification_for_error
from procurement_console.reporting.dashboard import summarize_dashboard
from procurement_console.runtime.console import Console, build_console

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_transition(console: Console, args: argparse.Namespace) -> list[Notification]:
    order = console.purchasing.get_order(args.order_id)
    result = console.transitions.transition(order, args.status)
    return result.notifications


def _cmd_dashboard(console: Console, args: argparse.Namespace) -> list[Notification]:
    summary = summarize_dashboard(
        vendors=console.purchasing.list_vendors(),
        orders=console.purchasing.list_orders(),
    )
    lines = [
        f"vendors: {summary.vendor_count}",
        f"orders: {summary.order_count}",
    ]
    lines += [f"  {status.value}: {count}" for status, count in summary.orders_by_status.items()]
    lines += [
        f"top vendor: {r.name} ({r.order_count} orders, {r.total:.2f})"
        for r in summary.top_vendors
    ]
    return [Notification("info", line) for line in lines]


def _cmd_prospects(console: Console, args: argparse.Namespace) -> list[Notification]:
    prospects = console.onboarding.list_prospects(search=args.search, limit=args.limit)
    return [Notification("info", f"{p.name} <{p.email or '-'}>") for p in prospects]


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def _status_arg(raw: str) -> OrderStatus:
    """Strict status parsing: a typo must not silently become PENDING."""
    status = STATUS_SYNONYMS.get(canonical_key(raw))
    if status is None:
        raise argparse.ArgumentTypeError(f"unknown order status: {raw!r}")
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procurement-console",
        description="Purchase order administration over the purchasing, CRM, task and inventory APIs",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON settings file. Environment variables are used when omitted.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    sub = parser.add_subparsers(dest="command", required=True)

    transition = sub.add_parser("transition", help="Change an order's status.")
    transition.add_argument("--order-id", type=int, required=True)
    transition.add_argument(
        "--status",
        type=_status_arg,
        required=True,
        help="Target status (PENDING, APPROVED, REJECTED, DELIVERED or a backend synonym).",
    )
    transition.set_defaults(handler=_cmd_transition)

    dashboard = sub.add_parser("dashboard", help="Print dashboard aggregates.")
    dashboard.set_defaults(handler=_cmd_dashboard)

    prospects = sub.add_parser("prospects", help="List CRM prospects.")
    prospects.add_argument("--search", default=None)
    prospects.add_argument("--limit", type=int, default=50)
    prospects.set_defaults(handler=_cmd_prospects)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        settings = (
            ConsoleSettings.from_json_file(args.config)
            if args.config is not None
            else ConsoleSettings.from_env()
        )
        console = build_console(settings)
    except ProcurementConsoleError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    try:
        notifications = args.handler(console, args)
    except ProcurementConsoleError as exc:
        LOGGER.debug("command_failed", exc_info=exc)
        note = notification_for_error(exc)
        if note is not None:
            print(note.render(), file=sys.stderr)
            return 1
        return 0
    finally:
        console.close()

    for note in notifications:
        print(note.render())
    return 0


if __name__ == "__main__":
    sys.exit(main())
