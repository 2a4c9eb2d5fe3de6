"""
Purchase order lifecycle state machine definitions.

This module defines the terminal order states and the allowed transitions
between them. It is passive and validation-only: the orchestrator decides
what to do with a disallowed transition.
"""

from __future__ import annotations

from procurement_console.core.domain.types import OrderStatus

# Terminal order states: once reached, no further transition is permitted.
ORDER_TERMINAL_STATES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.REJECTED,
        OrderStatus.DELIVERED,
    }
)


# Allowed order state transitions.
#
# Key   : current state
# Value : set of allowed next states
#
# Notes:
# - Terminal states have no entry.
# - Any non-terminal state may move to any other state, including a direct
#   PENDING -> DELIVERED and a step back APPROVED -> PENDING.
# - APPROVED -> REJECTED can be withdrawn by backend configuration, see
#   build_transition_table().
ORDER_ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {
            OrderStatus.APPROVED,
            OrderStatus.REJECTED,
            OrderStatus.DELIVERED,
        }
    ),

    OrderStatus.APPROVED: frozenset(
        {
            OrderStatus.PENDING,
            OrderStatus.REJECTED,
            OrderStatus.DELIVERED,
        }
    ),
}


def build_transition_table(
    *,
    allow_approved_to_rejected: bool,
) -> dict[OrderStatus, frozenset[OrderStatus]]:
    """Return the transition table for the configured backend policy."""
    table = dict(ORDER_ALLOWED_TRANSITIONS)
    if not allow_approved_to_rejected:
        table[OrderStatus.APPROVED] = table[OrderStatus.APPROVED] - {OrderStatus.REJECTED}
    return table


def is_terminal_state(state: OrderStatus) -> bool:
    """Return True if the given state is terminal."""
    return state in ORDER_TERMINAL_STATES


def is_valid_transition(
    prev_state: OrderStatus,
    next_state: OrderStatus,
    table: dict[OrderStatus, frozenset[OrderStatus]] | None = None,
) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = (table or ORDER_ALLOWED_TRANSITIONS).get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed
