"""Per-shop order status graph.

A shop's flow is stored as JSON on ``shops.order_status_flow``:

    {"statuses": [{"value": 0, "label": "...", "type": "warning", "isFinal": false,
                   "actions": [{"name": "...", "nextStatus": 1, "nextStatusLabel": "..."}]}]}

Everything here is pure: it never touches the database.
"""

from __future__ import annotations

import copy

from pydantic import ValidationError

from orderease.core.errors import (
    IllegalTransition,
    InvalidInput,
    PreconditionFailed,
    TerminalStatus,
    UnknownCurrentStatus,
)
from orderease.schemas.status_flow import OrderStatusFlow, OrderStatusNode

STATUS_PENDING = 0
STATUS_ACCEPTED = 1
STATUS_COMPLETED = 9
STATUS_CANCELED = 10

DEFAULT_ORDER_STATUS_FLOW: dict = {
    "statuses": [
        {
            "value": STATUS_PENDING,
            "label": "待处理",
            "type": "warning",
            "isFinal": False,
            "actions": [
                {"name": "接单", "nextStatus": STATUS_ACCEPTED, "nextStatusLabel": "已接单"},
                {"name": "取消", "nextStatus": STATUS_CANCELED, "nextStatusLabel": "已取消"},
            ],
        },
        {
            "value": STATUS_ACCEPTED,
            "label": "已接单",
            "type": "primary",
            "isFinal": False,
            "actions": [
                {"name": "完成", "nextStatus": STATUS_COMPLETED, "nextStatusLabel": "已完成"},
                {"name": "取消", "nextStatus": STATUS_CANCELED, "nextStatusLabel": "已取消"},
            ],
        },
        {"value": STATUS_COMPLETED, "label": "已完成", "type": "success", "isFinal": True, "actions": []},
        {"value": STATUS_CANCELED, "label": "已取消", "type": "info", "isFinal": True, "actions": []},
    ]
}


def default_flow() -> dict:
    return copy.deepcopy(DEFAULT_ORDER_STATUS_FLOW)


def load_flow(raw: dict | None) -> OrderStatusFlow:
    """Parse a stored flow. A missing or empty value yields the default flow."""
    if not raw:
        return OrderStatusFlow.model_validate(DEFAULT_ORDER_STATUS_FLOW)
    try:
        return OrderStatusFlow.model_validate(raw)
    except ValidationError as e:
        raise InvalidInput(f"malformed order status flow: {e.errors()[0].get('msg')}") from e


def find_node(flow: OrderStatusFlow, value: int) -> OrderStatusNode | None:
    for node in flow.statuses:
        if node.value == value:
            return node
    return None


def validate_transition(flow: OrderStatusFlow, current: int, requested: int) -> OrderStatusNode:
    """Admit ``current -> requested`` or raise. Returns the target node."""
    node = find_node(flow, current)
    if node is None:
        raise UnknownCurrentStatus()
    if node.is_final:
        raise TerminalStatus()
    if requested == current:
        raise IllegalTransition("an order cannot transition to its current status")
    for action in node.actions:
        if action.next_status == requested:
            target = find_node(flow, requested)
            if target is None:
                raise IllegalTransition(f"status {requested} is not part of the shop's status flow")
            return target
    raise IllegalTransition(f"transition {current} -> {requested} is not allowed")


def is_final(flow: OrderStatusFlow, value: int) -> bool:
    node = find_node(flow, value)
    return bool(node and node.is_final)


def unfinished_statuses(flow: OrderStatusFlow) -> list[int]:
    return [n.value for n in flow.statuses if not n.is_final]


def initial_status(flow: OrderStatusFlow) -> int:
    """New orders start on the first node of the flow."""
    if not flow.statuses:
        raise InvalidInput("shop has an empty order status flow")
    return flow.statuses[0].value


def validate_flow(flow: OrderStatusFlow) -> None:
    """Structural checks applied before a flow is stored."""
    if not flow.statuses:
        raise InvalidInput("order status flow must contain at least one status")

    values = [n.value for n in flow.statuses]
    if len(set(values)) != len(values):
        raise InvalidInput("order status flow contains duplicate status values")

    known = set(values)
    for node in flow.statuses:
        if node.is_final and node.actions:
            raise InvalidInput(f"final status {node.value} must not have actions")
        for action in node.actions:
            if action.next_status == node.value:
                raise InvalidInput(f"status {node.value} has an action pointing to itself")
            if action.next_status not in known:
                raise InvalidInput(f"status {node.value} has an action to unknown status {action.next_status}")


def ensure_covers(flow: OrderStatusFlow, statuses_in_use: set[int]) -> None:
    """Refuse a replacement flow that would strand orders on a status it no longer has."""
    stranded = sorted(set(statuses_in_use) - {n.value for n in flow.statuses})
    if stranded:
        raise PreconditionFailed(
            f"orders are still in status {', '.join(str(s) for s in stranded)}, which the new flow does not contain"
        )
