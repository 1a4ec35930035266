"""
ORM-Level Immutability Enforcement for sales and refund records.

===============================================================================
WHY THIS EXISTS
===============================================================================

Sales history must not be rewritten. A refund is recorded as new rows, never
by editing the original sale. The order's refundable quantity is DERIVED from
its lines and its refund lines, so editing either would silently change how
much can still be refunded.

SQLAlchemy fires events before UPDATE/DELETE statements reach the database.
We register listeners that intercept them and check the rules:

    session.flush()
         |
         v
    [before_update] --> _check_*_update() --> ImmutabilityViolationError
         |                                    OrderStatusTransitionError
         v
    [before_delete] --> _reject_delete() ---> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Bulk Core statements (update()/delete() without the ORM) bypass these
listeners. The stock ledger relies on that for products; nothing else in the
kernel issues bulk statements against these tables.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity      | Rule
------------|----------------------------------------------------------------
Order       | Only `status` may change, and only forward:
            |   COMPLETED -> PARTIALLY_REFUNDED -> REFUNDED
OrderItem   | ALWAYS immutable
Refund      | ALWAYS immutable
RefundItem  | ALWAYS immutable
(all four)  | ORM DELETE rejected

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY ONLY COLUMN ATTRIBUTES?
   Appending a line to order.items marks the Order dirty without changing
   any of its columns. Relationship history is therefore ignored.

2. WHY INLINE IMPORTS?
   Avoids circular imports. Models import from db, db imports from models.

===============================================================================
USAGE
===============================================================================

    from pos_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from pos_kernel.exceptions import (
    ImmutabilityViolationError,
    OrderStatusTransitionError,
)
from pos_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _changed_columns(target) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.mapper.column_attrs
        if insp.attrs[attr.key].history.has_changes()
    ]


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_order_update(mapper, connection, target):
    """
    Allow only forward status moves on an Order.

    Any other changed column is a violation. A status change is checked
    against the rank order COMPLETED < PARTIALLY_REFUNDED < REFUNDED;
    staying put or moving backward raises OrderStatusTransitionError.
    """
    from pos_kernel.domain.values import OrderStatus

    for key in _changed_columns(target):
        if key != "status":
            _block("Order", target, "UPDATE", f"Cannot modify field '{key}' on an order", key)

    history = get_history(target, "status")
    if not (history.deleted and history.added):
        return

    old, new = history.deleted[0], history.added[0]
    try:
        moved_forward = OrderStatus(new).rank > OrderStatus(old).rank
    except ValueError:
        moved_forward = False

    if not moved_forward:
        logger.error(
            "order_status_transition_blocked",
            extra={"order_id": target.id, "from_status": old, "to_status": new},
        )
        raise OrderStatusTransitionError(
            order_id=str(target.id),
            from_status=str(getattr(old, "value", old)),
            to_status=str(getattr(new, "value", new)),
        )


def _make_update_guard(entity_type: str):
    def _check_update(mapper, connection, target):
        changed = _changed_columns(target)
        if changed:
            _block(
                entity_type,
                target,
                "UPDATE",
                f"{entity_type} records are immutable (attempted to change '{changed[0]}')",
                changed[0],
            )

    _check_update.__name__ = f"_check_{entity_type.lower()}_update"
    return _check_update


def _make_delete_guard(entity_type: str):
    def _check_delete(mapper, connection, target):
        _block(entity_type, target, "DELETE", f"{entity_type} records cannot be deleted")

    _check_delete.__name__ = f"_check_{entity_type.lower()}_delete"
    return _check_delete


_check_order_item_update = _make_update_guard("OrderItem")
_check_refund_update = _make_update_guard("Refund")
_check_refund_item_update = _make_update_guard("RefundItem")

_check_order_delete = _make_delete_guard("Order")
_check_order_item_delete = _make_delete_guard("OrderItem")
_check_refund_delete = _make_delete_guard("Refund")
_check_refund_item_delete = _make_delete_guard("RefundItem")


def _listeners():
    from pos_kernel.models.order import Order, OrderItem
    from pos_kernel.models.refund import Refund, RefundItem

    return [
        (Order, "before_update", _check_order_update),
        (Order, "before_delete", _check_order_delete),
        (OrderItem, "before_update", _check_order_item_update),
        (OrderItem, "before_delete", _check_order_item_delete),
        (Refund, "before_update", _check_refund_update),
        (Refund, "before_delete", _check_refund_delete),
        (RefundItem, "before_update", _check_refund_item_update),
        (RefundItem, "before_delete", _check_refund_item_delete),
    ]


def register_immutability_listeners():
    """
    Register all immutability listeners (idempotent).

    Call after models are imported and before any writes.
    """
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners():
    """
    Remove immutability listeners.

    WARNING: Only use this in tests that need to violate the rules on purpose.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)


def immutability_listeners_registered() -> bool:
    return all(event.contains(t, n, fn) for t, n, fn in _listeners())
