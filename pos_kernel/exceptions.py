"""
Typed Exception Hierarchy for the POS Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Checkout and refund failures are shown to a cashier standing in front of a
customer. The HTTP layer must turn every failure into a precise status code
and an actionable message without parsing message strings, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - RIGHT way to handle errors:
    try:
        refund_service.create_refund(order_id, user_id, lines, reason)
    except RefundQuantityExceededError as e:
        show(f"Only {e.available} left to refund")
    except NotFoundError as e:
        api_response(404, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PosKernelError (base)
    |
    +-- NotFoundError                      -> 404
    |   +-- UserNotFoundError
    |   +-- OrderNotFoundError
    |   +-- OrderItemNotFoundError
    |   +-- RefundNotFoundError
    |
    +-- ValidationError                    -> 400
    |   +-- RefundQuantityExceededError
    |   +-- EmptyRefundError
    |   +-- EmptyOrderError
    |   +-- InvalidOrderLineError
    |   +-- OrderTotalMismatchError
    |   +-- InsufficientStockError
    |   +-- InvalidReportFilterError
    |
    +-- AuthError                          -> 401
    |   +-- MissingCredentialsError
    |   +-- InvalidTokenError
    |   +-- ForbiddenError                 -> 403
    |
    +-- ImmutabilityError                  -> 409
    |   +-- ImmutabilityViolationError
    |   +-- OrderStatusTransitionError
    |
    +-- PersistenceError                   -> 500

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                        | When Raised
--------------|-----------------------------|------------------------------------------
Not found     | USER_NOT_FOUND              | Token user no longer exists at checkout
              | ORDER_NOT_FOUND             | Order id doesn't exist
              | ORDER_ITEM_NOT_FOUND        | Line doesn't belong to the order
              | REFUND_NOT_FOUND            | Refund id doesn't exist
--------------|-----------------------------|------------------------------------------
Validation    | REFUND_QUANTITY_EXCEEDED    | Requested > still refundable
              | EMPTY_REFUND                | No line with quantity > 0
              | EMPTY_ORDER                 | Checkout without lines
              | INVALID_ORDER_LINE          | Line quantity <= 0, negative price
              | ORDER_TOTAL_MISMATCH        | Caller total or subtotal is off
              | INSUFFICIENT_STOCK          | Oversell while negative stock is off
              | INVALID_REPORT_FILTER       | Unknown status / unparsable date
--------------|-----------------------------|------------------------------------------
Auth          | MISSING_CREDENTIALS         | No bearer token
              | INVALID_TOKEN               | Bad signature, expired, bad claims
              | FORBIDDEN                   | Role not allowed for the route
--------------|-----------------------------|------------------------------------------
Immutability  | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of an append-only row
              | ORDER_STATUS_TRANSITION     | Backward or unknown status move
--------------|-----------------------------|------------------------------------------
Persistence   | PERSISTENCE_ERROR           | Any storage/transaction failure

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Domain exceptions should be catchable as a group. Inheriting from
   built-in types mixes domain errors with programming errors.

2. WHY code CLASS ATTRIBUTE (not instance)?
   Codes are static per exception type, so the API status table and
   documentation can reference them without instantiation.

3. WHY IS ForbiddenError AN AuthError?
   Both mean "this caller may not do this"; the API still maps it to 403.
"""


class PosKernelError(Exception):
    """
    Base exception for all POS kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "POS_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(PosKernelError):
    """Base exception for a referenced entity that does not exist."""

    code: str = "NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """The cashier referenced by the caller's token no longer exists."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(
            f"User not found. Your token contains user ID {user_id}, but this "
            "user doesn't exist in the database. Please log out and log back "
            "in to refresh your authentication token."
        )


class OrderNotFoundError(NotFoundError):
    """Order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderItemNotFoundError(NotFoundError):
    """Order item does not exist or does not belong to the order."""

    code: str = "ORDER_ITEM_NOT_FOUND"

    def __init__(self, order_id: int, order_item_id: int):
        self.order_id = order_id
        self.order_item_id = order_item_id
        super().__init__(f"Order item {order_item_id} not found in order {order_id}")


class RefundNotFoundError(NotFoundError):
    """Refund with given ID was not found."""

    code: str = "REFUND_NOT_FOUND"

    def __init__(self, refund_id: int):
        self.refund_id = refund_id
        super().__init__(f"Refund not found: {refund_id}")


# Validation exceptions


class ValidationError(PosKernelError):
    """Base exception for business-rule violations detected before any write."""

    code: str = "VALIDATION_ERROR"


class RefundQuantityExceededError(ValidationError):
    """
    Requested refund quantity exceeds what remains refundable on the line.

    The message states available, already-refunded and original quantities so
    the UI can show the cashier why the request was rejected.
    """

    code: str = "REFUND_QUANTITY_EXCEEDED"

    def __init__(
        self,
        order_item_id: int,
        requested: int,
        available: int,
        already_refunded: int,
        original: int,
    ):
        self.order_item_id = order_item_id
        self.requested = requested
        self.available = available
        self.already_refunded = already_refunded
        self.original = original
        super().__init__(
            f"Cannot refund more than {available} items. "
            f"{already_refunded} already refunded out of {original} total."
        )


class EmptyRefundError(ValidationError):
    """Refund request contains no line with a positive quantity."""

    code: str = "EMPTY_REFUND"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Nothing to refund for order {order_id}: no line has a positive quantity")


class EmptyOrderError(ValidationError):
    """Checkout was submitted without any lines."""

    code: str = "EMPTY_ORDER"

    def __init__(self):
        super().__init__("An order must contain at least one item")


class InvalidOrderLineError(ValidationError):
    """A checkout line is malformed."""

    code: str = "INVALID_ORDER_LINE"

    def __init__(self, product_id: int, reason: str):
        self.product_id = product_id
        self.reason = reason
        super().__init__(f"Invalid line for product {product_id}: {reason}")


class OrderTotalMismatchError(ValidationError):
    """Caller-supplied total does not match the total recomputed from lines."""

    code: str = "ORDER_TOTAL_MISMATCH"

    def __init__(self, expected: str, received: str, field: str = "totalAmount"):
        self.expected = expected
        self.received = received
        self.field = field
        super().__init__(
            f"Order {field} mismatch: expected {expected}, received {received}"
        )


class InsufficientStockError(ValidationError):
    """Sale would drive stock below zero while overselling is disabled."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, requested: int):
        self.product_id = product_id
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}"
        )


class InvalidReportFilterError(ValidationError):
    """A report filter parameter could not be interpreted."""

    code: str = "INVALID_REPORT_FILTER"

    def __init__(self, parameter: str, value: str):
        self.parameter = parameter
        self.value = value
        super().__init__(f"Invalid value for '{parameter}': {value}")


# Auth exceptions


class AuthError(PosKernelError):
    """Base exception for caller identity problems."""

    code: str = "AUTH_ERROR"


class MissingCredentialsError(AuthError):
    """No bearer token was supplied."""

    code: str = "MISSING_CREDENTIALS"

    def __init__(self):
        super().__init__("No token provided")


class InvalidTokenError(AuthError):
    """Token is malformed, expired, or lacks required claims."""

    code: str = "INVALID_TOKEN"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unauthorized: {reason}. Please log in again.")


class ForbiddenError(AuthError):
    """Caller's role is not permitted for the operation."""

    code: str = "FORBIDDEN"

    def __init__(self, role: str, required_role: str):
        self.role = role
        self.required_role = required_role
        super().__init__(f"Require {required_role} role (caller has {role})")


# Immutability exceptions


class ImmutabilityError(PosKernelError):
    """Base exception for writes against append-only records."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class OrderStatusTransitionError(ImmutabilityError):
    """Order status moved backward or to an unknown value."""

    code: str = "ORDER_STATUS_TRANSITION"

    def __init__(self, order_id: str, from_status: str, to_status: str):
        self.order_id = order_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Order {order_id} cannot move from {from_status} to {to_status}"
        )


# Persistence exceptions


class PersistenceError(PosKernelError):
    """
    Underlying storage or transaction failure.

    Constraint violations, deadlocks and connection errors all land here;
    the original driver exception is chained as __cause__.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, message: str):
        self.detail = message
        super().__init__(message)
