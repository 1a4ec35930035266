"""
StockLedger -- the only writer of Product.quantity.

Responsibility:
    Applies signed stock deltas as a single relative UPDATE inside the
    caller's transaction.  Sales pass negative deltas, refunds positive.

Architecture position:
    Kernel > Services -- imperative shell.  Used by OrderService and
    RefundService; nothing else touches Product.quantity.

Invariants enforced:
    - No read-modify-write: ``quantity = quantity + :delta`` is evaluated by
      the database, so concurrent sales and refunds never lose an update.
    - With allow_negative_stock=False, a decrement carries the guard
      ``quantity + :delta >= 0`` in the same statement.

Failure modes:
    - InsufficientStockError when the guard rejects a decrement.
    - The session's persistence errors propagate unchanged.

Audit relevance:
    Every adjustment that changes a row logs ``stock_adjusted`` with product
    id and delta; an UPDATE that matches no product logs
    ``stock_adjustment_missed`` instead.
"""

from sqlalchemy import update
from sqlalchemy.orm import Session

from pos_kernel.domain.policies import StockPolicy
from pos_kernel.exceptions import InsufficientStockError
from pos_kernel.logging_config import get_logger
from pos_kernel.models.product import Product

logger = get_logger("services.stock_ledger")


class StockLedger:
    """
    Relative, atomic stock adjustment.

    Guarantees:
        - One UPDATE per call; the ORM identity map is not consulted and
          any loaded Product instance is left stale (callers that need the
          new level must refresh it).
        - delta == 0 is a no-op and issues no statement.
    """

    def __init__(self, session: Session, policy: StockPolicy | None = None):
        self._session = session
        self._policy = policy or StockPolicy()

    def adjust_stock(self, product_id: int, delta: int) -> None:
        """
        Add ``delta`` to the product's on-hand quantity.

        Raises:
            InsufficientStockError: decrement would go below zero while
                negative stock is not allowed.
        """
        if delta == 0:
            return

        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(quantity=Product.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        guarded = delta < 0 and not self._policy.allow_negative_stock
        if guarded:
            stmt = stmt.where(Product.quantity + delta >= 0)

        result = self._session.execute(stmt)

        if guarded and result.rowcount == 0:
            logger.warning(
                "stock_adjustment_rejected",
                extra={"product_id": product_id, "delta": delta},
            )
            raise InsufficientStockError(product_id=product_id, requested=-delta)

        if result.rowcount == 0:
            logger.warning(
                "stock_adjustment_missed",
                extra={"product_id": product_id, "delta": delta},
            )
            return

        logger.info(
            "stock_adjusted",
            extra={"product_id": product_id, "delta": delta},
        )
