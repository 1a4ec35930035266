"""
Policies -- Behaviour switches the kernel receives from configuration.

Responsibility:
    Plain frozen value objects consumed by services and selectors.  The
    kernel never reads configuration files itself; ``pos_config.bridges``
    builds these from the loaded config.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from dataclasses import dataclass
from decimal import Decimal
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class StockPolicy:
    """
    Stock ledger behaviour.

    allow_negative_stock=True keeps the historical behaviour of letting a
    sale drive stock below zero (oversell).  When False, the decrement is
    guarded and fails with InsufficientStockError.
    """

    allow_negative_stock: bool = True


@dataclass(frozen=True)
class TotalsPolicy:
    """
    Checkout totals verification.

    When verify is True, each line subtotal must equal price * quantity and
    the order total must equal max(0, sum(subtotals) - discount),
    within tolerance.
    """

    verify: bool = True
    tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")


@dataclass(frozen=True)
class StoreInfo:
    """Store identity and the timezone that defines a business day."""

    name: str = "POS Store"
    address: str = ""
    timezone: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
