"""
Config -> Kernel Bridges.

Functions that convert a PosConfig into kernel policy objects.  They live
in pos_config (the producer) because the kernel must NEVER import
pos_config.

Usage:
    from pos_config.bridges import build_stock_policy, build_totals_policy

    config = get_active_config()
    ledger = StockLedger(session, build_stock_policy(config))
"""

from __future__ import annotations

from pos_config.schema import PosConfig
from pos_kernel.domain.policies import StockPolicy, StoreInfo, TotalsPolicy


def build_stock_policy(config: PosConfig) -> StockPolicy:
    return StockPolicy(allow_negative_stock=config.inventory.allow_negative_stock)


def build_totals_policy(config: PosConfig) -> TotalsPolicy:
    return TotalsPolicy(
        verify=config.checkout.verify_totals,
        tolerance=config.checkout.total_tolerance,
    )


def build_store_info(config: PosConfig) -> StoreInfo:
    return StoreInfo(
        name=config.store.name,
        address=config.store.address,
        timezone=config.store.timezone,
    )
