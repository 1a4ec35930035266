"""
POS configuration schema.

Frozen dataclasses parsed from YAML by ``pos_config.loader``.  Every
runtime setting the POS needs is one field here; nothing else reads
environment variables or files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///pos.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class AuthConfig:
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 720


@dataclass(frozen=True)
class StoreConfig:
    name: str = "POS Store"
    address: str = ""
    timezone: str = "UTC"


@dataclass(frozen=True)
class InventoryConfig:
    allow_negative_stock: bool = True


@dataclass(frozen=True)
class CheckoutConfig:
    verify_totals: bool = True
    total_tolerance: Decimal = Decimal("0.01")


@dataclass(frozen=True)
class ReportingConfig:
    default_page_size: int = 10
    max_page_size: int = 100


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class PosConfig:
    """The complete, validated runtime configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    checkout: CheckoutConfig = field(default_factory=CheckoutConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    cors_origins: tuple[str, ...] = ("*",)
    checksum: str = ""
