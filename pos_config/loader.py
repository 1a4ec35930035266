"""
Configuration Loader (``pos_config.loader``).

Responsibility
--------------
Loads the YAML configuration file, applies environment overrides, and
parses the result into the frozen ``pos_config.schema`` dataclasses.
Callers use ``pos_config.get_active_config()``, not this module.

Environment overrides
---------------------
=========================  ==================================
Variable                   Setting
=========================  ==================================
``POS_CONFIG_FILE``        YAML file to load instead of defaults
``DATABASE_URL``           ``database.url``
``POS_JWT_SECRET``         ``auth.jwt_secret``
``POS_STORE_TIMEZONE``     ``store.timezone``
``POS_ALLOW_NEGATIVE_STOCK`` ``inventory.allow_negative_stock``
``POS_VERIFY_TOTALS``      ``checkout.verify_totals``
``POS_LOG_LEVEL``          ``logging.level``
=========================  ==================================

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad values (unknown timezone, non-boolean flag, negative page size)
  -> ``ValueError`` with the offending key.
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from pos_config.schema import (
    AuthConfig,
    CheckoutConfig,
    DatabaseConfig,
    InventoryConfig,
    LoggingConfig,
    PosConfig,
    ReportingConfig,
    StoreConfig,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "DATABASE_URL": ("database", "url"),
    "POS_JWT_SECRET": ("auth", "jwt_secret"),
    "POS_STORE_TIMEZONE": ("store", "timezone"),
    "POS_ALLOW_NEGATIVE_STOCK": ("inventory", "allow_negative_stock"),
    "POS_VERIFY_TOTALS": ("checkout", "verify_totals"),
    "POS_LOG_LEVEL": ("logging", "level"),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{key}: expected a boolean, got {value!r}")


def parse_decimal(value: Any, key: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{key}: expected a number, got {value!r}") from None


def parse_positive_int(value: Any, key: str) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f"{key}: must be >= 1, got {number}")
    return number


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in data.items()}
    for var, (section, key) in ENV_OVERRIDES.items():
        if var in environ and environ[var] != "":
            merged.setdefault(section, {})[key] = environ[var]
    return merged


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical input, identical checksum."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> PosConfig:
    """Parse a merged config dict into a PosConfig. Missing keys take defaults."""
    db = data.get("database") or {}
    auth = data.get("auth") or {}
    store = data.get("store") or {}
    inventory = data.get("inventory") or {}
    checkout = data.get("checkout") or {}
    reporting = data.get("reporting") or {}
    log = data.get("logging") or {}

    timezone = str(store.get("timezone", StoreConfig.timezone))
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"store.timezone: unknown timezone {timezone!r}") from None

    default_page = parse_positive_int(
        reporting.get("default_page_size", ReportingConfig.default_page_size),
        "reporting.default_page_size",
    )
    max_page = parse_positive_int(
        reporting.get("max_page_size", ReportingConfig.max_page_size),
        "reporting.max_page_size",
    )
    if default_page > max_page:
        raise ValueError("reporting.default_page_size must not exceed reporting.max_page_size")

    origins = data.get("cors_origins", ["*"])
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(",") if o.strip()]

    return PosConfig(
        database=DatabaseConfig(
            url=str(db.get("url", DatabaseConfig.url)),
            echo=parse_bool(db.get("echo", False), "database.echo"),
            pool_size=parse_positive_int(db.get("pool_size", DatabaseConfig.pool_size), "database.pool_size"),
            max_overflow=int(db.get("max_overflow", DatabaseConfig.max_overflow)),
            pool_timeout=parse_positive_int(db.get("pool_timeout", DatabaseConfig.pool_timeout), "database.pool_timeout"),
        ),
        auth=AuthConfig(
            jwt_secret=str(auth.get("jwt_secret", AuthConfig.jwt_secret)),
            jwt_algorithm=str(auth.get("jwt_algorithm", AuthConfig.jwt_algorithm)),
            token_ttl_minutes=parse_positive_int(
                auth.get("token_ttl_minutes", AuthConfig.token_ttl_minutes),
                "auth.token_ttl_minutes",
            ),
        ),
        store=StoreConfig(
            name=str(store.get("name", StoreConfig.name)),
            address=str(store.get("address", StoreConfig.address) or ""),
            timezone=timezone,
        ),
        inventory=InventoryConfig(
            allow_negative_stock=parse_bool(
                inventory.get("allow_negative_stock", True), "inventory.allow_negative_stock"
            ),
        ),
        checkout=CheckoutConfig(
            verify_totals=parse_bool(checkout.get("verify_totals", True), "checkout.verify_totals"),
            total_tolerance=parse_decimal(
                checkout.get("total_tolerance", "0.01"), "checkout.total_tolerance"
            ),
        ),
        reporting=ReportingConfig(default_page_size=default_page, max_page_size=max_page),
        logging=LoggingConfig(level=str(log.get("level", LoggingConfig.level)).upper()),
        cors_origins=tuple(str(o) for o in origins),
        checksum=compute_checksum(data),
    )


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> PosConfig:
    """
    Load, override and parse configuration.

    ``path`` wins over ``POS_CONFIG_FILE``, which wins over the packaged
    defaults.
    """
    environ = os.environ if environ is None else environ
    if path is None and environ.get("POS_CONFIG_FILE"):
        path = Path(environ["POS_CONFIG_FILE"])
    data = load_yaml_file(path or DEFAULTS_PATH)
    return parse_config(apply_env_overrides(data, environ))
