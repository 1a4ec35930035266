"""
pos_config -- single public entrypoint for POS configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way to obtain configuration at
    runtime.  No other component reads configuration files or environment
    variables directly.

Architecture position:
    Configuration.  Sits above ``pos_kernel`` and below ``pos_api``.  The
    kernel MUST NEVER import ``pos_config``; ``pos_config.bridges``
    translates config into kernel policy objects.

Failure modes:
    - ``FileNotFoundError`` -- POS_CONFIG_FILE (or ``path``) does not exist.
    - ``ValueError`` -- a value failed validation.

Audit relevance:
    Every successful call emits a ``POS_CONFIG_TRACE`` log entry carrying
    the config checksum, so behaviour switches (negative stock, totals
    verification) can be tied to the configuration that was active.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from pos_config.loader import load_config
from pos_config.schema import PosConfig
from pos_kernel.logging_config import get_logger

_logger = get_logger("config")


def get_active_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> PosConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        path: YAML file to load.  Defaults to $POS_CONFIG_FILE, then the
            packaged defaults.yaml.
        environ: Environment mapping for overrides.  Defaults to os.environ.

    Returns:
        Frozen PosConfig.
    """
    config = load_config(path, environ)
    _logger.info(
        "POS_CONFIG_TRACE",
        extra={
            "trace_type": "POS_CONFIG_TRACE",
            "checksum": config.checksum,
            "database_dialect": config.database.url.split(":", 1)[0],
            "store_timezone": config.store.timezone,
            "allow_negative_stock": config.inventory.allow_negative_stock,
            "verify_totals": config.checkout.verify_totals,
        },
    )
    return config


__all__ = ["PosConfig", "get_active_config"]
