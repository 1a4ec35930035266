"""
Kernel DTO -> JSON conversion.

Frozen dataclasses become dicts with camelCase keys.  Money is rendered as
a decimal string so no precision is lost; datetimes as ISO-8601; enums by
value.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic.alias_generators import to_camel

from pos_kernel.domain.dtos import DailyReport, OrderReport


def to_json(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {to_camel(f.name): to_json(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    return value


def order_report_json(report: OrderReport) -> dict[str, Any]:
    return {
        "orders": to_json(report.orders),
        "totalSales": to_json(report.totals.total_sales),
        "totalOrders": report.totals.total_orders,
        "totalDiscounts": to_json(report.totals.total_discount),
        "mode": report.mode.value,
        "pagination": to_json(report.pagination),
    }


def daily_report_json(report: DailyReport) -> dict[str, Any]:
    window = report.window
    body: dict[str, Any] = {
        "startDate": window.first_day.isoformat(),
        "endDate": window.last_day.isoformat(),
        "date": window.first_day.isoformat(),
        "totalSales": to_json(report.totals.total_sales),
        "totalOrders": report.totals.total_orders,
        "totalDiscount": to_json(report.totals.total_discount),
        "orders": to_json(report.orders),
        "pagination": to_json(report.pagination),
    }
    if window.days is not None:
        body["dates"] = [d.isoformat() for d in window.days]
    return body
