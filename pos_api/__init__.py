"""
pos_api -- HTTP surface for the POS kernel.

A FastAPI application mounted under ``/api``.  Routes translate JSON into
kernel calls inside one ``session_scope`` per request; business errors
propagate to a single exception handler that renders ``{message, code}``.
"""

from pos_api.app import create_app

__all__ = ["create_app"]
