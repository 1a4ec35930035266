"""
POS Kernel

The order-refund consistency core of a point-of-sale system:
- Atomic checkout (order, lines and stock in one transaction)
- Partial refunds that can never exceed what was sold
- Order status derived from refunds, forward-only
- Net sales and refund reporting over local business days
"""

__version__ = "0.1.0"
