"""Request bodies.  JSON keys are camelCase; snake_case is accepted too."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutItem(CamelModel):
    product_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal


class CheckoutRequest(CamelModel):
    items: list[CheckoutItem]
    payment_method: str = Field(..., min_length=1, max_length=20)
    total_amount: Decimal
    discount: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")


class RefundItemRequest(CamelModel):
    order_item_id: int
    quantity: int


class RefundRequest(CamelModel):
    order_id: int
    items: list[RefundItemRequest]
    reason: Optional[str] = None
