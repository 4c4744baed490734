from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from counterdesk.v1_0.models import PaymentMethod, SaleStatus

class SaleItemInput(BaseModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        max_digits=14,
        decimal_places=2,
        description="Price snapshot; defaults to the product's current effective price",
    )

class SaleCreate(BaseModel):
    customer_id: Optional[int] = Field(default=None, ge=1)
    payment_method: PaymentMethod
    status: SaleStatus = SaleStatus.PENDING
    items: List[SaleItemInput] = Field(..., min_length=1)

class SaleStatusUpdate(BaseModel):
    status: SaleStatus
