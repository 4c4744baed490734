from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional
from datetime import datetime

from .customer_DTO import CustomerSummaryDTO
from .sale_itemDTO import SaleItemViewDTO
from .page import PageDTO

@dataclass(slots=True)
class SaleDTO:
    id: int
    status: str
    payment_method: str
    total: Decimal
    created_at: datetime
    customer: Optional[CustomerSummaryDTO] = None

@dataclass(slots=True)
class SaleDetailDTO:
    """Sale with customer and every item expanded with its product snapshot."""
    id: int
    status: str
    payment_method: str
    total: Decimal
    created_at: datetime
    customer: Optional[CustomerSummaryDTO] = None
    items: List[SaleItemViewDTO] = field(default_factory=list)

SalePageDTO = PageDTO[SaleDTO]
