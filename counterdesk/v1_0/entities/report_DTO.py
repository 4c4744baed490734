from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal

from .sale_DTO import SaleDetailDTO

Period = Literal["day", "week", "month", "year"]

@dataclass(slots=True)
class SalesStatsDTO:
    period: Period
    date_from: datetime
    date_to: datetime
    total: Decimal
    count: int
    average: Decimal

@dataclass(slots=True)
class PaymentMethodTotalsDTO:
    count: int = 0
    total: Decimal = Decimal("0.00")

@dataclass(slots=True)
class SalesReportDTO:
    date_from: date
    date_to: date
    total_sales: int
    total_revenue: Decimal
    payment_methods: Dict[str, PaymentMethodTotalsDTO]
    sales: List[SaleDetailDTO] = field(default_factory=list)

@dataclass(slots=True)
class TopProductItemDTO:
    product_id: int
    name: str
    category: str
    quantity: int
    revenue: Decimal
