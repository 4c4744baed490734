from dataclasses import dataclass
from decimal import Decimal

@dataclass(slots=True)
class SaleItemViewDTO:
    id: int
    product_id: int
    product_name: str
    product_category: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
