from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional
from datetime import datetime

from .page import PageDTO

@dataclass(slots=True)
class ProductDTO:
    """Full product listing row."""
    id: int
    name: str
    description: str
    price: Decimal
    category: str
    available: bool
    featured: bool
    created_at: datetime
    updated_at: datetime
    discount_price: Optional[Decimal] = None
    image: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)

ProductPageDTO = PageDTO[ProductDTO]
