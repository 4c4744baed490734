from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

Money = Decimal


class ProductCreate(BaseModel):
    """Schema used to create a product."""
    name: str = Field(..., min_length=1, max_length=120, description="Product name")
    description: str = Field("", max_length=1000, description="Product description")
    price: Money = Field(..., ge=0, max_digits=14, decimal_places=2, description="Unit sale price")
    discount_price: Optional[Money] = Field(
        default=None, ge=0, max_digits=14, decimal_places=2, description="Promotional price; must be < price"
    )
    category: str = Field(..., min_length=1, max_length=60, description="Category tag")
    image: Optional[str] = Field(default=None, max_length=500, description="Image reference (URL or key)")
    ingredients: List[str] = Field(default_factory=list)
    available: bool = True
    featured: bool = False

    @model_validator(mode="after")
    def _discount_below_price(self):
        if self.discount_price is not None and self.discount_price >= self.price:
            raise ValueError("discount_price must be lower than price")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Pão de queijo",
                "description": "Porção com 6 unidades",
                "price": "12.00",
                "discount_price": "10.50",
                "category": "snacks",
                "ingredients": ["polvilho", "queijo"],
                "available": True,
                "featured": False,
            }
        }
    }


class ProductUpdate(BaseModel):
    """Partial update; only the fields sent are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    price: Optional[Money] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    discount_price: Optional[Money] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    category: Optional[str] = Field(default=None, min_length=1, max_length=60)
    image: Optional[str] = Field(default=None, max_length=500)
    ingredients: Optional[List[str]] = None
    available: Optional[bool] = None
    featured: Optional[bool] = None


class FlagUpdate(BaseModel):
    value: bool
