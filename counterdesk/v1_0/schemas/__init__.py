from .product_schema import ProductCreate, ProductUpdate, FlagUpdate
from .sale_schema import SaleItemInput, SaleCreate, SaleStatusUpdate
__all__ = [
    "ProductCreate", "ProductUpdate", "FlagUpdate",
    "SaleItemInput", "SaleCreate", "SaleStatusUpdate",
]
