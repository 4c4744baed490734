from .base_repository import BaseRepository
from .filters import Contains, Eq, FilterSpec, NotEq, Range, compile_filters
from .customer_repository import CustomerRepository
from .product_repository import ProductRepository, SORTABLE_FIELDS
from .sale_item_repository import SaleItemRepository
from .sale_repository import SaleRepository
__all__ = [
    "BaseRepository",
    "Contains",
    "Eq",
    "FilterSpec",
    "NotEq",
    "Range",
    "compile_filters",
    "CustomerRepository",
    "ProductRepository",
    "SORTABLE_FIELDS",
    "SaleItemRepository",
    "SaleRepository",
]
