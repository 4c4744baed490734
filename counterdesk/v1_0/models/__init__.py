from .base import Base
from .enums import SaleStatus, PaymentMethod, SALE_STATUS_TRANSITIONS
from .customer import Customer
from .product import Product
from .sale_item import SaleItem
from .sale import Sale
__all__ = [
    "Base",
    "SaleStatus",
    "PaymentMethod",
    "SALE_STATUS_TRANSITIONS",
    "Customer",
    "Product",
    "SaleItem",
    "Sale",
]
