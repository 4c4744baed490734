from .page import PageDTO
from .customer_DTO import CustomerSummaryDTO
from .product_DTO import ProductDTO, ProductPageDTO
from .sale_itemDTO import SaleItemViewDTO
from .sale_DTO import SaleDTO, SaleDetailDTO, SalePageDTO
from .report_DTO import (
    Period,
    SalesStatsDTO,
    PaymentMethodTotalsDTO,
    SalesReportDTO,
    TopProductItemDTO,
)


__all__ = [
    "PageDTO",
    "CustomerSummaryDTO",
    "ProductDTO", "ProductPageDTO",
    "SaleItemViewDTO",
    "SaleDTO", "SaleDetailDTO", "SalePageDTO",
    "Period", "SalesStatsDTO", "PaymentMethodTotalsDTO", "SalesReportDTO", "TopProductItemDTO",
]
