from .product_service import ProductService
from .sale_service import SaleService
from .sales_report_service import SalesReportService
__all__=[
    "ProductService",
    "SaleService",
    "SalesReportService",
    ]
