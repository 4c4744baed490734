from dependency_injector import containers, providers
from counterdesk.v1_0.repositories import (
    CustomerRepository,
    ProductRepository,
    SaleRepository,
    SaleItemRepository,
    )
from counterdesk.v1_0.services import (
    ProductService,
    SaleService,
    SalesReportService,
    )

class APIContainer(containers.DeclarativeContainer):
    customer_repository = providers.Singleton(CustomerRepository)
    product_repository = providers.Singleton(ProductRepository)
    sale_repository = providers.Singleton(SaleRepository)
    sale_item_repository = providers.Singleton(SaleItemRepository)

    product_service = providers.Singleton(
        ProductService,
        product_repository = product_repository,
        sale_item_repository = sale_item_repository,
    )
    sale_service = providers.Singleton(
        SaleService,
        sale_repository = sale_repository,
        sale_item_repository = sale_item_repository,
        product_repository = product_repository,
        customer_repository = customer_repository,
    )
    sales_report_service = providers.Singleton(
        SalesReportService,
        sale_repository = sale_repository,
        sale_item_repository = sale_item_repository,
    )
