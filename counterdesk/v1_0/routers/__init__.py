from .product_router import router as product_router
from .sale_router import router as sale_router
defined_routers = [
    product_router,
    sale_router,
]
