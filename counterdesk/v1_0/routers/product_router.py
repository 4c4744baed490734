from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from dependency_injector.wiring import inject, Provide

from counterdesk.storage.database.db_connector import get_db
from counterdesk.app_containers import ApplicationContainer
from counterdesk.core.logger import logger

from counterdesk.v1_0.schemas import ProductCreate, ProductUpdate, FlagUpdate
from counterdesk.v1_0.entities import ProductDTO, ProductPageDTO
from counterdesk.v1_0.services import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

@router.post(
    "/create",
    response_model=ProductDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
)
@inject
async def create_product(
    request: ProductCreate,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
) -> ProductDTO:
    logger.info("[ProductRouter] create name=%s", request.name)
    return await service.create(request, db)

@router.get(
    "/by-id/{product_id}",
    response_model=ProductDTO,
    summary="Get product by ID",
)
@inject
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    logger.debug(f"[ProductRouter] get id={product_id}")
    dto = await service.get(product_id, db)
    if dto is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return dto

@router.get(
    "/page",
    response_model=ProductPageDTO,
    summary="List products paginated",
)
@inject
async def list_products_paginated(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    available: Optional[bool] = Query(None),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    logger.debug(f"[ProductRouter] list_paginated page={page} limit={limit}")
    return await service.list_paginated(
        db,
        page=page,
        limit=limit,
        search=search,
        category=category,
        available=available,
        sort_by=sort_by,
        order=order,
    )

@router.get(
    "/category/{category}",
    response_model=ProductPageDTO,
    summary="List available products of a category",
)
@inject
async def list_products_by_category(
    category: str,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    return await service.list_by_category(category, db, page=page, limit=limit)

@router.get(
    "/featured",
    response_model=List[ProductDTO],
    summary="Featured products",
)
@inject
async def list_featured_products(
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    return await service.list_featured(db, limit)

@router.get(
    "/available",
    response_model=List[ProductDTO],
    summary="Most recent available products",
)
@inject
async def list_available_products(
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    return await service.list_available(db, limit)

@router.patch(
    "/by-id/{product_id}",
    response_model=ProductDTO,
    summary="Update product",
)
@inject
async def update_product(
    product_id: int,
    request: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    logger.info("[ProductRouter] update id=%s", product_id)
    return await service.update(product_id, request, db)

@router.patch(
    "/by-id/{product_id}/featured",
    response_model=ProductDTO,
    summary="Set featured flag",
)
@inject
async def set_product_featured(
    product_id: int,
    request: FlagUpdate,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    return await service.set_featured(product_id, request.value, db)

@router.patch(
    "/by-id/{product_id}/availability",
    response_model=ProductDTO,
    summary="Set availability flag",
)
@inject
async def set_product_availability(
    product_id: int,
    request: FlagUpdate,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    return await service.set_available(product_id, request.value, db)

@router.delete(
    "/by-id/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete product",
)
@inject
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    service: ProductService = Depends(
        Provide[ApplicationContainer.api_container.product_service]
    ),
):
    logger.info("[ProductRouter] delete id=%s", product_id)
    if not await service.delete(product_id, db):
        raise HTTPException(status_code=404, detail="Product not found.")
