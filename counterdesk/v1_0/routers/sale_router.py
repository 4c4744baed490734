from datetime import date
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from dependency_injector.wiring import inject, Provide

from counterdesk.storage.database.db_connector import get_db
from counterdesk.app_containers import ApplicationContainer
from counterdesk.core.logger import logger

from counterdesk.v1_0.schemas import SaleCreate, SaleStatusUpdate
from counterdesk.v1_0.entities import (
    SaleDetailDTO,
    SalePageDTO,
    SalesStatsDTO,
    SalesReportDTO,
    TopProductItemDTO,
)
from counterdesk.v1_0.services import SaleService, SalesReportService

router = APIRouter(prefix="/sales", tags=["Sales"])

@router.post(
    "/create",
    response_model=SaleDetailDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create a sale with its items",
)
@inject
async def create_sale(
    request: SaleCreate,
    db: AsyncSession = Depends(get_db),
    service: SaleService = Depends(Provide[ApplicationContainer.api_container.sale_service]),
):
    logger.info("[SaleRouter] create items=%s", len(request.items))
    return await service.create(
        request.payment_method.value,
        [i.model_dump() for i in request.items],
        db,
        customer_id=request.customer_id,
        status=request.status.value,
    )

@router.get(
    "/by-id/{sale_id}",
    response_model=SaleDetailDTO,
    summary="Get sale with items",
)
@inject
async def get_sale(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    service: SaleService = Depends(Provide[ApplicationContainer.api_container.sale_service]),
):
    dto = await service.get(sale_id, db)
    if dto is None:
        raise HTTPException(status_code=404, detail="Sale not found.")
    return dto

@router.get(
    "/page",
    response_model=SalePageDTO,
    summary="List sales paginated",
)
@inject
async def list_sales(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    status: Optional[str] = Query(None),
    payment_method: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: SaleService = Depends(Provide[ApplicationContainer.api_container.sale_service]),
):
    logger.debug(f"[SaleRouter] list page={page} limit={limit}")
    return await service.list_paginated(
        db,
        page=page,
        limit=limit,
        date_from=date_from,
        date_to=date_to,
        status=status,
        payment_method=payment_method,
        customer_id=customer_id,
    )

@router.patch(
    "/by-id/{sale_id}/status",
    response_model=SaleDetailDTO,
    summary="Change sale status",
)
@inject
async def update_sale_status(
    sale_id: int,
    request: SaleStatusUpdate,
    db: AsyncSession = Depends(get_db),
    service: SaleService = Depends(Provide[ApplicationContainer.api_container.sale_service]),
):
    return await service.update_status(sale_id, request.status.value, db)

@router.get(
    "/stats",
    response_model=SalesStatsDTO,
    summary="Revenue, count and average ticket for a period",
)
@inject
async def sales_stats(
    period: str = Query("day"),
    db: AsyncSession = Depends(get_db),
    service: SalesReportService = Depends(Provide[ApplicationContainer.api_container.sales_report_service]),
):
    return await service.stats(period, db)

@router.get(
    "/report",
    response_model=SalesReportDTO,
    summary="Sales between two dates grouped by payment method",
)
@inject
async def sales_report(
    date_from: date = Query(...),
    date_to: date = Query(...),
    db: AsyncSession = Depends(get_db),
    service: SalesReportService = Depends(Provide[ApplicationContainer.api_container.sales_report_service]),
):
    return await service.report(date_from, date_to, db)

@router.get(
    "/top-products",
    response_model=List[TopProductItemDTO],
    summary="Best selling products between two dates",
)
@inject
async def top_products(
    date_from: date = Query(...),
    date_to: date = Query(...),
    limit: int = Query(10),
    db: AsyncSession = Depends(get_db),
    service: SalesReportService = Depends(Provide[ApplicationContainer.api_container.sales_report_service]),
):
    return await service.top_products(date_from, date_to, db, limit=limit)
