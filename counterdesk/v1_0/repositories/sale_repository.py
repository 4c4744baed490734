from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from counterdesk.v1_0.models import Sale, SaleItem, SaleStatus
from .base_repository import BaseRepository
from .filters import Eq, FilterSpec, NotEq, Range

CUSTOMER_ONLY = (selectinload(Sale.customer),)
FULL_DETAIL = (
    selectinload(Sale.customer),
    selectinload(Sale.items).selectinload(SaleItem.product),
)

NOT_CANCELLED = NotEq("status", SaleStatus.CANCELLED.value)


class SaleRepository(BaseRepository[Sale]):
    def __init__(self) -> None:
        super().__init__(Sale)

    async def list_page(
        self,
        session: AsyncSession,
        spec: FilterSpec,
        *,
        offset: int,
        limit: int,
        timeout: Optional[float] = None,
    ) -> Tuple[List[Sale], int]:
        return await self.find(
            session,
            spec,
            order_by=(Sale.created_at.desc(), Sale.id.desc()),
            offset=offset,
            limit=limit,
            options=CUSTOMER_ONLY,
            timeout=timeout,
        )

    async def get_detail(
        self,
        sale_id: int,
        session: AsyncSession,
        *,
        timeout: Optional[float] = None,
    ) -> Optional[Sale]:
        """Sale with customer and items (each with its product) loaded."""
        return await self.find_one(session, (Eq("id", sale_id),), options=FULL_DETAIL, timeout=timeout)

    async def window_totals(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
        *,
        timeout: Optional[float] = None,
    ) -> Tuple[int, Decimal]:
        """
        Count and revenue of non-cancelled sales with start <= created_at <= end,
        in a single statement so both numbers come from the same snapshot.
        """
        stmt = (
            select(
                func.count(Sale.id).label("sale_count"),
                func.coalesce(func.sum(Sale.total), 0).label("revenue"),
            )
            .where(Sale.created_at >= start)
            .where(Sale.created_at <= end)
            .where(Sale.status != SaleStatus.CANCELLED.value)
        )

        async def _run() -> Tuple[int, Decimal]:
            row = (await session.execute(stmt)).one()
            return int(row.sale_count or 0), Decimal(str(row.revenue or 0))

        return await self._guard("window_totals", _run(), timeout)

    async def list_in_range(
        self,
        session: AsyncSession,
        start: datetime,
        end_exclusive: datetime,
        *,
        timeout: Optional[float] = None,
    ) -> List[Sale]:
        """Non-cancelled sales in [start, end_exclusive), fully expanded, newest first."""
        spec: FilterSpec = (
            Range("created_at", gte=start, lt=end_exclusive),
            NOT_CANCELLED,
        )
        return await self.find_all(
            session,
            spec,
            order_by=(Sale.created_at.desc(), Sale.id.desc()),
            options=FULL_DETAIL,
            timeout=timeout,
        )
