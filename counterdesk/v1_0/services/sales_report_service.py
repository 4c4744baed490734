from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from counterdesk.core.errors import ValidationError
from counterdesk.core.logger import logger
from counterdesk.core.settings import settings
from counterdesk.utils.tx import maybe_begin
from counterdesk.v1_0.entities import (
    PaymentMethodTotalsDTO,
    SaleDetailDTO,
    SalesReportDTO,
    SalesStatsDTO,
    TopProductItemDTO,
)
from counterdesk.v1_0.helper import day_range, stats_window, utcnow
from counterdesk.v1_0.models import SaleStatus
from counterdesk.v1_0.repositories import SaleItemRepository, SaleRepository
from .sale_service import to_detail_dto

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def average_ticket(total: Decimal, count: int) -> Decimal:
    if count <= 0:
        return ZERO
    return (total / count).quantize(CENT)


def fold_sales(
    sales: Iterable[SaleDetailDTO],
) -> Tuple[int, Decimal, Dict[str, PaymentMethodTotalsDTO]]:
    """
    Fold sales into (count, revenue, per payment method {count, total}).

    Cancelled sales are skipped. Decimal addition is exact, so the result does
    not depend on input order; method keys come back sorted.
    """
    count = 0
    revenue = ZERO
    acc: Dict[str, PaymentMethodTotalsDTO] = {}
    for s in sales:
        if s.status == SaleStatus.CANCELLED.value:
            continue
        count += 1
        revenue += s.total
        bucket = acc.setdefault(s.payment_method, PaymentMethodTotalsDTO())
        bucket.count += 1
        bucket.total += s.total
    return count, revenue, {k: acc[k] for k in sorted(acc)}


class SalesReportService:
    """
    Period statistics and grouped reports over sales.

    Every figure here leaves cancelled sales out.
    """

    def __init__(
        self,
        sale_repository: SaleRepository,
        sale_item_repository: SaleItemRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sale_repository = sale_repository
        self.sale_item_repository = sale_item_repository
        self._clock = clock

    async def stats(self, period: str, db: AsyncSession, *, timeout: Optional[float] = None) -> SalesStatsDTO:
        """
        Revenue, count and average ticket over a window ending now.

        day is the current calendar day; week, month and year are the last
        7, 30 and 365 days.

        Raises:
            ValidationError: Unknown period.
            StoreError: The store failed.
        """
        start, end = stats_window(period, self._clock(), settings.TZ)
        logger.debug("[SalesReportService] stats period=%s window=%s..%s", period, start, end)

        async with maybe_begin(db):
            count, total = await self.sale_repository.window_totals(db, start, end, timeout=timeout)

        total = total.quantize(CENT)
        return SalesStatsDTO(
            period=period,
            date_from=start,
            date_to=end,
            total=total,
            count=count,
            average=average_ticket(total, count),
        )

    async def report(
        self,
        date_from: date,
        date_to: date,
        db: AsyncSession,
        *,
        timeout: Optional[float] = None,
    ) -> SalesReportDTO:
        """
        Sales between two days (both included), grouped by payment method.

        Raises:
            ValidationError: Missing bounds or date_from after date_to; no query is issued.
            StoreError: The store failed.
        """
        if date_from is None or date_to is None:
            raise ValidationError("date_from and date_to are required", field="date_from")
        start, end_exclusive = day_range(date_from, date_to, settings.TZ)
        logger.debug("[SalesReportService] report %s..%s", date_from, date_to)

        async with maybe_begin(db):
            rows = await self.sale_repository.list_in_range(db, start, end_exclusive, timeout=timeout)
            sales: List[SaleDetailDTO] = [to_detail_dto(s) for s in rows]

        count, revenue, by_method = fold_sales(sales)
        return SalesReportDTO(
            date_from=date_from,
            date_to=date_to,
            total_sales=count,
            total_revenue=revenue.quantize(CENT),
            payment_methods=by_method,
            sales=sales,
        )

    async def top_products(
        self,
        date_from: date,
        date_to: date,
        db: AsyncSession,
        *,
        limit: int = 10,
        timeout: Optional[float] = None,
    ) -> List[TopProductItemDTO]:
        """Best sellers by quantity between two days (both included)."""
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit", value=limit)
        if date_from is None or date_to is None:
            raise ValidationError("date_from and date_to are required", field="date_from")
        start, end_exclusive = day_range(date_from, date_to, settings.TZ)

        async with maybe_begin(db):
            rows = await self.sale_item_repository.top_products(
                db, start, end_exclusive, limit, timeout=timeout
            )

        return [
            TopProductItemDTO(
                product_id=r["product_id"],
                name=r["name"],
                category=r["category"],
                quantity=int(r["quantity"] or 0),
                revenue=Decimal(str(r["revenue"] or 0)).quantize(CENT),
            )
            for r in rows
        ]
