from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from counterdesk.v1_0.models import SaleItem, Sale, Product, SaleStatus
from .base_repository import BaseRepository
from .filters import Eq

class SaleItemRepository(BaseRepository[SaleItem]):
    def __init__(self) -> None:
        super().__init__(SaleItem)

    async def product_is_sold(
        self,
        product_id: int,
        session: AsyncSession,
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        """True when any sale item still references the product."""
        item = await self.find_one(session, (Eq("product_id", product_id),), timeout=timeout)
        return item is not None

    async def top_products(
        self,
        session: AsyncSession,
        start: datetime,
        end_exclusive: datetime,
        limit: int = 10,
        *,
        timeout: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """
        Best sellers by summed quantity in [start, end_exclusive), cancelled
        sales excluded.
        Returns: [{ "product_id", "name", "category", "quantity", "revenue" }, ...]
        """
        qty_sum = func.coalesce(func.sum(SaleItem.quantity), 0)
        revenue_sum = func.coalesce(func.sum(SaleItem.subtotal), 0)

        stmt = (
            select(
                Product.id.label("product_id"),
                Product.name.label("name"),
                Product.category.label("category"),
                qty_sum.label("quantity"),
                revenue_sum.label("revenue"),
            )
            .join(SaleItem, SaleItem.product_id == Product.id)
            .join(Sale, Sale.id == SaleItem.sale_id)
            .where(Sale.created_at >= start)
            .where(Sale.created_at < end_exclusive)
            .where(Sale.status != SaleStatus.CANCELLED.value)
            .group_by(Product.id, Product.name, Product.category)
            .order_by(qty_sum.desc(), Product.id.asc())
            .limit(limit)
        )

        async def _run() -> List[Dict[str, Any]]:
            rows = (await session.execute(stmt)).mappings().all()
            return [dict(r) for r in rows]

        return await self._guard("top_products", _run(), timeout)
