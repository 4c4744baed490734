from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from counterdesk.v1_0.models import Product
from .base_repository import BaseRepository
from .filters import FilterSpec

# whitelisted sort keys -> column
SORTABLE_FIELDS = {
    "name": Product.name,
    "price": Product.price,
    "category": Product.category,
    "created_at": Product.created_at,
}


class ProductRepository(BaseRepository[Product]):
    def __init__(self) -> None:
        super().__init__(Product)

    @staticmethod
    def order_clause(sort_by: str, descending: bool) -> Tuple[Any, ...]:
        col = SORTABLE_FIELDS[sort_by]
        if descending:
            return (col.desc(), Product.id.desc())
        return (col.asc(), Product.id.asc())

    async def list_page(
        self,
        session: AsyncSession,
        spec: FilterSpec,
        *,
        sort_by: str,
        descending: bool,
        offset: int,
        limit: int,
        timeout: Optional[float] = None,
    ) -> Tuple[List[Product], int]:
        return await self.find(
            session,
            spec,
            order_by=self.order_clause(sort_by, descending),
            offset=offset,
            limit=limit,
            timeout=timeout,
        )

    async def list_recent(
        self,
        session: AsyncSession,
        spec: FilterSpec,
        *,
        limit: int,
        timeout: Optional[float] = None,
    ) -> List[Product]:
        """Newest first, capped. Backs highlight lists, not paged browsing."""
        return await self.find_all(
            session,
            spec,
            order_by=self.order_clause("created_at", True),
            limit=limit,
            timeout=timeout,
        )

    async def get_many(
        self,
        product_ids: Iterable[int],
        session: AsyncSession,
        *,
        timeout: Optional[float] = None,
    ) -> dict[int, Product]:
        """One round trip for a whole cart; missing ids are simply absent."""
        ids: Sequence[int] = sorted(set(product_ids))
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids))

        async def _run() -> dict[int, Product]:
            rows = (await session.execute(stmt)).scalars().all()
            return {p.id: p for p in rows}

        return await self._guard("find_many", _run(), timeout)
