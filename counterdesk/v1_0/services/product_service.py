from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from counterdesk.core.errors import ConflictError, NotFoundError, ValidationError
from counterdesk.core.logger import logger
from counterdesk.core.settings import settings
from counterdesk.utils.tx import maybe_begin
from counterdesk.v1_0.entities import ProductDTO, ProductPageDTO
from counterdesk.v1_0.helper import PageRequest, build_page
from counterdesk.v1_0.models import Product
from counterdesk.v1_0.repositories import (
    Contains,
    Eq,
    FilterSpec,
    ProductRepository,
    SaleItemRepository,
    SORTABLE_FIELDS,
)
from counterdesk.v1_0.schemas import ProductCreate, ProductUpdate

SORT_ORDERS = ("asc", "desc")
SEARCH_FIELDS = ("name", "description")
IMMUTABLE_FIELDS = {"id", "created_at"}
NULLABLE_FIELDS = {"discount_price", "image"}


def _to_dto(p: Product) -> ProductDTO:
    return ProductDTO(
        id=p.id,
        name=p.name,
        description=p.description,
        price=p.price,
        discount_price=p.discount_price,
        category=p.category,
        image=p.image,
        ingredients=list(p.ingredients or []),
        available=p.available,
        featured=p.featured,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def build_product_filter(
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    available: Optional[bool] = None,
    featured: Optional[bool] = None,
) -> FilterSpec:
    """Immutable predicate set for a catalog read. Blank search means no search."""
    spec: list = []
    term = (search or "").strip()
    if term:
        spec.append(Contains(SEARCH_FIELDS, term))
    if category:
        spec.append(Eq("category", category))
    if available is not None:
        spec.append(Eq("available", available))
    if featured is not None:
        spec.append(Eq("featured", featured))
    return tuple(spec)


class ProductService:
    def __init__(
        self,
        product_repository: ProductRepository,
        sale_item_repository: SaleItemRepository,
    ) -> None:
        self.product_repository = product_repository
        self.sale_item_repository = sale_item_repository
        self.PAGE_SIZE = settings.DEFAULT_PAGE_SIZE
        self.HIGHLIGHT_LIMIT = settings.HIGHLIGHT_LIMIT

    def _check_sort(self, sort_by: str, order: str) -> bool:
        """Validate sort input and return True for descending."""
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(
                f"sort_by must be one of {', '.join(SORTABLE_FIELDS)}", field="sort_by", value=sort_by
            )
        direction = (order or "").lower()
        if direction not in SORT_ORDERS:
            raise ValidationError("order must be 'asc' or 'desc'", field="order", value=order)
        return direction == "desc"

    def _check_cap(self, limit: Optional[int]) -> int:
        cap = self.HIGHLIGHT_LIMIT if limit is None else limit
        if cap < 1:
            raise ValidationError("limit must be >= 1", field="limit", value=limit)
        return cap

    def _check_prices(self, price: Decimal, discount_price: Optional[Decimal]) -> None:
        if price < 0:
            raise ValidationError("price must be >= 0", field="price")
        if discount_price is not None and discount_price >= price:
            raise ValidationError("discount_price must be lower than price", field="discount_price")

    async def list_paginated(
        self,
        db: AsyncSession,
        *,
        page: int = 1,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        available: Optional[bool] = None,
        sort_by: str = "created_at",
        order: str = "desc",
        timeout: Optional[float] = None,
    ) -> ProductPageDTO:
        """
        Filtered, searchable, sorted page of products.

        Args:
            db: Active async database session.
            page: 1-based page number.
            limit: Page size; defaults to PAGE_SIZE.
            search: Case-insensitive substring matched against name or description.
            category: Exact category tag.
            available: Availability flag to match.
            sort_by: One of name, price, category, created_at.
            order: asc or desc.
            timeout: Per store call deadline in seconds.

        Returns:
            ProductPageDTO whose total counts every match, not just this page.

        Raises:
            ValidationError: Bad page/limit or unknown sort field/direction.
            StoreError: The store failed.
        """
        req = PageRequest(page, self.PAGE_SIZE if limit is None else limit)
        descending = self._check_sort(sort_by, order)
        spec = build_product_filter(search=search, category=category, available=available)
        logger.debug(
            "[ProductService] list page=%s limit=%s filters=%s sort=%s %s",
            req.page, req.limit, spec, sort_by, order,
        )

        async with maybe_begin(db):
            rows, total = await self.product_repository.list_page(
                db,
                spec,
                sort_by=sort_by,
                descending=descending,
                offset=req.offset,
                limit=req.limit,
                timeout=timeout,
            )
            result = build_page(rows, total, req, _to_dto)
        return result

    async def list_by_category(
        self,
        category: str,
        db: AsyncSession,
        *,
        page: int = 1,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ProductPageDTO:
        """Available products of one category, newest first."""
        if not category or not category.strip():
            raise ValidationError("category is required", field="category")
        req = PageRequest(page, self.PAGE_SIZE if limit is None else limit)
        spec = build_product_filter(category=category.strip(), available=True)

        async with maybe_begin(db):
            rows, total = await self.product_repository.list_page(
                db,
                spec,
                sort_by="created_at",
                descending=True,
                offset=req.offset,
                limit=req.limit,
                timeout=timeout,
            )
            result = build_page(rows, total, req, _to_dto)
        return result

    async def list_featured(
        self, db: AsyncSession, limit: Optional[int] = None, *, timeout: Optional[float] = None
    ) -> List[ProductDTO]:
        """Featured and available products, newest first, at most `limit`."""
        cap = self._check_cap(limit)
        async with maybe_begin(db):
            rows = await self.product_repository.list_recent(
                db, build_product_filter(featured=True, available=True), limit=cap, timeout=timeout
            )
            result = [_to_dto(p) for p in rows]
        return result

    async def list_available(
        self, db: AsyncSession, limit: Optional[int] = None, *, timeout: Optional[float] = None
    ) -> List[ProductDTO]:
        """Available products, newest first, at most `limit`."""
        cap = self._check_cap(limit)
        async with maybe_begin(db):
            rows = await self.product_repository.list_recent(
                db, build_product_filter(available=True), limit=cap, timeout=timeout
            )
            result = [_to_dto(p) for p in rows]
        return result

    async def get(self, product_id: int, db: AsyncSession, *, timeout: Optional[float] = None) -> Optional[ProductDTO]:
        """
        Retrieve a single product by its identifier.

        Returns:
            ProductDTO, or None when no product has that id.

        Raises:
            StoreError: The store failed.
        """
        logger.debug("[ProductService] Get product ID=%s", product_id)
        async with maybe_begin(db):
            p = await self.product_repository.get_by_id(product_id, db, timeout=timeout)
            dto = _to_dto(p) if p else None
        return dto

    async def create(self, payload: ProductCreate, db: AsyncSession, *, timeout: Optional[float] = None) -> ProductDTO:
        """
        Create a product.

        Args:
            payload: Validated product fields.
            db: Active async database session.
            timeout: Per store call deadline in seconds.

        Returns:
            ProductDTO of the stored product, with its id and timestamps.

        Raises:
            ValidationError: Negative price or discount_price not below price.
            StoreError: The store failed.
        """
        self._check_prices(payload.price, payload.discount_price)
        logger.info("[ProductService] Creating product: %s", payload.name)

        async with maybe_begin(db):
            p = await self.product_repository.insert(Product(**payload.model_dump()), db, timeout=timeout)
            dto = _to_dto(p)
        logger.info("[ProductService] Product created ID=%s", dto.id)
        return dto

    async def update(
        self,
        product_id: int,
        payload: ProductUpdate,
        db: AsyncSession,
        *,
        timeout: Optional[float] = None,
    ) -> ProductDTO:
        """
        Apply a partial update.

        The price invariant is checked against the merged record, so sending
        only a new price can still be rejected by the stored discount.

        Raises:
            NotFoundError: No product has that id.
            ValidationError: discount_price would not be lower than price.
        """
        data = {
            k: v
            for k, v in payload.model_dump(exclude_unset=True).items()
            if v is not None or k in NULLABLE_FIELDS
        }
        logger.info("[ProductService] Update product ID=%s fields=%s", product_id, sorted(data))

        async with maybe_begin(db):
            current = await self.product_repository.get_by_id(product_id, db, timeout=timeout)
            if not current:
                raise NotFoundError("Product", product_id)

            price = data.get("price", current.price)
            if price is None:
                raise ValidationError("price cannot be null", field="price")
            discount = data["discount_price"] if "discount_price" in data else current.discount_price
            self._check_prices(price, discount)

            data["updated_at"] = datetime.now(timezone.utc)
            p = await self.product_repository.update_fields(
                current, data, db, deny=IMMUTABLE_FIELDS, timeout=timeout
            )
            dto = _to_dto(p)
        return dto

    async def set_featured(
        self, product_id: int, featured: bool, db: AsyncSession, *, timeout: Optional[float] = None
    ) -> ProductDTO:
        """
        Turn the featured flag on or off.

        Raises:
            NotFoundError: No product has that id.
        """
        return await self.update(product_id, ProductUpdate(featured=featured), db, timeout=timeout)

    async def set_available(
        self, product_id: int, available: bool, db: AsyncSession, *, timeout: Optional[float] = None
    ) -> ProductDTO:
        """
        Turn the availability flag on or off.

        Unavailable products drop out of the category, featured and available
        views but keep their sales history.

        Raises:
            NotFoundError: No product has that id.
        """
        return await self.update(product_id, ProductUpdate(available=available), db, timeout=timeout)

    async def delete(self, product_id: int, db: AsyncSession, *, timeout: Optional[float] = None) -> bool:
        """
        Delete a product that has never been sold.

        Returns:
            True when the row was deleted, False when it did not exist.

        Raises:
            ConflictError: Sale items reference the product; mark it unavailable instead.
            StoreError: The store failed.
        """
        logger.info("[ProductService] Delete product ID=%s", product_id)
        async with maybe_begin(db):
            if await self.sale_item_repository.product_is_sold(product_id, db, timeout=timeout):
                raise ConflictError("Product", product_id, reason="it appears in recorded sales")
            deleted = await self.product_repository.delete_where(
                db, (Eq("id", product_id),), timeout=timeout
            )
        return deleted > 0
