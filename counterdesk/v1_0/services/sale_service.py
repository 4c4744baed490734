from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from counterdesk.core.errors import CompositeWriteError, NotFoundError, StoreError, ValidationError
from counterdesk.core.logger import logger
from counterdesk.core.settings import settings
from counterdesk.utils.tx import begin_scope, maybe_begin
from counterdesk.v1_0.entities import (
    CustomerSummaryDTO,
    SaleDTO,
    SaleDetailDTO,
    SaleItemViewDTO,
    SalePageDTO,
)
from counterdesk.v1_0.helper import PageRequest, build_page, day_range
from counterdesk.v1_0.models import (
    Customer,
    PaymentMethod,
    Sale,
    SaleItem,
    SaleStatus,
    SALE_STATUS_TRANSITIONS,
)
from counterdesk.v1_0.repositories import (
    CustomerRepository,
    Eq,
    FilterSpec,
    ProductRepository,
    Range,
    SaleItemRepository,
    SaleRepository,
)

CENT = Decimal("0.01")


def _customer_dto(c: Optional[Customer]) -> Optional[CustomerSummaryDTO]:
    if c is None:
        return None
    return CustomerSummaryDTO(id=c.id, name=c.name, email=c.email, phone=c.phone)


def _sale_dto(s: Sale) -> SaleDTO:
    return SaleDTO(
        id=s.id,
        status=s.status,
        payment_method=s.payment_method,
        total=s.total,
        created_at=s.created_at,
        customer=_customer_dto(s.customer),
    )


def to_detail_dto(s: Sale) -> SaleDetailDTO:
    return SaleDetailDTO(
        id=s.id,
        status=s.status,
        payment_method=s.payment_method,
        total=s.total,
        created_at=s.created_at,
        customer=_customer_dto(s.customer),
        items=[
            SaleItemViewDTO(
                id=it.id,
                product_id=it.product_id,
                product_name=it.product.name,
                product_category=it.product.category,
                quantity=it.quantity,
                unit_price=it.unit_price,
                subtotal=it.subtotal,
            )
            for it in s.items
        ],
    )


def parse_status(value: Any, field: str = "status") -> SaleStatus:
    try:
        return SaleStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in SaleStatus)
        raise ValidationError(f"{field} must be one of {allowed}", field=field, value=str(value))


def parse_payment_method(value: Any) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(
            f"payment_method must be one of {allowed}", field="payment_method", value=str(value)
        )


def line_subtotal(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(quantity) * unit_price).quantize(CENT)


class SaleService:
    def __init__(
        self,
        sale_repository: SaleRepository,
        sale_item_repository: SaleItemRepository,
        product_repository: ProductRepository,
        customer_repository: CustomerRepository,
    ) -> None:
        self.sale_repository = sale_repository
        self.sale_item_repository = sale_item_repository
        self.product_repository = product_repository
        self.customer_repository = customer_repository
        self.PAGE_SIZE = settings.DEFAULT_PAGE_SIZE

    # ------------------------------------------------------------------ reads

    async def list_paginated(
        self,
        db: AsyncSession,
        *,
        page: int = 1,
        limit: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        customer_id: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> SalePageDTO:
        """
        Page of sales, newest first, each with its customer summary.

        Args:
            db: Active async database session.
            page: 1-based page number.
            limit: Page size; defaults to PAGE_SIZE.
            date_from: First day included (creation time).
            date_to: Last day included (creation time).
            status: Exact sale status.
            payment_method: Exact payment method.
            customer_id: Sales of this customer only.
            timeout: Per store call deadline in seconds.

        Raises:
            ValidationError: Bad pagination, inverted dates, unknown status or method.
            StoreError: The store failed.
        """
        req = PageRequest(page, self.PAGE_SIZE if limit is None else limit)
        start, end_exclusive = day_range(date_from, date_to, settings.TZ)

        spec: List = []
        if start is not None or end_exclusive is not None:
            spec.append(Range("created_at", gte=start, lt=end_exclusive))
        if status is not None:
            spec.append(Eq("status", parse_status(status).value))
        if payment_method is not None:
            spec.append(Eq("payment_method", parse_payment_method(payment_method).value))
        if customer_id is not None:
            spec.append(Eq("customer_id", customer_id))
        filters: FilterSpec = tuple(spec)
        logger.debug("[SaleService] list page=%s limit=%s filters=%s", req.page, req.limit, filters)

        async with maybe_begin(db):
            rows, total = await self.sale_repository.list_page(
                db, filters, offset=req.offset, limit=req.limit, timeout=timeout
            )
            result = build_page(rows, total, req, _sale_dto)
        return result

    async def get(self, sale_id: int, db: AsyncSession, *, timeout: Optional[float] = None) -> Optional[SaleDetailDTO]:
        """
        One sale with customer and items (each with product name/category).

        Returns:
            SaleDetailDTO, or None when no sale has that id.
        """
        logger.debug("[SaleService] Get sale ID=%s", sale_id)
        async with maybe_begin(db):
            sale = await self.sale_repository.get_detail(sale_id, db, timeout=timeout)
            dto = to_detail_dto(sale) if sale else None
        return dto

    # ----------------------------------------------------------------- writes

    async def update_status(
        self,
        sale_id: int,
        new_status: str,
        db: AsyncSession,
        *,
        timeout: Optional[float] = None,
    ) -> SaleDetailDTO:
        """
        Move a sale along pending -> completed | cancelled.

        The write is conditioned on the status we validated against, so a
        concurrent transition makes this call fail instead of overwriting it.

        Raises:
            ValidationError: Unknown status or a transition the state machine forbids.
            NotFoundError: No sale has that id.
        """
        target = parse_status(new_status)
        logger.info("[SaleService] Update status sale ID=%s -> %s", sale_id, target.value)

        async with maybe_begin(db):
            sale = await self.sale_repository.get_by_id(sale_id, db, timeout=timeout)
            if not sale:
                raise NotFoundError("Sale", sale_id)

            current = SaleStatus(sale.status)
            if target not in SALE_STATUS_TRANSITIONS[current]:
                raise ValidationError(
                    f"Cannot change sale status from {current.value} to {target.value}",
                    field="status",
                    current=current.value,
                    requested=target.value,
                )

            changed = await self.sale_repository.update_where(
                db,
                (Eq("id", sale_id), Eq("status", current.value)),
                {"status": target.value},
                timeout=timeout,
            )
            if changed == 0:
                raise ValidationError(
                    "Sale status changed concurrently, reload and retry",
                    field="status",
                    current=current.value,
                    requested=target.value,
                )

            sale = await self.sale_repository.get_detail(sale_id, db, timeout=timeout)
            dto = to_detail_dto(sale)
        return dto

    def _build_lines(self, items: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """
        Validate the raw cart. No I/O.

        unit_price may be None; it is resolved from the product later.
        """
        if not items:
            raise ValidationError("A sale needs at least one item", field="items")

        lines: List[Dict[str, Any]] = []
        for idx, raw in enumerate(items, start=1):
            try:
                product_id = int(raw["product_id"])
                quantity = int(raw["quantity"])
                price_raw = raw.get("unit_price")
                unit_price = None if price_raw is None else Decimal(str(price_raw))
            except (KeyError, TypeError, ValueError, InvalidOperation):
                raise ValidationError(f"Item #{idx} has invalid types", field="items", index=idx)

            if quantity <= 0:
                raise ValidationError(f"Item #{idx}: quantity must be > 0", field="quantity", index=idx)
            if unit_price is not None:
                if not unit_price.is_finite() or unit_price < 0:
                    raise ValidationError(f"Item #{idx}: unit_price must be >= 0", field="unit_price", index=idx)
                unit_price = unit_price.quantize(CENT)

            lines.append({"product_id": product_id, "quantity": quantity, "unit_price": unit_price})
        return lines

    async def _rollback_scope(self, tx: AsyncSessionTransaction, sale_id: Optional[int]) -> bool:
        """Undo the header write. Returns False when the rollback itself failed."""
        try:
            await tx.rollback()
            logger.warning("[SaleService] Sale ID=%s rolled back", sale_id)
            return True
        except SQLAlchemyError as e:
            logger.critical(
                "[SaleService] Rollback of sale ID=%s failed, partial state possible: %s",
                sale_id, e, exc_info=True,
            )
            return False

    async def create(
        self,
        payment_method: str,
        items: Sequence[Mapping[str, Any]],
        db: AsyncSession,
        *,
        customer_id: Optional[int] = None,
        status: str = SaleStatus.PENDING.value,
        timeout: Optional[float] = None,
    ) -> SaleDetailDTO:
        """
        Create a sale header and its items as one unit.

        Operations:
        - Validate header fields and the cart (no I/O).
        - Check the customer, then load every referenced product in one query.
        - Snapshot unit prices, compute subtotals and the header total.
        - Insert the header, then the items, inside one transaction scope.
        - Return the sale as `get` would.

        A session that is already inside a transaction gets a SAVEPOINT; the
        caller still has to commit its outer transaction.

        Args:
            payment_method: cash, card or pix.
            items: [{product_id, quantity, unit_price?}, ...]
            db: Active async database session.
            customer_id: Optional customer reference.
            status: Initial status, pending or completed.
            timeout: Per store call deadline in seconds.

        Returns:
            SaleDetailDTO of the new sale.

        Raises:
            ValidationError: Bad header or item fields.
            NotFoundError: The customer or a referenced product does not exist.
            StoreError: The header could not be written (nothing persisted).
            CompositeWriteError: Items failed after the header was written.
        """
        method = parse_payment_method(payment_method)
        initial = parse_status(status)
        if initial == SaleStatus.CANCELLED:
            raise ValidationError("A sale cannot be created as cancelled", field="status")
        lines = self._build_lines(items)
        logger.info(
            "[SaleService] Creating sale customer=%s method=%s items=%s",
            customer_id, method.value, len(lines),
        )

        tx = await begin_scope(db)
        sale_id: Optional[int] = None
        try:
            if customer_id is not None:
                customer = await self.customer_repository.get_by_id(customer_id, db, timeout=timeout)
                if not customer:
                    raise NotFoundError("Customer", customer_id)

            products = await self.product_repository.get_many(
                (ln["product_id"] for ln in lines), db, timeout=timeout
            )
            missing = sorted({ln["product_id"] for ln in lines} - products.keys())
            if missing:
                raise NotFoundError("Product", missing[0] if len(missing) == 1 else missing)

            for ln in lines:
                if ln["unit_price"] is None:
                    ln["unit_price"] = products[ln["product_id"]].effective_price.quantize(CENT)
                ln["subtotal"] = line_subtotal(ln["quantity"], ln["unit_price"])
            total = sum((ln["subtotal"] for ln in lines), Decimal("0.00"))

            sale = await self.sale_repository.insert(
                Sale(
                    customer_id=customer_id,
                    payment_method=method.value,
                    status=initial.value,
                    total=total,
                ),
                db,
                timeout=timeout,
            )
            sale_id = sale.id
        except BaseException:
            await tx.rollback()
            raise

        try:
            await self.sale_item_repository.insert_many(
                [SaleItem(sale_id=sale_id, **ln) for ln in lines], db, timeout=timeout
            )
        except (StoreError, SQLAlchemyError) as e:
            compensated = await self._rollback_scope(tx, sale_id)
            raise CompositeWriteError(sale_id, compensated=compensated, reason=str(e)) from e
        except BaseException:
            await tx.rollback()
            raise

        try:
            await tx.commit()
        except SQLAlchemyError as e:
            logger.error("[SaleService] Commit of sale ID=%s failed: %s", sale_id, e, exc_info=True)
            if tx.is_active:
                await self._rollback_scope(tx, sale_id)
            raise StoreError("commit", self.sale_repository.collection, reason=type(e).__name__) from e

        logger.info("[SaleService] Sale created ID=%s total=%s", sale_id, total)
        dto = await self.get(sale_id, db, timeout=timeout)
        if dto is None:
            raise StoreError("read_after_write", self.sale_repository.collection, reason="sale not visible")
        return dto
