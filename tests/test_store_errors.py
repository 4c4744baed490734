import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from counterdesk.core.errors import StoreError
from counterdesk.v1_0.models import Base, Product, SaleItem
from counterdesk.v1_0.repositories import Eq, ProductRepository, SaleItemRepository
from counterdesk.v1_0.services import ProductService


class SlowProductRepository(ProductRepository):
    async def find_one(self, session, spec, *, options=None, timeout=None):
        await self._guard("find_one", asyncio.sleep(1), timeout)
        return None


def slow_product_service():
    return ProductService(SlowProductRepository(), SaleItemRepository())


# --------------------------------------------------------------- deadlines

async def test_read_past_its_deadline_is_retryable(db):
    with pytest.raises(StoreError) as exc_info:
        await slow_product_service().get(1, db, timeout=0.01)

    err = exc_info.value
    assert err.retryable is True
    assert err.operation == "find_one"
    assert err.collection == "product"
    assert isinstance(err.__cause__, asyncio.TimeoutError)


@pytest.mark.parametrize("method", ["set_featured", "set_available"])
async def test_flag_toggles_honour_the_caller_deadline(db, method):
    # the default deadline outlasts the slow read, which would end in NotFoundError
    with pytest.raises(StoreError) as exc_info:
        await getattr(slow_product_service(), method)(1, True, db, timeout=0.01)
    assert exc_info.value.retryable is True


# ----------------------------------------------------------- driver errors

async def test_missing_table_surfaces_as_store_error(engine, session_factory, product_service):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    async with session_factory() as db:
        with pytest.raises(StoreError) as exc_info:
            await product_service.list_paginated(db)

    err = exc_info.value
    assert err.operation == "find"
    assert err.collection == "product"
    assert isinstance(err.__cause__, SQLAlchemyError)
    assert err.to_dict()["details"]["collection"] == "product"


async def test_constraint_violation_is_not_retryable(db):
    with pytest.raises(StoreError) as exc_info:
        await ProductRepository().insert(Product(name="Broken", category="c", price=Decimal("-1.00")), db)

    err = exc_info.value
    assert err.operation == "insert"
    assert err.retryable is False
    assert isinstance(err.__cause__, IntegrityError)


async def test_foreign_keys_are_enforced(session_factory, sale_service, shop):
    async with session_factory() as db:
        await sale_service.create("cash", [{"product_id": shop["burger"], "quantity": 1}], db)

    async with session_factory() as db:
        with pytest.raises(StoreError) as exc_info:
            await ProductRepository().delete_where(db, (Eq("id", shop["burger"]),))
    assert exc_info.value.operation == "delete"
    assert isinstance(exc_info.value.__cause__, IntegrityError)

    async with session_factory() as db:
        with pytest.raises(StoreError):
            await SaleItemRepository().insert_many(
                [SaleItem(sale_id=9999, product_id=shop["soda"], quantity=1,
                          unit_price=Decimal("5.00"), subtotal=Decimal("5.00"))],
                db,
            )
