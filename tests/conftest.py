"""
Shared fixtures: an in-memory SQLite store per test, seeded catalogs and
sales, and the services wired to real repositories.
"""
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from counterdesk.storage.database import enable_sqlite_foreign_keys
from counterdesk.v1_0.models import Base, Customer, Product, Sale, SaleItem
from counterdesk.v1_0.repositories import (
    CustomerRepository,
    ProductRepository,
    SaleItemRepository,
    SaleRepository,
)
from counterdesk.v1_0.services import ProductService, SaleService, SalesReportService

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)
CATALOG_BASE = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def product_service():
    return ProductService(ProductRepository(), SaleItemRepository())


@pytest.fixture
def sale_service():
    return SaleService(SaleRepository(), SaleItemRepository(), ProductRepository(), CustomerRepository())


@pytest.fixture
def report_service():
    return SalesReportService(SaleRepository(), SaleItemRepository(), clock=lambda: NOW)


def _product(i, name, category, price, **kw):
    return Product(
        name=name,
        category=category,
        price=Decimal(price),
        created_at=CATALOG_BASE + timedelta(minutes=i),
        updated_at=CATALOG_BASE + timedelta(minutes=i),
        **kw,
    )


@pytest.fixture
async def catalog(session_factory):
    """Twelve products; five named, seven generic sides. Index order is creation order."""
    rows = [
        _product(0, "Classic Burger", "burgers", "25.00", discount_price=Decimal("20.00"),
                 description="Beef patty", featured=True),
        _product(1, "Cheese Burger", "burgers", "28.00"),
        _product(2, "Veggie Wrap", "wraps", "18.00", description="Grilled vegetables", featured=True),
        _product(3, "Chocolate Shake", "drinks", "12.00", available=False, featured=True),
        _product(4, "Lemonade", "drinks", "6.00"),
    ]
    rows += [_product(4 + n, f"Item {n}", "sides", f"{3 + n}.00") for n in range(1, 8)]
    async with session_factory() as s:
        s.add_all(rows)
        await s.commit()
    return {p.name: p.id for p in rows}


@pytest.fixture
async def shop(session_factory):
    """Three products and one customer for sale creation."""
    burger = Product(name="Burger", category="burgers", price=Decimal("10.00"))
    soda = Product(name="Soda", category="drinks", price=Decimal("5.00"))
    fries = Product(name="Fries", category="sides", price=Decimal("8.00"), discount_price=Decimal("6.00"))
    ana = Customer(name="Ana", email="ana@example.com")
    async with session_factory() as s:
        s.add_all([burger, soda, fries, ana])
        await s.commit()
    return {"burger": burger.id, "soda": soda.id, "fries": fries.id, "customer": ana.id}


def _sale(created_at, status, method, lines, customer_id=None):
    items = [
        SaleItem(product_id=pid, quantity=q, unit_price=Decimal(price), subtotal=Decimal(price) * q)
        for pid, q, price in lines
    ]
    return Sale(
        customer_id=customer_id,
        status=status,
        payment_method=method,
        total=sum((i.subtotal for i in items), Decimal("0.00")),
        created_at=created_at,
        items=items,
    )


@pytest.fixture
async def history(session_factory, shop):
    """
    Six sales around NOW:

    today:     30.00 cash completed, 20.00 card pending, 100.00 pix cancelled
    -3 days:   50.00 pix completed
    -20 days:  40.00 cash completed
    -200 days: 60.00 card completed
    """
    burger, soda = shop["burger"], shop["soda"]
    sales = [
        _sale(NOW - timedelta(hours=1), "completed", "cash", [(burger, 2, "15.00")], shop["customer"]),
        _sale(NOW - timedelta(hours=2), "pending", "card", [(soda, 4, "5.00")]),
        _sale(NOW - timedelta(hours=3), "cancelled", "pix", [(burger, 10, "10.00")]),
        _sale(NOW - timedelta(days=3), "completed", "pix", [(soda, 5, "10.00")]),
        _sale(NOW - timedelta(days=20), "completed", "cash", [(burger, 4, "10.00")]),
        _sale(NOW - timedelta(days=200), "completed", "card", [(soda, 6, "10.00")]),
    ]
    async with session_factory() as s:
        s.add_all(sales)
        await s.commit()
    return [x.id for x in sales]
