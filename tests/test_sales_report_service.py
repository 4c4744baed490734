import random
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from counterdesk.core.errors import ValidationError
from counterdesk.v1_0.entities import SaleDetailDTO
from counterdesk.v1_0.models import Sale
from counterdesk.v1_0.repositories import SaleItemRepository, SaleRepository
from counterdesk.v1_0.services import SalesReportService
from counterdesk.v1_0.services.sales_report_service import average_ticket, fold_sales

from .conftest import NOW


class UntouchableSaleRepository(SaleRepository):
    async def window_totals(self, *args, **kwargs):
        raise AssertionError("store must not be queried")

    async def list_in_range(self, *args, **kwargs):
        raise AssertionError("store must not be queried")


def untouchable_service():
    return SalesReportService(UntouchableSaleRepository(), SaleItemRepository(), clock=lambda: NOW)


def detail(sale_id, status, method, total):
    return SaleDetailDTO(
        id=sale_id,
        status=status,
        payment_method=method,
        total=Decimal(total),
        created_at=NOW,
    )


# ------------------------------------------------------------------ stats

async def test_empty_day_yields_zeros(db, report_service):
    stats = await report_service.stats("day", db)
    assert stats.count == 0
    assert stats.total == Decimal("0.00")
    assert stats.average == Decimal("0.00")
    assert stats.date_to == NOW
    assert stats.date_from == datetime(2026, 10, 19, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "period, count, total, average",
    [
        ("day", 2, "50.00", "25.00"),
        ("week", 3, "100.00", "33.33"),
        ("month", 4, "140.00", "35.00"),
        ("year", 5, "200.00", "40.00"),
    ],
)
async def test_stats_per_period_skip_cancelled_sales(db, report_service, history, period, count, total, average):
    stats = await report_service.stats(period, db)
    assert stats.period == period
    assert stats.count == count
    assert stats.total == Decimal(total)
    assert stats.average == Decimal(average)


async def test_stats_window_bounds_are_inclusive(session_factory, db, report_service):
    start = NOW - timedelta(days=7)
    async with session_factory() as s:
        s.add_all([
            Sale(status="completed", payment_method="cash", total=Decimal("10.00"), created_at=start),
            Sale(status="completed", payment_method="cash", total=Decimal("5.00"), created_at=NOW),
            Sale(status="completed", payment_method="cash", total=Decimal("99.00"),
                 created_at=start - timedelta(seconds=1)),
            Sale(status="completed", payment_method="cash", total=Decimal("77.00"),
                 created_at=NOW + timedelta(seconds=1)),
        ])
        await s.commit()

    stats = await report_service.stats("week", db)
    assert stats.count == 2
    assert stats.total == Decimal("15.00")
    assert stats.average == Decimal("7.50")


async def test_unknown_period_is_rejected_without_querying(db):
    with pytest.raises(ValidationError):
        await untouchable_service().stats("decade", db)


# ----------------------------------------------------------------- report

async def test_report_groups_by_payment_method(db, report_service, history):
    report = await report_service.report(date(2026, 10, 19), date(2026, 10, 19), db)
    assert report.total_sales == 2
    assert report.total_revenue == Decimal("50.00")
    assert list(report.payment_methods) == ["card", "cash"]
    assert report.payment_methods["card"].count == 1
    assert report.payment_methods["card"].total == Decimal("20.00")
    assert report.payment_methods["cash"].total == Decimal("30.00")
    assert [s.id for s in report.sales] == history[:2]
    assert report.sales[0].items[0].product_name == "Burger"


async def test_report_over_empty_range(db, report_service, history):
    report = await report_service.report(date(2025, 1, 1), date(2025, 1, 2), db)
    assert report.total_sales == 0
    assert report.total_revenue == Decimal("0.00")
    assert report.payment_methods == {}
    assert report.sales == []


async def test_report_rejects_inverted_range_without_querying(db):
    with pytest.raises(ValidationError):
        await untouchable_service().report(date(2026, 10, 20), date(2026, 10, 19), db)


async def test_top_products_rank_by_quantity(db, report_service, history, shop):
    top = await report_service.top_products(date(2026, 10, 16), date(2026, 10, 19), db)
    assert [(t.product_id, t.quantity, t.revenue) for t in top] == [
        (shop["soda"], 9, Decimal("70.00")),
        (shop["burger"], 2, Decimal("30.00")),
    ]

    first = await report_service.top_products(date(2026, 10, 16), date(2026, 10, 19), db, limit=1)
    assert [t.name for t in first] == ["Soda"]


async def test_top_products_limit_must_be_positive(db, report_service):
    with pytest.raises(ValidationError):
        await report_service.top_products(date(2026, 10, 16), date(2026, 10, 19), db, limit=0)


# ------------------------------------------------------------------- fold

def test_fold_skips_cancelled_and_ignores_order():
    sales = [
        detail(1, "completed", "cash", "10.10"),
        detail(2, "pending", "pix", "0.20"),
        detail(3, "cancelled", "card", "999.00"),
        detail(4, "completed", "cash", "0.30"),
        detail(5, "completed", "card", "5.00"),
    ]
    expected = fold_sales(sales)
    count, revenue, by_method = expected
    assert count == 4
    assert revenue == Decimal("15.60")
    assert list(by_method) == ["card", "cash", "pix"]
    assert by_method["cash"].count == 2
    assert by_method["cash"].total == Decimal("10.40")

    rng = random.Random(7)
    for _ in range(5):
        shuffled = sales[:]
        rng.shuffle(shuffled)
        assert fold_sales(shuffled) == expected


def test_average_ticket():
    assert average_ticket(Decimal("0.00"), 0) == Decimal("0.00")
    assert average_ticket(Decimal("100.00"), 3) == Decimal("33.33")
