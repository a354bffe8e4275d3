"""
Service tests for the dashboard and the revenue report.
"""
from datetime import date
from decimal import Decimal

import pytest

from garage_admin.exceptions import PermissionDeniedError
from garage_admin.permissions import NO_PERMISSIONS
from garage_admin.services.reports import dashboard_stats, revenue_report

from conftest import TODAY, add_customer, add_work_orders, line


@pytest.fixture
async def shop(db):
    customer = await add_customer(db, "Ann Lee", vehicles=[("Ford", "Focus", 2018, "ABC-123"),
                                                           ("Honda", "Civic", 2012, "HND-001")])
    await add_customer(db, "Bob Stone")
    vehicle_id = customer.vehicles[0].id
    await add_work_orders(db, vehicle_id, [
        (TODAY, [line("Brakes", 1, "100")], None),              # 124.00, Monday
        (date(2026, 10, 18), [line("Oil", 1, "50")], None),     # 62.00, Sunday
        (date(2026, 10, 17), [line("Filter", 1, "10")], None),  # 12.40, Saturday
        (date(2026, 10, 2), [line("Tyres", 4, "100")], None),   # 496.00
        (date(2026, 3, 9), [line("Battery", 1, "200")], None),  # 248.00
        (date(2025, 12, 30), [line("Wash", 1, "20")], None),    # last year
    ])
    return db


async def test_dashboard_for_admin(shop, admin):
    stats = await dashboard_stats(shop, admin, today=TODAY)
    assert stats.customers == 2
    assert stats.vehicles == 2
    assert stats.monthly_services == 4
    assert len(stats.recent_services) == 5
    assert stats.recent_services[0].date == TODAY
    assert stats.total_revenue == Decimal("942.40")
    assert stats.recent_services[0].total == Decimal("124.00")


async def test_dashboard_hides_money_without_financials(shop, mechanic):
    stats = await dashboard_stats(shop, mechanic, today=TODAY)
    assert stats.total_revenue is None
    assert all(s.total is None and s.subtotal is None for s in stats.recent_services)


async def test_dashboard_needs_a_role(shop):
    with pytest.raises(PermissionDeniedError):
        await dashboard_stats(shop, NO_PERMISSIONS, today=TODAY)


async def test_revenue_report_periods(shop, admin):
    report = await revenue_report(shop, admin, today=TODAY)
    # Week runs from Sunday the 18th
    assert report.weekly == Decimal("186.00")
    assert report.monthly == Decimal("694.40")
    assert report.yearly == Decimal("942.40")

    months = {bucket.month: bucket.total for bucket in report.by_month}
    assert len(report.by_month) == 12
    assert months["Oct"] == Decimal("694.40")
    assert months["Mar"] == Decimal("248.00")
    assert months["Dec"] == Decimal("0.00")


async def test_revenue_report_is_admin_only(shop, secretary):
    with pytest.raises(PermissionDeniedError):
        await revenue_report(shop, secretary, today=TODAY)
