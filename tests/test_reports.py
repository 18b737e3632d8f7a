from datetime import date, datetime

import pytest

import reports
from errors import InvalidDateRange

TODAY = date(2026, 3, 31)


def make_order(order_id, status, price, created_at, service=("s1", "Wash"), customer_id="c1"):
    return {
        "id": order_id,
        "status": status,
        "estimated_price": price,
        "service": {"id": service[0], "name": service[1]},
        "customer_id": customer_id,
        "created_at": created_at,
    }


@pytest.fixture
def orders():
    return [
        make_order("o1", "pending", 800, datetime(2026, 3, 10, 9, 0)),
        make_order("o2", "in_progress", 1200, datetime(2026, 3, 12, 18, 0)),
        make_order("o3", "finished", 900, datetime(2026, 2, 20, 10, 0)),
        make_order("o4", "delivered", 1500, datetime(2026, 3, 31, 23, 30)),
        make_order("o5", "cancelled", 700, datetime(2026, 1, 5, 8, 0)),
        make_order("o6", "pending", 300, datetime(2026, 3, 15, 8, 0)),
    ]


def test_default_range_is_last_30_days():
    assert reports.resolve_date_range(None, None, TODAY) == (date(2026, 3, 1), date(2026, 3, 31))


def test_only_from_extends_a_year_forward():
    assert reports.resolve_date_range(date(2026, 1, 1), None, TODAY) == (date(2026, 1, 1), date(2027, 1, 1))


def test_only_to_reaches_30_days_back():
    assert reports.resolve_date_range(None, date(2026, 2, 28), TODAY) == (date(2026, 1, 29), date(2026, 2, 28))


def test_from_after_to_rejected():
    with pytest.raises(InvalidDateRange):
        reports.resolve_date_range(date(2026, 3, 2), date(2026, 3, 1), TODAY)


def test_span_over_a_year_rejected(orders):
    with pytest.raises(InvalidDateRange):
        reports.orders_by_status(orders, date(2025, 1, 1), date(2026, 1, 2))
    with pytest.raises(InvalidDateRange):
        reports.revenue(orders, date(2025, 1, 1), date(2026, 1, 2))


def test_summary(orders):
    people = [{"role": "customer"}, {"role": "customer"}, {"role": "admin"}]
    result = reports.summary(orders, people, total_services=4)
    assert result == {
        "total_orders": 6,
        "total_customers": 2,
        "total_services": 4,
        "pending_orders": 2,
        "in_progress_orders": 1,
        "total_revenue": 5400,
    }


def test_orders_by_status_default_window(orders):
    result = reports.orders_by_status(orders, today=TODAY)
    assert result["date_from"] == "2026-03-01"
    assert result["date_to"] == "2026-03-31"
    assert result["total_orders"] == 4
    assert result["by_status"]["pending"] == {"count": 2, "order_ids": ["o1", "o6"]}
    assert result["by_status"]["delivered"] == {"count": 1, "order_ids": ["o4"]}
    assert "finished" not in result["by_status"]


def test_orders_by_status_accepts_iso_strings():
    orders = [make_order("o1", "pending", 100, "2026-03-10T09:00:00")]
    result = reports.orders_by_status(orders, date(2026, 3, 1), date(2026, 3, 10))
    assert result["total_orders"] == 1


def test_revenue_counts_only_completed_orders(orders):
    result = reports.revenue(orders, date(2026, 1, 1), date(2026, 3, 31))
    assert result["total"] == 2400
    assert result["order_count"] == 2
    assert result["average"] == 1200
    assert result["by_month"] == [
        {"month": "2026-02", "revenue": 900, "count": 1},
        {"month": "2026-03", "revenue": 1500, "count": 1},
    ]


def test_revenue_average_zero_without_orders():
    result = reports.revenue([], today=TODAY)
    assert result["total"] == 0
    assert result["average"] == 0
    assert result["by_month"] == []


def test_popular_services_top_two():
    orders = (
        [make_order(f"a{i}", "pending", 100, TODAY, service=("sa", "A")) for i in range(5)]
        + [make_order(f"b{i}", "pending", 200, TODAY, service=("sb", "B")) for i in range(3)]
        + [make_order("c0", "pending", 300, TODAY, service=("sc", "C"))]
    )
    result = reports.popular_services(orders, limit=2)
    assert result["total_services"] == 3
    assert [s["count"] for s in result["top_services"]] == [5, 3]
    assert result["top_services"][0] == {"service_id": "sa", "name": "A", "count": 5, "revenue": 500}


def test_popular_services_ties_broken_by_id():
    orders = [
        make_order("1", "pending", 100, TODAY, service=("zz", "Z")),
        make_order("2", "pending", 100, TODAY, service=("aa", "A")),
    ]
    result = reports.popular_services(orders)
    assert [s["service_id"] for s in result["top_services"]] == ["aa", "zz"]


def test_client_stats_uses_placeholders_for_missing_customers():
    orders = [
        make_order("o1", "delivered", 1000, TODAY, customer_id="c1"),
        make_order("o2", "pending", 500, TODAY, customer_id="c1"),
        make_order("o3", "pending", 2000, TODAY, customer_id="gone"),
    ]
    customers = [
        {"id": "c1", "name": "Ana", "email": "ana@example.com"},
        {"id": "c2", "name": "Luis", "email": "luis@example.com"},
    ]
    result = reports.client_stats(orders, customers, unknown_name="N/A", unknown_email="N/A")
    assert result["total_customers"] == 2
    assert result["active_customers"] == 2
    assert result["average_revenue_per_client"] == 1750
    top = result["top_clients"]
    assert top[0] == {"customer_id": "gone", "name": "N/A", "email": "N/A", "order_count": 1, "revenue": 2000}
    assert top[1]["name"] == "Ana"
    assert top[1]["order_count"] == 2


def test_client_stats_keeps_top_ten():
    orders = [make_order(f"o{i}", "pending", i, TODAY, customer_id=f"c{i}") for i in range(1, 13)]
    result = reports.client_stats(orders, [])
    assert len(result["top_clients"]) == 10
    assert result["top_clients"][0]["revenue"] == 12
    assert result["top_clients"][0]["name"] == "Unknown"


def test_utc_suffix_timestamps():
    orders = [
        make_order("o1", "delivered", 400, "2026-03-10T09:00:00.000Z"),
        make_order("o2", "finished", 600, "2026-02-27T21:15:00Z"),
    ]
    result = reports.revenue(orders, date(2026, 2, 1), date(2026, 3, 31))
    assert result["total"] == 1000
    assert [m["month"] for m in result["by_month"]] == ["2026-02", "2026-03"]
