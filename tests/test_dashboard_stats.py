"""
Tests for dashboard figures.
"""
from datetime import date

from famcare.domain.dashboard.stats import is_basket_delivery, monthly_series, summarize
from famcare.domain.models import Delivery, Family, Visit

TODAY = date(2024, 6, 15)

FAMILIES = [
    Family(id="a", registered_at="2024-01-10", status="Active"),
    Family(id="b", registered_at="2024-05-01", status="Active"),
    Family(id="c", registered_at="2023-11-01", status="Inactive"),
    Family(id="d", registered_at="", status="Pending"),
]

DELIVERIES = [
    Delivery(id="1", family_id="a", date="2024-06-02", kind="Food basket"),
    Delivery(id="2", family_id="a", date="2024-06-20", kind="Cesta básica"),
    Delivery(id="3", family_id="b", date="2024-06-03", kind="Clothes"),
    Delivery(id="4", family_id="b", date="2024-04-01", kind="Basket"),
]

VISITS = [
    Visit(id="v1", family_id="a", date="2024-06-01"),
    Visit(id="v2", family_id="b", date="2024-03-01"),
]


def test_basket_detection():
    assert is_basket_delivery(DELIVERIES[0])
    assert is_basket_delivery(DELIVERIES[1])
    assert not is_basket_delivery(DELIVERIES[2])
    assert not is_basket_delivery(
        Delivery(id="5", family_id="a", date="2024-06-02", kind="Food basket", outcome="Not Delivered")
    )


def test_summary_counts():
    summary = summarize(FAMILIES, VISITS, DELIVERIES, today=TODAY)

    assert summary["active_families"] == 2
    assert summary["families_served_this_month"] == 1
    assert summary["total_visits"] == 2
    assert summary["total_deliveries"] == 4
    assert summary["status_breakdown"] == {"Active": 2, "Inactive": 1, "Pending": 1}


def test_six_month_series():
    series = monthly_series(FAMILIES, DELIVERIES, period="6months", today=TODAY)

    assert [point["month"] for point in series] == [
        "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06",
    ]
    assert [point["baskets"] for point in series] == [0, 0, 0, 1, 0, 2]
    assert [point["active_families"] for point in series] == [1, 1, 1, 1, 2, 2]
    assert series[-1]["label"] == "Jun"


def test_six_month_series_crosses_year_boundary():
    series = monthly_series(FAMILIES, DELIVERIES, period="6months", today=date(2024, 2, 10))

    assert [point["month"] for point in series] == [
        "2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02",
    ]
    assert series[0]["label"] == "Sep"


def test_year_series_runs_from_january():
    series = monthly_series(FAMILIES, DELIVERIES, period="year", today=date(2024, 3, 1))

    assert [point["month"] for point in series] == ["2024-01", "2024-02", "2024-03"]
