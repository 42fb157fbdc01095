"""
Dashboard figures computed from an account's case records.
"""
from datetime import date
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from famcare.domain.models import Delivery, Family, Visit
from famcare.utils.date import current_month_prefix, parse_iso_date

Period = Literal["6months", "year"]

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
BASKET_KEYWORDS = ("basket", "cesta")


def is_basket_delivery(delivery: Delivery) -> bool:
    """A basket that actually reached the family; undelivered ones are not counted."""
    if delivery.outcome != "Delivered":
        return False
    kind = delivery.kind.lower()
    return any(keyword in kind for keyword in BASKET_KEYWORDS)


def _months_to_show(period: Period, today: date) -> List[Tuple[int, int]]:
    """(year, month) pairs, oldest first."""
    if period == "year":
        return [(today.year, month) for month in range(1, today.month + 1)]

    months = []
    for offset in range(5, -1, -1):
        index = today.year * 12 + (today.month - 1) - offset
        months.append((index // 12, index % 12 + 1))
    return months


def _registered_by(family: Family, year: int, month: int) -> bool:
    # Families without a readable registration date count as registered before the period.
    registered = parse_iso_date(family.registered_at)
    if registered is None:
        return True
    return (registered.year, registered.month) <= (year, month)


def monthly_series(
    families: Sequence[Family],
    deliveries: Sequence[Delivery],
    *,
    period: Period = "6months",
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Basket deliveries per month and cumulative active families registered by each month."""
    today = today or date.today()
    active = [family for family in families if family.status == "Active"]
    series = []
    for year, month in _months_to_show(period, today):
        prefix = f"{year}-{month:02d}"
        series.append(
            {
                "month": prefix,
                "label": MONTH_LABELS[month - 1],
                "baskets": sum(
                    1 for d in deliveries if d.date.startswith(prefix) and is_basket_delivery(d)
                ),
                "active_families": sum(1 for f in active if _registered_by(f, year, month)),
            }
        )
    return series


def summarize(
    families: Sequence[Family],
    visits: Sequence[Visit],
    deliveries: Sequence[Delivery],
    *,
    period: Period = "6months",
    today: Optional[date] = None,
) -> Dict[str, Any]:
    today = today or date.today()
    prefix = current_month_prefix(today)
    served_this_month = {
        d.family_id for d in deliveries if d.date.startswith(prefix) and is_basket_delivery(d)
    }
    status_counts = {status: 0 for status in ("Active", "Inactive", "Pending")}
    for family in families:
        status_counts[family.status] = status_counts.get(family.status, 0) + 1

    return {
        "active_families": status_counts["Active"],
        "families_served_this_month": len(served_this_month),
        "total_visits": len(visits),
        "total_deliveries": len(deliveries),
        "status_breakdown": status_counts,
        "monthly": monthly_series(families, deliveries, period=period, today=today),
    }
