"""
Dashboard reports computed in memory over already-fetched order records.

Orders are dicts shaped like the "order" collection documents:
{id, status, estimated_price, service: {id, name}, customer_id, created_at}.
Callers pass only active orders. Nothing here touches the database.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from errors import InvalidDateRange
from status_policy import OrderStatus, PAYABLE_STATUSES, Role

DEFAULT_WINDOW_DAYS = 30
FORWARD_WINDOW_DAYS = 365
MAX_RANGE_DAYS = 365
TOP_CLIENTS = 10

REVENUE_STATUSES = frozenset(s.value for s in PAYABLE_STATUSES)


def _as_datetime(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _price(order: Dict[str, Any]) -> float:
    return order.get("estimated_price") or 0


def resolve_date_range(date_from: Optional[date], date_to: Optional[date], today: Optional[date] = None) -> Tuple[date, date]:
    """Fill in missing bounds and validate the range.

    With no bounds the range is the last 30 days ending today. A lone
    ``date_from`` extends 365 days forward while a lone ``date_to`` only
    reaches 30 days back.
    """
    if today is None:
        today = datetime.now(timezone.utc).date()
    if date_from is None and date_to is None:
        date_to = today
        date_from = today - timedelta(days=DEFAULT_WINDOW_DAYS)
    elif date_to is None:
        date_to = date_from + timedelta(days=FORWARD_WINDOW_DAYS)
    elif date_from is None:
        date_from = date_to - timedelta(days=DEFAULT_WINDOW_DAYS)

    if date_from > date_to:
        raise InvalidDateRange('"date_from" cannot be later than "date_to".')
    if (date_to - date_from).days > MAX_RANGE_DAYS:
        raise InvalidDateRange(f"The date range cannot exceed {MAX_RANGE_DAYS} days.")
    return date_from, date_to


def filter_by_range(orders: Iterable[Dict[str, Any]], date_from: date, date_to: date) -> List[Dict[str, Any]]:
    """Orders created between both dates, the whole ``date_to`` day included."""
    selected = []
    for order in orders:
        created = _as_datetime(order.get("created_at"))
        if created is not None and date_from <= created.date() <= date_to:
            selected.append(order)
    return selected


def summary(orders: List[Dict[str, Any]], users: Iterable[Dict[str, Any]], total_services: int) -> Dict[str, Any]:
    statuses = [o.get("status") for o in orders]
    return {
        "total_orders": len(orders),
        "total_customers": sum(1 for u in users if u.get("role") == Role.customer.value),
        "total_services": total_services,
        "pending_orders": statuses.count(OrderStatus.pending.value),
        "in_progress_orders": statuses.count(OrderStatus.in_progress.value),
        "total_revenue": sum(_price(o) for o in orders),
    }


def orders_by_status(orders: Iterable[Dict[str, Any]], date_from: Optional[date] = None, date_to: Optional[date] = None, today: Optional[date] = None) -> Dict[str, Any]:
    date_from, date_to = resolve_date_range(date_from, date_to, today)
    selected = filter_by_range(orders, date_from, date_to)

    by_status: Dict[str, Dict[str, Any]] = {}
    for order in selected:
        group = by_status.setdefault(order.get("status") or "unknown", {"count": 0, "order_ids": []})
        group["count"] += 1
        group["order_ids"].append(order.get("id"))

    return {
        "date_from": date_from.isoformat(),
        "date_to": date_to.isoformat(),
        "total_orders": len(selected),
        "by_status": by_status,
    }


def revenue(orders: Iterable[Dict[str, Any]], date_from: Optional[date] = None, date_to: Optional[date] = None, today: Optional[date] = None) -> Dict[str, Any]:
    date_from, date_to = resolve_date_range(date_from, date_to, today)
    completed = [o for o in orders if o.get("status") in REVENUE_STATUSES]
    selected = filter_by_range(completed, date_from, date_to)

    months: Dict[str, Dict[str, Any]] = {}
    for order in selected:
        key = _as_datetime(order["created_at"]).strftime("%Y-%m")
        month = months.setdefault(key, {"month": key, "revenue": 0, "count": 0})
        month["revenue"] += _price(order)
        month["count"] += 1

    total = sum(_price(o) for o in selected)
    count = len(selected)
    return {
        "date_from": date_from.isoformat(),
        "date_to": date_to.isoformat(),
        "total": total,
        "order_count": count,
        "average": total / count if count else 0,
        "by_month": [months[k] for k in sorted(months)],
    }


def popular_services(orders: Iterable[Dict[str, Any]], limit: int = 10) -> Dict[str, Any]:
    counts: Dict[str, Dict[str, Any]] = {}
    for order in orders:
        service = order.get("service") or {}
        service_id = service.get("id")
        if not service_id:
            continue
        entry = counts.setdefault(service_id, {
            "service_id": service_id,
            "name": service.get("name"),
            "count": 0,
            "revenue": 0,
        })
        entry["count"] += 1
        entry["revenue"] += _price(order)

    ranked = sorted(counts.values(), key=lambda e: (-e["count"], e["service_id"]))
    return {
        "total_services": len(ranked),
        "top_services": ranked[:limit],
    }


def client_stats(orders: Iterable[Dict[str, Any]], customers: Iterable[Dict[str, Any]], unknown_name: str = "Unknown", unknown_email: str = "Unknown") -> Dict[str, Any]:
    """Per-customer order counts and revenue.

    ``customers`` are user documents with role customer; orders whose
    customer is missing from that list are reported under the placeholders.
    """
    directory = {
        c["id"]: (c.get("name") or unknown_name, c.get("email") or unknown_email)
        for c in customers
    }

    per_client: Dict[str, Dict[str, Any]] = {}
    for order in orders:
        customer_id = order.get("customer_id")
        if customer_id not in per_client:
            name, email = directory.get(customer_id, (unknown_name, unknown_email))
            per_client[customer_id] = {
                "customer_id": customer_id,
                "name": name,
                "email": email,
                "order_count": 0,
                "revenue": 0,
            }
        per_client[customer_id]["order_count"] += 1
        per_client[customer_id]["revenue"] += _price(order)

    ranked = sorted(per_client.values(), key=lambda c: (-c["revenue"], str(c["customer_id"])))
    active = len(ranked)
    return {
        "total_customers": len(directory),
        "active_customers": active,
        "average_revenue_per_client": sum(c["revenue"] for c in ranked) / active if active else 0,
        "top_clients": ranked[:TOP_CLIENTS],
    }
