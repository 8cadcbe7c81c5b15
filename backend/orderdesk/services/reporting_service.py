# Overview: Read-only order reports; callers pass an explicit DateRangeFilter.

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func

from orderdesk.extensions import db
from orderdesk.models import Order, OrderItem
from orderdesk.services.financials import ZERO, CENT
from orderdesk.time_utils import DateRangeFilter


def _money(value) -> str:
    if value is None:
        return "0.00"
    return f"{Decimal(str(value)).quantize(CENT):.2f}"


def _orders_query(tenant_id: int, date_filter: DateRangeFilter | None):
    query = db.session.query(Order).filter(Order.tenant_id == tenant_id)
    if date_filter is not None:
        query = date_filter.apply(query, Order.created_at)
    return query


def summary_report(tenant_id: int, date_filter: DateRangeFilter | None = None) -> dict:
    """Order count and money totals for the window, aggregated in SQL."""
    date_filter = date_filter or DateRangeFilter()

    totals_q = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total), 0),
        func.coalesce(func.sum(Order.profit), 0),
        func.coalesce(func.sum(Order.shipping_cost), 0),
        func.coalesce(func.sum(Order.deposit), 0),
        func.coalesce(func.sum(Order.discount), 0),
    ).filter(Order.tenant_id == tenant_id)
    totals_q = date_filter.apply(totals_q, Order.created_at)
    count, revenue, profit, shipping, deposits, discounts = totals_q.one()

    status_q = db.session.query(Order.status, func.count(Order.id)).filter(Order.tenant_id == tenant_id)
    status_q = date_filter.apply(status_q, Order.created_at).group_by(Order.status)
    by_status = {status: n for status, n in status_q.all()}

    return {
        "range": date_filter.to_dict(),
        "order_count": int(count or 0),
        "revenue": _money(revenue),
        "profit": _money(profit),
        "shipping": _money(shipping),
        "deposits": _money(deposits),
        "discounts": _money(discounts),
        "by_status": by_status,
    }


def monthly_report(tenant_id: int, date_filter: DateRangeFilter | None = None) -> dict:
    """
    {"YYYY-MM": {productType: {totalCost, totalSales, totalShipping}}}

    totalCost is cost * quantity, totalSales is the stored line total. An
    order's shipping is counted once for each product type it contains.
    """
    query = (
        _orders_query(tenant_id, date_filter)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .with_entities(
            Order.id,
            Order.created_at,
            Order.shipping_cost,
            OrderItem.product_type,
            OrderItem.cost,
            OrderItem.quantity,
            OrderItem.line_total,
        )
        .order_by(Order.created_at.asc(), Order.id.asc())
    )

    report: dict = defaultdict(lambda: defaultdict(lambda: {
        "totalCost": ZERO, "totalSales": ZERO, "totalShipping": ZERO,
    }))
    shipped = set()
    for order_id, created_at, shipping_cost, product_type, cost, quantity, line_total in query.all():
        month = f"{created_at:%Y-%m}"
        bucket = report[month][product_type]
        bucket["totalCost"] += cost * quantity
        bucket["totalSales"] += line_total
        if (order_id, product_type) not in shipped:
            shipped.add((order_id, product_type))
            bucket["totalShipping"] += shipping_cost

    return {
        month: {
            product: {key: _money(value) for key, value in figures.items()}
            for product, figures in products.items()
        }
        for month, products in report.items()
    }
