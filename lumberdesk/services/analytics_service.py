"""
Analytics service for the dashboard and reports.

Turns a role-scoped order collection (with nested items) plus the seller
directory into independent read-only views: KPIs, daily/weekly/monthly
series and seller/product/client/status breakdowns.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lumberdesk.exceptions import ValidationError
from lumberdesk.models import DocumentType, OrderStatus
from lumberdesk.services.access import ScopedOrders
from lumberdesk.services.pricing_service import ZERO, HUNDRED, to_decimal, quantize_money

ALL_SELLERS = 'all'
UNASSIGNED = 'unassigned'
UNASSIGNED_NAME = 'Não informado'
INACTIVE_SELLER_NAME = 'Antigo/Inativo'

DASHBOARD_TOP_PRODUCTS = 5
REPORTS_TOP_PRODUCTS = 10
TOP_CLIENTS = 10
WEEKS = 8
MONTHS = 12

ORDER = DocumentType.ORDER.value
QUOTE = DocumentType.QUOTE.value


@dataclass(frozen=True)
class AnalyticsFilters:
    """Inclusive date window plus optional seller and document-type filters."""
    start: date
    end: date
    seller_id: Optional[str] = None
    doc_type: Optional[str] = None


def resolve_period(period: Optional[str], today: date, start: Optional[date] = None,
                   end: Optional[date] = None, specific_date: Optional[date] = None) -> Tuple[date, date]:
    """
    Translate a dashboard period selector into an inclusive (start, end) window.

    Periods: '7', '30', '90' (last N days), '12m' (from the first day of the
    month 11 months back), 'day' (a single day) and 'custom' (explicit
    dates). Anything else falls back to the last 30 days.

    Raises:
        ValidationError: if the resulting start is after end.
    """
    end = end or today

    if period in ('7', '30', '90'):
        start = end - timedelta(days=int(period) - 1)
    elif period == '12m':
        year, month = _shift_month(end.year, end.month, -(MONTHS - 1))
        start = date(year, month, 1)
    elif period == 'day':
        start = end = specific_date or today
    elif period == 'custom':
        start = start or end - timedelta(days=29)
    else:
        start = end - timedelta(days=29)

    if start > end:
        raise ValidationError('A data inicial deve ser anterior à data final.')
    return start, end


def fetch_range(filters: AnalyticsFilters, today: date) -> Tuple[date, date]:
    """
    Smallest date range covering every view: the window, the 8 weekly
    buckets, the 12 trailing months and the current month of ``today``.
    """
    week_start = filters.end - timedelta(days=filters.end.weekday()) - timedelta(weeks=WEEKS - 1)
    year, month = _shift_month(filters.end.year, filters.end.month, -(MONTHS - 1))
    start = min(filters.start, week_start, date(year, month, 1), today.replace(day=1))
    return start, max(filters.end, today)


def build_analytics(scoped: ScopedOrders, sellers: Optional[Iterable], filters: AnalyticsFilters,
                    today: Optional[date] = None, top_products: int = DASHBOARD_TOP_PRODUCTS) -> Dict[str, Any]:
    """
    Compute every dashboard/report view.

    Args:
        scoped: Orders already restricted to the caller (see ScopedOrders).
        sellers: Full seller directory, inactive sellers included.
        filters: Date window and optional seller / document-type filters.
        today: Reference day for the current-month KPI (defaults to today).
        top_products: Size of the product ranking (5 dashboard, 10 reports).

    Returns:
        dict with keys kpis, daily, weekly, sellers, products, clients,
        status and monthly.
    """
    if not isinstance(scoped, ScopedOrders):
        raise TypeError('build_analytics requires ScopedOrders; scope the orders by caller first.')

    today = today or date.today()
    sellers = list(sellers or [])
    all_orders = list(scoped.orders)

    filtered = [o for o in all_orders if _matches_filters(o, filters)]
    window = [o for o in filtered if filters.start <= _order_day(o) <= filters.end]

    return {
        'period': {'start': filters.start, 'end': filters.end},
        'kpis': kpi_summary(window, all_orders, today),
        'daily': daily_series(window, filters.start, filters.end),
        'weekly': weekly_series(filtered, filters.end),
        'sellers': seller_breakdown(window, sellers),
        'products': product_breakdown(window, top_products),
        'clients': client_breakdown(window),
        'status': status_distribution(window),
        'monthly': monthly_series(all_orders, filters.end),
    }


def kpi_summary(window: List, all_orders: List, today: date) -> Dict[str, Any]:
    """Header cards. month_total ignores the window and filters: it is always today's month."""
    orders = [o for o in window if o.type == ORDER]
    quotes = [o for o in window if o.type == QUOTE]
    total_sold = _sum_totals(orders)

    month_orders = [
        o for o in all_orders
        if o.type == ORDER and _same_month(_order_day(o), today)
    ]

    return {
        'total_sold': total_sold,
        'order_count': len(orders),
        'quote_count': len(quotes),
        'average_ticket': _ticket(total_sold, len(orders)),
        'month_total': _sum_totals(month_orders),
    }


def daily_series(window: List, start: date, end: date) -> List[Dict[str, Any]]:
    """One entry per calendar day in [start, end] with the ORDER total of that day."""
    by_day: Dict[date, Decimal] = {}
    for order in window:
        if order.type != ORDER:
            continue
        day = _order_day(order)
        by_day[day] = by_day.get(day, ZERO) + _money(order.total)

    series = []
    day = start
    while day <= end:
        series.append({'date': day, 'value': by_day.get(day, ZERO)})
        day += timedelta(days=1)
    return series


def weekly_series(orders: List, end: date, weeks: int = WEEKS) -> List[Dict[str, Any]]:
    """Order vs quote counts for the ``weeks`` ISO weeks ending with the week of ``end``."""
    last_week_start = end - timedelta(days=end.weekday())
    week_starts = [last_week_start - timedelta(weeks=n) for n in range(weeks - 1, -1, -1)]
    counts = {ws: {'orders': 0, 'quotes': 0} for ws in week_starts}

    for order in orders:
        day = _order_day(order)
        week_start = day - timedelta(days=day.weekday())
        bucket = counts.get(week_start)
        if bucket is None:
            continue
        if order.type == ORDER:
            bucket['orders'] += 1
        elif order.type == QUOTE:
            bucket['quotes'] += 1

    return [
        {'week_start': ws, 'orders': counts[ws]['orders'], 'quotes': counts[ws]['quotes']}
        for ws in week_starts
    ]


def seller_breakdown(window: List, sellers: List) -> List[Dict[str, Any]]:
    """
    Per-seller totals, counts, conversion rate and ticket.

    Every directory seller is listed (even without activity). Orders pointing
    at a seller missing from the directory get their own bucket named from
    the order snapshot, and orders without a seller go to "Não informado".
    """
    buckets: Dict[Optional[str], Dict[str, Any]] = {}
    for seller in sellers:
        buckets[seller.id] = _seller_bucket(seller.id, seller.name)

    for order in window:
        key = order.seller_id or None
        if key not in buckets:
            if key is None:
                name = UNASSIGNED_NAME
            else:
                name = order.seller_name or INACTIVE_SELLER_NAME
            buckets[key] = _seller_bucket(key, name)
        bucket = buckets[key]
        if order.type == ORDER:
            bucket['total'] += _money(order.total)
            bucket['order_count'] += 1
        elif order.type == QUOTE:
            bucket['quote_count'] += 1

    rows = []
    for bucket in buckets.values():
        bucket['average_ticket'] = _ticket(bucket['total'], bucket['order_count'])
        bucket['conversion_rate'] = _conversion(bucket['order_count'], bucket['quote_count'])
        rows.append(bucket)
    return _rank(rows)


def product_breakdown(window: List, limit: int = DASHBOARD_TOP_PRODUCTS) -> List[Dict[str, Any]]:
    """Top items by total, grouped by description (items may be ad hoc)."""
    products: Dict[str, Dict[str, Any]] = {}
    for order in window:
        if order.type != ORDER:
            continue
        for item in (order.items or []):
            row = products.get(item.description)
            if row is None:
                row = {'name': item.description, 'quantity': ZERO, 'total': ZERO, 'unit': item.unit or 'un'}
                products[item.description] = row
            row['quantity'] += _money(item.quantity)
            row['total'] += _money(item.total)
    return _rank(list(products.values()))[:limit]


def client_breakdown(window: List, limit: int = TOP_CLIENTS) -> List[Dict[str, Any]]:
    """Top clients by ORDER total, grouped by the client name snapshot."""
    clients: Dict[str, Dict[str, Any]] = {}
    for order in window:
        if order.type != ORDER:
            continue
        row = clients.get(order.client_name)
        if row is None:
            row = {'name': order.client_name, 'total': ZERO, 'order_count': 0}
            clients[order.client_name] = row
        row['total'] += _money(order.total)
        row['order_count'] += 1

    for row in clients.values():
        row['average_ticket'] = _ticket(row['total'], row['order_count'])
    return _rank(list(clients.values()))[:limit]


def status_distribution(window: List) -> List[Dict[str, Any]]:
    """ORDER documents per status; the four known statuses are always present."""
    counts: Dict[str, int] = {status.value: 0 for status in OrderStatus}
    for order in window:
        if order.type != ORDER:
            continue
        counts[order.status] = counts.get(order.status, 0) + 1
    return [{'status': status, 'count': count} for status, count in counts.items()]


def monthly_series(orders: List, end: date, months: int = MONTHS) -> List[Dict[str, Any]]:
    """Trailing calendar months ending with the month of ``end`` (filters not applied)."""
    keys = [_shift_month(end.year, end.month, -n) for n in range(months - 1, -1, -1)]
    buckets = {key: {'total': ZERO, 'order_count': 0, 'quote_count': 0} for key in keys}

    for order in orders:
        day = _order_day(order)
        bucket = buckets.get((day.year, day.month))
        if bucket is None:
            continue
        if order.type == ORDER:
            bucket['total'] += _money(order.total)
            bucket['order_count'] += 1
        elif order.type == QUOTE:
            bucket['quote_count'] += 1

    series = []
    for year, month in keys:
        bucket = buckets[(year, month)]
        series.append({
            'month': f'{year:04d}-{month:02d}',
            'total': bucket['total'],
            'order_count': bucket['order_count'],
            'quote_count': bucket['quote_count'],
            'average_ticket': _ticket(bucket['total'], bucket['order_count']),
        })
    return series


# --- helpers ---

def _matches_filters(order, filters: AnalyticsFilters) -> bool:
    seller_filter = filters.seller_id
    if seller_filter and seller_filter != ALL_SELLERS:
        if seller_filter == UNASSIGNED:
            if order.seller_id:
                return False
        elif order.seller_id != seller_filter:
            return False
    if filters.doc_type and order.type != filters.doc_type:
        return False
    return True


def _order_day(order) -> date:
    value = order.date
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if isinstance(value, datetime):
        return value.date()
    return value


def _money(value: Any) -> Decimal:
    number = to_decimal(value)
    return number if number is not None else ZERO


def _sum_totals(orders: Iterable) -> Decimal:
    return sum((_money(o.total) for o in orders), ZERO)


def _ticket(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return ZERO
    return quantize_money(total / count)


def _conversion(order_count: int, quote_count: int) -> Decimal:
    if quote_count == 0:
        return ZERO
    return quantize_money(Decimal(order_count) / Decimal(quote_count) * HUNDRED)


def _seller_bucket(seller_id: Optional[str], name: str) -> Dict[str, Any]:
    return {
        'seller_id': seller_id,
        'name': name,
        'total': ZERO,
        'order_count': 0,
        'quote_count': 0,
    }


def _rank(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # sorted() is stable: ties keep encounter order
    return sorted(rows, key=lambda row: row['total'], reverse=True)


def _same_month(day: date, reference: date) -> bool:
    return day.year == reference.year and day.month == reference.month


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
