"""
Unit tests for the dashboard/report aggregator.
"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from lumberdesk.exceptions import ValidationError
from lumberdesk.models import Order, OrderItem, Seller
from lumberdesk.services.access import Caller, ScopedOrders
from lumberdesk.services.analytics_service import (
    AnalyticsFilters, build_analytics, resolve_period, fetch_range,
    daily_series, weekly_series, seller_breakdown, product_breakdown, client_breakdown, status_distribution
)

TODAY = date(2026, 3, 18)  # Wednesday
ADMIN = Caller(user_id='u-admin', role='admin')


def make_order(day, total, doc_type='ORDER', status='APPROVED', seller=None, client='Cliente A', items=None):
    order = Order(
        id=f'o-{day.isoformat()}-{total}-{doc_type}-{client}',
        client_name=client,
        seller_id=seller.id if seller else None,
        seller_name=seller.name if seller else None,
        date=datetime.combine(day, datetime.min.time()).replace(hour=10),
        status=status,
        type=doc_type,
        total=Decimal(str(total)),
    )
    order.items = items or []
    return order


def make_item(description, quantity, total, unit='un'):
    return OrderItem(description=description, quantity=Decimal(str(quantity)),
                     total=Decimal(str(total)), unit=unit, unit_price=Decimal('0'))


@pytest.fixture
def sellers():
    return [Seller(id='s1', name='Ana'), Seller(id='s2', name='Bruno'), Seller(id='s3', name='Carla')]


@pytest.fixture
def filters():
    return AnalyticsFilters(start=TODAY - timedelta(days=29), end=TODAY)


class TestBuildAnalytics:

    def test_rejects_unscoped_lists(self, filters):
        with pytest.raises(TypeError):
            build_analytics([make_order(TODAY, 10)], [], filters, today=TODAY)

    def test_empty_input_yields_zero_views(self, filters):
        result = build_analytics(ScopedOrders(ADMIN, ()), [], filters, today=TODAY)

        assert result['kpis'] == {
            'total_sold': 0, 'order_count': 0, 'quote_count': 0, 'average_ticket': 0, 'month_total': 0
        }
        assert len(result['daily']) == 30
        assert all(day['value'] == 0 for day in result['daily'])
        assert len(result['weekly']) == 8
        assert result['sellers'] == []
        assert result['products'] == []
        assert result['clients'] == []
        assert [s['count'] for s in result['status']] == [0, 0, 0, 0]
        assert len(result['monthly']) == 12

    def test_kpis_and_daily_series(self, sellers, filters):
        orders = [
            make_order(TODAY, 100, seller=sellers[0]),
            make_order(TODAY - timedelta(days=3), 50, seller=sellers[1]),
            make_order(TODAY - timedelta(days=3), 999, doc_type='QUOTE', seller=sellers[1]),
            make_order(TODAY - timedelta(days=45), 70, seller=sellers[0]),  # outside window
        ]
        result = build_analytics(ScopedOrders(ADMIN, tuple(orders)), sellers, filters, today=TODAY)
        kpis = result['kpis']

        assert kpis['total_sold'] == Decimal('150')
        assert kpis['order_count'] == 2
        assert kpis['quote_count'] == 1
        assert kpis['average_ticket'] == Decimal('75.00')
        assert sum(day['value'] for day in result['daily']) == kpis['total_sold']
        assert result['daily'][-1] == {'date': TODAY, 'value': Decimal('100')}

    def test_month_total_ignores_window_and_filters(self, sellers):
        orders = [
            make_order(date(2026, 3, 2), 40, seller=sellers[0]),
            make_order(date(2026, 3, 10), 60, seller=sellers[1]),
            make_order(date(2026, 2, 27), 500, seller=sellers[0]),
        ]
        narrow = AnalyticsFilters(start=date(2026, 2, 20), end=date(2026, 2, 28), seller_id='s1')
        result = build_analytics(ScopedOrders(ADMIN, tuple(orders)), sellers, narrow, today=TODAY)

        assert result['kpis']['total_sold'] == Decimal('500')
        assert result['kpis']['month_total'] == Decimal('100')

    def test_seller_and_type_filters(self, sellers, filters):
        orders = [
            make_order(TODAY, 100, seller=sellers[0]),
            make_order(TODAY, 30, seller=None),
            make_order(TODAY, 20, doc_type='QUOTE', seller=None),
        ]
        scoped = ScopedOrders(ADMIN, tuple(orders))

        unassigned = AnalyticsFilters(start=filters.start, end=filters.end, seller_id='unassigned')
        kpis = build_analytics(scoped, sellers, unassigned, today=TODAY)['kpis']
        assert (kpis['total_sold'], kpis['order_count'], kpis['quote_count']) == (Decimal('30'), 1, 1)

        quotes_only = AnalyticsFilters(start=filters.start, end=filters.end, seller_id='all', doc_type='QUOTE')
        kpis = build_analytics(scoped, sellers, quotes_only, today=TODAY)['kpis']
        assert (kpis['total_sold'], kpis['order_count'], kpis['quote_count']) == (0, 0, 1)

    def test_monthly_series_covers_trailing_twelve_months(self, filters):
        orders = [
            make_order(date(2025, 4, 15), 10),
            make_order(date(2025, 3, 31), 999),  # thirteenth month back, dropped
            make_order(date(2026, 3, 1), 20),
            make_order(date(2026, 3, 5), 5, doc_type='QUOTE'),
        ]
        monthly = build_analytics(ScopedOrders(ADMIN, tuple(orders)), [], filters, today=TODAY)['monthly']

        assert [m['month'] for m in monthly][:2] == ['2025-04', '2025-05']
        assert monthly[-1]['month'] == '2026-03'
        assert monthly[0]['total'] == Decimal('10')
        assert monthly[-1] == {
            'month': '2026-03', 'total': Decimal('20'), 'order_count': 1, 'quote_count': 1,
            'average_ticket': Decimal('20.00')
        }
        assert sum(m['total'] for m in monthly) == Decimal('30')


class TestDailySeries:

    def test_entry_count_matches_window(self):
        start, end = date(2026, 1, 1), date(2026, 1, 31)
        series = daily_series([], start, end)
        assert len(series) == (end - start).days + 1
        assert series[0]['date'] == start and series[-1]['date'] == end

    def test_single_day_window(self):
        series = daily_series([make_order(TODAY, 12)], TODAY, TODAY)
        assert series == [{'date': TODAY, 'value': Decimal('12')}]


class TestWeeklySeries:

    def test_eight_monday_weeks_ending_with_current(self):
        weeks = weekly_series([], TODAY)
        assert len(weeks) == 8
        assert all(w['week_start'].weekday() == 0 for w in weeks)
        assert weeks[-1]['week_start'] == date(2026, 3, 16)
        assert weeks[0]['week_start'] == date(2026, 1, 26)

    def test_counts_orders_and_quotes_per_week(self):
        orders = [
            make_order(date(2026, 3, 16), 10),
            make_order(date(2026, 3, 22), 10, doc_type='QUOTE'),  # Sunday, same week
            make_order(date(2026, 3, 15), 10),  # previous week
            make_order(date(2025, 12, 1), 10),  # too old
        ]
        weeks = weekly_series(orders, TODAY)
        assert (weeks[-1]['orders'], weeks[-1]['quotes']) == (1, 1)
        assert (weeks[-2]['orders'], weeks[-2]['quotes']) == (1, 0)
        assert sum(w['orders'] + w['quotes'] for w in weeks) == 3


class TestSellerBreakdown:

    def test_lists_every_seller_and_computes_rates(self, sellers):
        window = [
            make_order(TODAY, 300, seller=sellers[1]),
            make_order(TODAY, 100, seller=sellers[1]),
            make_order(TODAY, 0, doc_type='QUOTE', seller=sellers[1]),
            make_order(TODAY, 0, doc_type='QUOTE', seller=sellers[1]),
            make_order(TODAY, 0, doc_type='QUOTE', seller=sellers[1]),
            make_order(TODAY, 0, doc_type='QUOTE', seller=sellers[1]),
        ]
        rows = seller_breakdown(window, sellers)

        assert [r['name'] for r in rows] == ['Bruno', 'Ana', 'Carla']
        bruno = rows[0]
        assert bruno['total'] == Decimal('400')
        assert bruno['order_count'] == 2
        assert bruno['quote_count'] == 4
        assert bruno['conversion_rate'] == Decimal('50.00')
        assert bruno['average_ticket'] == Decimal('200.00')

    def test_conversion_is_zero_without_quotes(self, sellers):
        rows = seller_breakdown([make_order(TODAY, 10, seller=sellers[0])], sellers)
        assert rows[0]['conversion_rate'] == 0

    def test_unknown_and_unassigned_sellers_get_buckets(self, sellers):
        ghost = Seller(id='s-deleted', name='Vendedor Antigo')
        window = [
            make_order(TODAY, 50, seller=ghost),
            make_order(TODAY, 20, seller=None),
        ]
        rows = seller_breakdown(window, sellers)
        names = [r['name'] for r in rows]

        assert names[:2] == ['Vendedor Antigo', 'Não informado']
        assert len(rows) == 5
        assert sum(r['total'] for r in rows) == Decimal('70')

    def test_unassigned_bucket_absent_when_not_needed(self, sellers):
        rows = seller_breakdown([make_order(TODAY, 10, seller=sellers[0])], sellers)
        assert 'Não informado' not in [r['name'] for r in rows]

    def test_ties_keep_directory_order(self, sellers):
        rows = seller_breakdown([], sellers)
        assert [r['name'] for r in rows] == ['Ana', 'Bruno', 'Carla']


class TestProductBreakdown:

    def test_groups_by_description_and_limits(self):
        window = [
            make_order(TODAY, 0, items=[
                make_item('Deck', 2, 200, unit='m2'),
                make_item('Viga', 1, 50),
            ]),
            make_order(TODAY, 0, items=[make_item('Deck', 1, 100, unit='m2')]),
            make_order(TODAY, 0, doc_type='QUOTE', items=[make_item('Caibro', 10, 999)]),
        ]
        rows = product_breakdown(window, limit=5)

        assert [r['name'] for r in rows] == ['Deck', 'Viga']
        assert rows[0]['quantity'] == Decimal('3')
        assert rows[0]['total'] == Decimal('300')
        assert rows[0]['unit'] == 'm2'

    def test_top_n_is_non_increasing(self):
        window = [make_order(TODAY, 0, items=[make_item(f'P{i}', 1, i * 10) for i in range(12)])]
        rows = product_breakdown(window, limit=10)
        assert len(rows) == 10
        totals = [r['total'] for r in rows]
        assert totals == sorted(totals, reverse=True)


class TestClientBreakdown:

    def test_groups_by_client_name_over_orders_only(self):
        window = [
            make_order(TODAY, 100, client='Alfa'),
            make_order(TODAY - timedelta(days=1), 50, client='Alfa'),
            make_order(TODAY, 80, client='Beta'),
            make_order(TODAY, 999, doc_type='QUOTE', client='Alfa'),
            make_order(TODAY, 500, doc_type='QUOTE', client='Omega'),
        ]
        assert client_breakdown(window) == [
            {'name': 'Alfa', 'total': Decimal('150'), 'order_count': 2, 'average_ticket': Decimal('75.00')},
            {'name': 'Beta', 'total': Decimal('80'), 'order_count': 1, 'average_ticket': Decimal('80.00')},
        ]

    def test_top_ten_non_increasing(self):
        window = [make_order(TODAY, (i + 1) * 10, client=f'Cliente {i:02d}') for i in range(12)]
        rows = client_breakdown(window)

        assert len(rows) == 10
        totals = [r['total'] for r in rows]
        assert totals == sorted(totals, reverse=True)
        assert rows[0]['name'] == 'Cliente 11'
        assert {'Cliente 00', 'Cliente 01'}.isdisjoint(r['name'] for r in rows)

    def test_ties_keep_first_seen_order(self):
        window = [
            make_order(TODAY, 50, client='Gama'),
            make_order(TODAY, 70, client='Epsilon'),
            make_order(TODAY, 50, client='Delta'),
        ]
        assert [r['name'] for r in client_breakdown(window)] == ['Epsilon', 'Gama', 'Delta']

    def test_custom_limit(self):
        window = [make_order(TODAY, 10, client=name) for name in ('A', 'B', 'C')]
        assert len(client_breakdown(window, limit=2)) == 2

    def test_respects_window_and_seller_filter(self, sellers, filters):
        orders = [
            make_order(TODAY, 100, seller=sellers[0], client='Alfa'),
            make_order(TODAY, 40, seller=sellers[1], client='Beta'),
            make_order(TODAY - timedelta(days=60), 300, seller=sellers[0], client='Antigo'),
        ]
        only_ana = AnalyticsFilters(start=filters.start, end=filters.end, seller_id='s1')
        result = build_analytics(ScopedOrders(ADMIN, tuple(orders)), sellers, only_ana, today=TODAY)

        assert [c['name'] for c in result['clients']] == ['Alfa']


class TestStatusDistribution:

    def test_zero_filled_in_enum_order(self):
        window = [
            make_order(TODAY, 1, status='SENT'),
            make_order(TODAY, 1, status='SENT'),
            make_order(TODAY, 1, status='DRAFT', doc_type='QUOTE'),
        ]
        assert status_distribution(window) == [
            {'status': 'DRAFT', 'count': 0},
            {'status': 'SENT', 'count': 2},
            {'status': 'APPROVED', 'count': 0},
            {'status': 'REJECTED', 'count': 0},
        ]


class TestResolvePeriod:

    @pytest.mark.parametrize('period, days', [('7', 7), ('30', 30), ('90', 90)])
    def test_last_n_days(self, period, days):
        start, end = resolve_period(period, TODAY)
        assert end == TODAY
        assert (end - start).days + 1 == days

    def test_twelve_months_starts_on_first_of_month(self):
        assert resolve_period('12m', TODAY) == (date(2025, 4, 1), TODAY)

    def test_single_day(self):
        day = date(2026, 2, 3)
        assert resolve_period('day', TODAY, specific_date=day) == (day, day)

    def test_custom_range(self):
        start, end = date(2026, 1, 1), date(2026, 1, 15)
        assert resolve_period('custom', TODAY, start=start, end=end) == (start, end)

    def test_unknown_period_falls_back_to_thirty_days(self):
        assert resolve_period('bogus', TODAY) == (TODAY - timedelta(days=29), TODAY)

    def test_inverted_range_is_rejected(self):
        with pytest.raises(ValidationError):
            resolve_period('custom', TODAY, start=date(2026, 2, 1), end=date(2026, 1, 1))


def test_fetch_range_covers_every_view():
    filters = AnalyticsFilters(start=date(2026, 3, 10), end=date(2026, 3, 12))
    start, end = fetch_range(filters, TODAY)
    assert start == date(2025, 4, 1)
    assert end == TODAY
