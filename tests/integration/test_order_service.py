"""
Integration tests for order persistence and role scoping.
"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from sqlalchemy.exc import OperationalError
from lumberdesk.exceptions import (
    ValidationError, MissingDimensionError, NotFoundError, PermissionDeniedError, PersistenceError
)
from lumberdesk.models import Order, OrderItem, AuditLog
from lumberdesk.services import order_service
from lumberdesk.services.audit_service import list_audit_logs


def order_payload(**overrides):
    payload = {
        'client_name': 'Construtora Alfa',
        'type': 'QUOTE',
        'items': [
            {'description': 'Rodapé', 'quantity': '3', 'unit_price': '15', 'unit': 'ML', 'length': '0.8'},
            {'description': 'Deck', 'quantity': '1', 'unit_price': '100', 'unit': 'm2',
             'length': '1.0', 'width': '50', 'discount_type': 'percentage', 'discount_value': '10'},
        ],
    }
    payload.update(overrides)
    return payload


class TestSaveOrder:

    def test_recomputes_totals_and_ignores_client_totals(self, session, admin_caller):
        payload = order_payload(total='1.00', subtotal='1.00')
        payload['items'][0]['total'] = '999'

        order = order_service.save_order(session, admin_caller, payload)

        assert order.subtotal == Decimal('95.00')
        assert order.total_discount == Decimal('5.00')
        assert order.total == Decimal('90.00')
        assert [item.total for item in order.items] == [Decimal('45.00'), Decimal('45.00')]
        assert order.total == order.subtotal - order.total_discount

    def test_resave_replaces_all_items(self, session, admin_caller):
        order = order_service.save_order(session, admin_caller, order_payload())
        order_id = order.id

        payload = order_payload(id=order_id, items=[
            {'description': 'Viga', 'quantity': '2', 'unit_price': '40', 'unit': 'un'},
        ])
        order = order_service.save_order(session, admin_caller, payload)

        items = session.query(OrderItem).filter_by(order_id=order_id).all()
        assert [i.description for i in items] == ['Viga']
        assert order.total == Decimal('80.00')
        assert session.query(Order).count() == 1

    def test_invalid_line_is_rejected_before_any_write(self, session, admin_caller):
        payload = order_payload(items=[{'description': 'Rodapé', 'quantity': '1', 'unit_price': '10', 'unit': 'ML'}])

        with pytest.raises(MissingDimensionError):
            order_service.save_order(session, admin_caller, payload)
        assert session.query(Order).count() == 0

    def test_order_without_items_is_rejected(self, session, admin_caller):
        with pytest.raises(ValidationError):
            order_service.save_order(session, admin_caller, order_payload(items=[]))

    def test_catalog_price_used_when_unit_price_missing(self, session, admin_caller, product_deck):
        payload = order_payload(items=[
            {'product_id': product_deck.id, 'quantity': '1', 'is_processed': True},
        ])
        order = order_service.save_order(session, admin_caller, payload)
        item = order.items[0]

        assert item.description == 'Deck Cumaru'
        assert item.unit == 'm2'
        assert item.unit_price == Decimal('120.00')
        assert item.total == Decimal('120.00')

    def test_sales_user_saves_under_own_seller(self, session, sales_caller, seller_joao, seller_maria):
        payload = order_payload(seller_id=seller_maria.id)
        order = order_service.save_order(session, sales_caller, payload)

        assert order.seller_id == seller_joao.id
        assert order.seller_name == 'Vendedor João'

    def test_sales_user_cannot_overwrite_foreign_order(self, session, sales_caller, maria_order):
        payload = order_payload(id=maria_order.id)
        with pytest.raises(PermissionDeniedError):
            order_service.save_order(session, sales_caller, payload)

    def test_client_snapshot_taken_from_client_record(self, session, admin_caller, client_record):
        order = order_service.save_order(session, admin_caller, order_payload(client_id=client_record.id, client_name=''))
        assert order.client_name == 'João da Silva Construções'

    def test_save_is_audited(self, session, admin_caller):
        order = order_service.save_order(session, admin_caller, order_payload())
        logs = list_audit_logs(session, table_name='orders', record_id=order.id)

        assert len(logs) == 1
        assert logs[0].action == 'INSERT'
        assert logs[0].user_email == 'admin@test.com'
        assert logs[0].after['total'] == '90.00'

    def test_database_failure_becomes_persistence_error(self, session, admin_caller, monkeypatch):
        def broken_commit():
            raise OperationalError('COMMIT', {}, Exception('database is locked'))

        monkeypatch.setattr(session, 'commit', broken_commit)
        with pytest.raises(PersistenceError) as exc:
            order_service.save_order(session, admin_caller, order_payload())
        assert exc.value.status_code == 503

    def test_failed_item_write_becomes_persistence_error(self, session, admin_caller, monkeypatch):
        def broken_flush(*args, **kwargs):
            raise OperationalError('INSERT', {}, Exception('database is locked'))

        monkeypatch.setattr(session, 'flush', broken_flush)
        with pytest.raises(PersistenceError) as exc:
            order_service.save_order(session, admin_caller, order_payload())
        assert exc.value.status_code == 503

        monkeypatch.undo()
        assert session.query(Order).count() == 0

    def test_unknown_unit_is_rejected(self, session, admin_caller):
        payload = order_payload(items=[
            {'description': 'Tábua', 'quantity': '2', 'unit_price': '10', 'unit': 'banana'},
        ])
        with pytest.raises(ValidationError):
            order_service.save_order(session, admin_caller, payload)
        assert session.query(Order).count() == 0

    def test_resave_without_type_or_status_keeps_them(self, session, admin_caller):
        order = order_service.save_order(session, admin_caller, order_payload(type='ORDER', status='APPROVED'))

        payload = order_payload(id=order.id)
        del payload['type']
        order = order_service.save_order(session, admin_caller, payload)

        assert order.type == 'ORDER'
        assert order.status == 'APPROVED'

    def test_new_order_defaults_to_draft_quote(self, session, admin_caller):
        payload = order_payload()
        del payload['type']
        order = order_service.save_order(session, admin_caller, payload)

        assert order.type == 'QUOTE'
        assert order.status == 'DRAFT'


class TestPreviewOrder:

    def test_matches_saved_totals(self, session, admin_caller):
        preview = order_service.preview_order(session, order_payload())
        order = order_service.save_order(session, admin_caller, order_payload())

        assert preview['subtotal'] == order.subtotal
        assert preview['total_discount'] == order.total_discount
        assert preview['total'] == order.total
        assert [line['total'] for line in preview['items']] == [item.total for item in order.items]

    def test_uses_catalog_price_when_unit_price_missing(self, session, product_deck):
        preview = order_service.preview_order(session, {'items': [
            {'product_id': product_deck.id, 'quantity': '2'},
            {'product_id': product_deck.id, 'quantity': '1', 'is_processed': 'true'},
        ]})

        assert [line['total'] for line in preview['items']] == [Decimal('200.00'), Decimal('120.00')]
        assert preview['total'] == Decimal('320.00')

    def test_rejects_invalid_line(self, session):
        with pytest.raises(MissingDimensionError):
            order_service.preview_order(session, {'items': [
                {'description': 'Rodapé', 'quantity': '1', 'unit_price': '10', 'unit': 'ML'},
            ]})


class TestReadAndDelete:

    def test_get_order_permissions(self, session, admin_caller, sales_caller, maria_order):
        assert order_service.get_order(session, admin_caller, maria_order.id).id == maria_order.id
        with pytest.raises(PermissionDeniedError):
            order_service.get_order(session, sales_caller, maria_order.id)
        with pytest.raises(NotFoundError):
            order_service.get_order(session, admin_caller, 'missing')

    def test_list_orders_is_scoped(self, session, admin_caller, sales_caller, maria_order):
        own = order_service.save_order(session, sales_caller, order_payload())

        assert {o.id for o in order_service.list_orders(session, admin_caller)} == {own.id, maria_order.id}
        assert [o.id for o in order_service.list_orders(session, sales_caller)] == [own.id]
        assert order_service.list_orders(session, admin_caller, doc_type='ORDER')[0].id == maria_order.id

    def test_delete_requires_ownership(self, session, sales_caller, admin_caller, maria_order):
        with pytest.raises(PermissionDeniedError):
            order_service.delete_order(session, sales_caller, maria_order.id)

        order_service.delete_order(session, admin_caller, maria_order.id)
        assert session.query(Order).count() == 0
        assert session.query(OrderItem).count() == 0
        assert session.query(AuditLog).filter_by(action='DELETE').count() == 1

    def test_convert_quote_to_order(self, session, admin_caller):
        quote = order_service.save_order(session, admin_caller, order_payload())
        order = order_service.convert_to_order(session, admin_caller, quote.id)

        assert order.type == 'ORDER'
        assert order.total == Decimal('90.00')
        assert len(order.items) == 2
        with pytest.raises(ValidationError):
            order_service.convert_to_order(session, admin_caller, quote.id)


class TestFetchScopedOrders:

    def test_date_range_is_inclusive(self, session, admin_caller):
        today = date.today()
        for days_ago in (0, 5, 10):
            order_service.save_order(session, admin_caller, order_payload(
                date=datetime.combine(today - timedelta(days=days_ago), datetime.min.time()).replace(hour=23).isoformat()
            ))

        scoped = order_service.fetch_scoped_orders(session, admin_caller, today - timedelta(days=5), today)
        assert len(scoped) == 2

    def test_sales_scope(self, session, sales_caller, maria_order):
        order_service.save_order(session, sales_caller, order_payload())
        scoped = order_service.fetch_scoped_orders(session, sales_caller)

        assert len(scoped) == 1
        assert all(o.seller_id == sales_caller.seller_id for o in scoped)
        assert scoped.caller == sales_caller
