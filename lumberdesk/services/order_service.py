"""Order service: role-scoped reads, saves with recomputed totals, conversion."""

import logging
from datetime import datetime, date, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from lumberdesk.database import commit_or_raise, persistence_guard
from lumberdesk.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from lumberdesk.models import (
    Order, OrderItem, Client, Product, ProductUnit, Seller,
    OrderStatus, DocumentType, DiscountType, AuditAction
)
from lumberdesk.services.access import Caller, ScopedOrders
from lumberdesk.services.audit_service import log_action, snapshot, ORDERS
from lumberdesk.services.pricing_service import (
    LineItemInput, price_line, order_totals, validate_line_input, quantize_money, to_decimal
)

logger = logging.getLogger(__name__)

TRUE_VALUES = (True, 1, '1', 'true', 'True', 'on', 'yes')


def _scoped_query(session: Session, caller: Caller):
    """Base query with the role predicate applied."""
    query = session.query(Order).options(selectinload(Order.items))
    if not caller.is_admin:
        if not caller.seller_id:
            # Sales account not linked to a seller sees nothing
            return query.filter(Order.id.is_(None))
        query = query.filter(Order.seller_id == caller.seller_id)
    return query


def fetch_scoped_orders(session: Session, caller: Caller,
                        start: Optional[date] = None, end: Optional[date] = None) -> ScopedOrders:
    """
    Load the orders ``caller`` may see, with items, dated within [start, end].

    Both bounds are inclusive calendar days and optional.
    """
    query = _scoped_query(session, caller)
    if start:
        query = query.filter(Order.date >= datetime.combine(start, time.min))
    if end:
        query = query.filter(Order.date < datetime.combine(end + timedelta(days=1), time.min))
    orders = query.order_by(Order.date).all()
    return ScopedOrders(caller=caller, orders=tuple(orders))


def list_orders(session: Session, caller: Caller, doc_type: str = None, status: str = None,
                search: str = None, limit: int = 200) -> List[Order]:
    """Orders visible to the caller, newest first."""
    query = _scoped_query(session, caller)
    if doc_type:
        query = query.filter(Order.type == doc_type)
    if status:
        query = query.filter(Order.status == status)
    if search:
        pattern = f'%{search.lower()}%'
        query = query.filter(or_(
            func.lower(Order.client_name).like(pattern),
            func.lower(Order.seller_name).like(pattern),
        ))
    return query.order_by(Order.date.desc(), Order.created_at.desc()).limit(limit).all()


def get_order(session: Session, caller: Caller, order_id: str) -> Order:
    """
    Fetch one order.

    Raises:
        NotFoundError: no such order
        PermissionDeniedError: the order belongs to another seller
    """
    order = session.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError(f'Pedido {order_id} não encontrado.')
    if not caller.can_see(order):
        logger.warning(f"User {caller.email} denied access to order {order_id}")
        raise PermissionDeniedError('Você não tem permissão para acessar este pedido.')
    return order


def _parse_date(value: Any) -> datetime:
    if not value:
        return datetime.now()
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time(12, 0))
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f'Data inválida: {value}')
    # Naive local datetimes are stored
    return parsed.replace(tzinfo=None)


def _parse_choice(value: Any, enum_cls, default, label: str) -> str:
    if value in (None, ''):
        return default.value
    for member in enum_cls:
        if member.value == value:
            return member.value
    raise ValidationError(f'{label} inválido: {value}')


def build_line_input(session: Session, raw: Dict[str, Any], position: int) -> Tuple[LineItemInput, Optional[Product], bool]:
    """
    Turn one payload line into a validated LineItemInput.

    A line linked to a catalog product takes its name, unit and price
    (bruto or beneficiado) from the product when those fields are empty.

    Returns:
        (line_input, product or None, is_processed)
    """
    product = None
    product_id = raw.get('product_id') or None
    if product_id:
        product = session.get(Product, product_id)

    is_processed = raw.get('is_processed') in TRUE_VALUES
    description = (raw.get('description') or '').strip()
    if not description and product:
        description = product.name
    if not description:
        raise ValidationError(f'Descrição obrigatória no item {position + 1}.')

    unit_price = raw.get('unit_price')
    if unit_price in (None, '') and product:
        unit_price = product.unit_price(is_processed)

    line_input = LineItemInput(
        quantity=raw.get('quantity'),
        unit_price=unit_price,
        unit=raw.get('unit') or (product.unit if product else ProductUnit.COUNT.value),
        length=raw.get('length'),
        width=raw.get('width'),
        discount_type=raw.get('discount_type') or DiscountType.FIXED.value,
        discount_value=raw.get('discount_value') or 0,
        description=description,
    )
    validate_line_input(line_input)
    return line_input, product, is_processed


def _build_line(session: Session, raw: Dict[str, Any], position: int) -> OrderItem:
    """Validate one payload line and build its OrderItem with the computed total."""
    line_input, product, is_processed = build_line_input(session, raw, position)
    line = price_line(line_input)

    return OrderItem(
        position=position,
        product_id=product.id if product else None,
        description=line_input.description,
        quantity=to_decimal(line_input.quantity),
        unit_price=to_decimal(line_input.unit_price),
        unit=line_input.unit,
        discount_type=line_input.discount_type,
        discount_value=to_decimal(line_input.discount_value),
        length=to_decimal(line_input.length),
        width=to_decimal(line_input.width),
        is_processed=is_processed,
        total=quantize_money(line.total),
    )


def preview_order(session: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Price the editor's lines exactly as save_order would, without writing."""
    inputs = [build_line_input(session, raw, position)[0]
              for position, raw in enumerate(payload.get('items') or [])]

    lines = []
    for line_input in inputs:
        line = price_line(line_input)
        lines.append({
            'base': quantize_money(line.base),
            'discount': quantize_money(line.discount),
            'total': quantize_money(line.total),
        })

    totals = order_totals(inputs)
    subtotal = quantize_money(totals.subtotal)
    total_discount = quantize_money(totals.total_discount)
    return {
        'items': lines,
        'subtotal': subtotal,
        'total_discount': total_discount,
        'total': subtotal - total_discount,
    }


def save_order(session: Session, caller: Caller, payload: Dict[str, Any]) -> Order:
    """
    Save an order: header upsert plus full replacement of its items.

    Every item total and the header totals are recomputed from the payload;
    totals sent by the client are ignored. Sales users always save under
    their own seller and cannot touch orders of another seller.

    Raises:
        ValidationError: invalid header or line
        PermissionDeniedError: order owned by another seller
        PersistenceError: the database rejected the write
    """
    raw_items = payload.get('items') or []
    if not raw_items:
        raise ValidationError('O pedido precisa de pelo menos um item.')

    # Validate every line before touching the session
    items = [_build_line(session, raw, position) for position, raw in enumerate(raw_items)]

    order_id = payload.get('id') or None
    order = session.get(Order, order_id) if order_id else None
    created = order is None
    before = None

    if order is not None:
        if not caller.can_modify(order):
            logger.warning(f"User {caller.email} denied saving order {order_id}")
            raise PermissionDeniedError('Você não pode alterar pedidos de outro vendedor.')
        before = snapshot(order)
    else:
        order = Order(id=order_id) if order_id else Order()

    if caller.is_admin:
        seller_id = payload.get('seller_id') or None
    else:
        if not caller.seller_id:
            raise PermissionDeniedError('Usuário sem vendedor vinculado.')
        seller_id = caller.seller_id

    seller_name = payload.get('seller_name') or None
    if seller_id:
        seller = session.get(Seller, seller_id)
        if seller:
            seller_name = seller.name
    else:
        seller_name = None

    client_id = payload.get('client_id') or None
    client_name = (payload.get('client_name') or '').strip()
    if client_id:
        client = session.get(Client, client_id)
        if client:
            client_name = client.name
    if not client_name:
        raise ValidationError('Selecione um cliente.')

    order.client_id = client_id
    order.client_name = client_name
    order.seller_id = seller_id
    order.seller_name = seller_name
    order.date = _parse_date(payload.get('date')) if created or payload.get('date') else order.date
    # Omitted status/type keep the stored values on update
    if created or payload.get('status'):
        order.status = _parse_choice(payload.get('status'), OrderStatus, OrderStatus.DRAFT, 'Status')
    if created or payload.get('type'):
        order.type = _parse_choice(payload.get('type'), DocumentType, DocumentType.QUOTE, 'Tipo')
    order.internal_notes = (payload.get('internal_notes') or '').strip() or None
    order.customer_notes = (payload.get('customer_notes') or '').strip() or None

    totals = order_totals(item.to_pricing_input() for item in items)
    order.subtotal = quantize_money(totals.subtotal)
    order.total_discount = quantize_money(totals.total_discount)
    order.total = order.subtotal - order.total_discount

    with persistence_guard(session, 'Erro ao salvar pedido'):
        session.add(order)
        session.flush()

        # Full replace: drop every stored item, then insert the new list
        if not created:
            session.query(OrderItem).filter(OrderItem.order_id == order.id).delete(synchronize_session=False)
            session.expire(order, ['items'])
        for item in items:
            item.order_id = order.id
            session.add(item)
        session.flush()
        session.refresh(order)

    log_action(session, caller, AuditAction.INSERT if created else AuditAction.UPDATE,
               ORDERS, order.id, before=before, after=snapshot(order))
    commit_or_raise(session, 'Erro ao salvar pedido')

    logger.info(f"Order {order.id} saved by {caller.email}: {len(items)} items, total {order.total}")
    return order


def delete_order(session: Session, caller: Caller, order_id: str) -> None:
    """Delete an order and its items (admin or owning seller)."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Pedido {order_id} não encontrado.')
    if not caller.can_modify(order):
        logger.warning(f"User {caller.email} denied deleting order {order_id}")
        raise PermissionDeniedError('Você não pode excluir pedidos de outro vendedor.')

    before = snapshot(order)
    session.delete(order)
    log_action(session, caller, AuditAction.DELETE, ORDERS, order_id, before=before)
    commit_or_raise(session, 'Erro ao excluir pedido')
    logger.info(f"Order {order_id} deleted by {caller.email}")


def convert_to_order(session: Session, caller: Caller, order_id: str) -> Order:
    """Turn a quote into an order by reassigning its type; items and totals are kept."""
    order = get_order(session, caller, order_id)
    if not order.is_quote:
        raise ValidationError('Este documento já é um pedido.')

    before = snapshot(order)
    order.type = DocumentType.ORDER.value
    log_action(session, caller, AuditAction.UPDATE, ORDERS, order.id,
               before=before, after=snapshot(order))
    commit_or_raise(session, 'Erro ao converter orçamento')

    logger.info(f"Quote {order.id} converted to order by {caller.email}")
    return order
