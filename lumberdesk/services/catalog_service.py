"""Catalog service: clients, products and the seller directory."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_

from lumberdesk.database import commit_or_raise, flush_or_raise
from lumberdesk.exceptions import ValidationError, NotFoundError
from lumberdesk.models import Client, ClientType, Product, ProductUnit, Seller, AuditAction
from lumberdesk.services.audit_service import log_action, snapshot, CLIENTS, PRODUCTS, SELLERS
from lumberdesk.services.pricing_service import to_decimal

logger = logging.getLogger(__name__)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _price(data: Dict[str, Any], key: str, default=None) -> Optional[Decimal]:
    value = to_decimal(data.get(key))
    if value is None:
        return default
    if not value.is_finite() or value < 0:
        raise ValidationError(f'Valor inválido para {key}.')
    return value


def _upsert(session, model, record_id: Optional[str]):
    """Return (instance, created) for an upsert keyed by id."""
    if record_id:
        existing = session.get(model, record_id)
        if existing:
            return existing, False
        return model(id=record_id), True
    return model(), True


# --- Clients ---

def list_clients(session, search: str = None) -> List[Client]:
    query = session.query(Client)
    if search:
        pattern = f'%{search.lower()}%'
        query = query.filter(or_(
            func.lower(Client.name).like(pattern),
            func.lower(Client.document).like(pattern),
            func.lower(Client.phone).like(pattern),
        ))
    return query.order_by(Client.name).all()


def get_client(session, client_id: str) -> Client:
    client = session.get(Client, client_id)
    if not client:
        raise NotFoundError(f'Cliente {client_id} não encontrado.')
    return client


def save_client(session, caller, data: Dict[str, Any]) -> Client:
    """Create or update a client (upsert by id)."""
    name = _clean(data.get('name'))
    if not name:
        raise ValidationError('O nome do cliente é obrigatório.')

    client_type = _clean(data.get('type')) or ClientType.PF.value
    if client_type not in {t.value for t in ClientType}:
        raise ValidationError('Tipo de cliente deve ser PF ou PJ.')

    client, created = _upsert(session, Client, _clean(data.get('id')))
    before = None if created else snapshot(client)

    client.name = name
    client.document = _clean(data.get('document'))
    client.phone = _clean(data.get('phone'))
    client.email = _clean(data.get('email'))
    client.address = _clean(data.get('address'))
    client.type = client_type
    client.internal_notes = _clean(data.get('internal_notes'))
    session.add(client)
    flush_or_raise(session, 'Erro ao salvar cliente')

    log_action(session, caller, AuditAction.INSERT if created else AuditAction.UPDATE,
               CLIENTS, client.id, before=before, after=snapshot(client))
    commit_or_raise(session, 'Erro ao salvar cliente')
    return client


def delete_client(session, caller, client_id: str) -> None:
    client = get_client(session, client_id)
    before = snapshot(client)
    session.delete(client)
    log_action(session, caller, AuditAction.DELETE, CLIENTS, client_id, before=before)
    commit_or_raise(session, 'Erro ao excluir cliente')
    logger.info(f"Client {client_id} deleted")


# --- Products ---

def list_products(session, search: str = None) -> List[Product]:
    query = session.query(Product)
    if search:
        pattern = f'%{search.lower()}%'
        query = query.filter(or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.code).like(pattern),
            func.lower(Product.category).like(pattern),
        ))
    return query.order_by(Product.name).all()


def get_product(session, product_id: str) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError(f'Produto {product_id} não encontrado.')
    return product


def save_product(session, caller, data: Dict[str, Any]) -> Product:
    """
    Create or update a product.

    The legacy ``price`` key is accepted from older clients but only ever
    written into price_bruto.
    """
    name = _clean(data.get('name'))
    code = _clean(data.get('code'))
    if not name or not code:
        raise ValidationError('Código e nome do produto são obrigatórios.')

    unit = ProductUnit.parse(_clean(data.get('unit')) or ProductUnit.COUNT.value)
    if unit is None:
        raise ValidationError(f"Unidade inválida: {data.get('unit')}")

    price_bruto = _price(data, 'price_bruto')
    if price_bruto is None:
        price_bruto = _price(data, 'price', Decimal('0'))

    product, created = _upsert(session, Product, _clean(data.get('id')))
    before = None if created else snapshot(product)

    product.code = code
    product.name = name
    product.category = _clean(data.get('category'))
    product.unit = unit.value
    product.price_bruto = price_bruto
    product.price_benef = _price(data, 'price_benef', Decimal('0'))
    product.cost = _price(data, 'cost')
    session.add(product)
    flush_or_raise(session, 'Erro ao salvar produto')

    log_action(session, caller, AuditAction.INSERT if created else AuditAction.UPDATE,
               PRODUCTS, product.id, before=before, after=snapshot(product))
    commit_or_raise(session, 'Erro ao salvar produto')
    return product


def delete_product(session, caller, product_id: str) -> None:
    product = get_product(session, product_id)
    before = snapshot(product)
    session.delete(product)
    log_action(session, caller, AuditAction.DELETE, PRODUCTS, product_id, before=before)
    commit_or_raise(session, 'Erro ao excluir produto')
    logger.info(f"Product {product_id} deleted")


# --- Sellers ---

def list_sellers(session, active_only: bool = False) -> List[Seller]:
    """Seller directory; reports need inactive sellers too, the order editor does not."""
    query = session.query(Seller)
    if active_only:
        query = query.filter(Seller.is_active == True)  # noqa: E712
    return query.order_by(Seller.name).all()


def get_seller(session, seller_id: str) -> Seller:
    seller = session.get(Seller, seller_id)
    if not seller:
        raise NotFoundError(f'Vendedor {seller_id} não encontrado.')
    return seller


def save_seller(session, caller, data: Dict[str, Any]) -> Seller:
    name = _clean(data.get('name'))
    if not name:
        raise ValidationError('O nome do vendedor é obrigatório.')

    seller, created = _upsert(session, Seller, _clean(data.get('id')))
    before = None if created else snapshot(seller)

    seller.name = name
    seller.whatsapp = _clean(data.get('whatsapp'))
    is_active = data.get('is_active')
    if is_active is not None:
        seller.is_active = is_active in (True, 'true', 'True', '1', 'on', 1)
    elif created:
        seller.is_active = True
    session.add(seller)
    flush_or_raise(session, 'Erro ao salvar vendedor')

    log_action(session, caller, AuditAction.INSERT if created else AuditAction.UPDATE,
               SELLERS, seller.id, before=before, after=snapshot(seller))
    commit_or_raise(session, 'Erro ao salvar vendedor')
    return seller


def delete_seller(session, caller, seller_id: str) -> None:
    """Delete a seller; existing orders keep the id and name snapshot."""
    seller = get_seller(session, seller_id)
    before = snapshot(seller)
    session.delete(seller)
    log_action(session, caller, AuditAction.DELETE, SELLERS, seller_id, before=before)
    commit_or_raise(session, 'Erro ao excluir vendedor')
    logger.info(f"Seller {seller_id} deleted")
