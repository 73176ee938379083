"""WhatsApp hand-off: message text and wa.me links."""
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

from lumberdesk.utils.formatters import money_br, num_br

WA_BASE_URL = 'https://wa.me'
BRAZIL_PREFIX = '55'


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Digits only, with the Brazilian country code.

    Examples:
        normalize_phone('(47) 99999-9999') -> '5547999999999'
        normalize_phone('+55 47 9 8435-0712') -> '5547984350712'
    """
    if not phone:
        return None
    digits = re.sub(r'\D', '', phone)
    if not digits:
        return None
    if len(digits) <= 11:
        digits = BRAZIL_PREFIX + digits
    return digits


def format_order_message(order, company: Optional[Dict[str, Any]] = None) -> str:
    """Plain-text summary of a quote/order for WhatsApp."""
    company = company or {}
    company_name = company.get('name') or ''
    document = 'orçamento' if order.is_quote else 'pedido'

    greeting = f"Olá! Segue seu {document}"
    if company_name:
        greeting += f" da {company_name}"
    lines = [greeting + ':']
    lines.append(f"Cliente: {order.client_name}")
    lines.append("Itens:")
    for item in order.items:
        lines.append(f"{num_br(item.quantity)} {item.unit} - {item.description} ({money_br(item.total)})")
    lines.append("")
    lines.append(f"Total: {money_br(order.total)}")
    lines.append("Posso te ajudar em mais algo?")
    return '\n'.join(lines)


def whatsapp_link(order, company: Optional[Dict[str, Any]] = None, phone: Optional[str] = None) -> str:
    """
    wa.me link carrying the order message.

    Sent to ``phone`` when given (e.g. the client's number), otherwise to the
    company WhatsApp.
    """
    company = company or {}
    target = normalize_phone(phone) or normalize_phone(company.get('whatsapp'))
    text = quote(format_order_message(order, company), safe='')
    if target:
        return f"{WA_BASE_URL}/{target}?text={text}"
    return f"{WA_BASE_URL}/?text={text}"
