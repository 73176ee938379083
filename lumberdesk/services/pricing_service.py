"""
Line-item pricing for quotes and orders.

Lumber is cut and billed in half-meter steps, so every dimension is rounded
up to the next 0.5 before it is multiplied. Width is entered in centimeters
and converted to meters first. All money math uses Decimal.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from lumberdesk.exceptions import ValidationError, MissingDimensionError
from lumberdesk.models.product import ProductUnit
from lumberdesk.models.order_item import DiscountType

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENT = Decimal('0.01')


@dataclass(frozen=True)
class LineItemInput:
    """Raw inputs of one line item, as typed in the order editor."""
    quantity: Any
    unit_price: Any
    unit: Any = ProductUnit.COUNT.value
    length: Any = None  # meters
    width: Any = None  # centimeters
    discount_type: Any = DiscountType.FIXED.value
    discount_value: Any = 0
    description: str = ''


@dataclass(frozen=True)
class LinePrice:
    """Pre-discount base, discount amount and final total of one line."""
    base: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    total_discount: Decimal
    total: Decimal


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a number (or numeric string) to Decimal; None stays None."""
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip().replace(',', '.'))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'Valor numérico inválido: {value}')


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def ceil_to_half(value: Any) -> Decimal:
    """
    Round a dimension up to the nearest multiple of 0.5.

    None, non-finite and non-positive values contribute zero.

    Examples:
        ceil_to_half(1.3) -> 1.5
        ceil_to_half(2) -> 2
        ceil_to_half(-1) -> 0
    """
    number = to_decimal(value)
    if number is None or not number.is_finite() or number <= 0:
        return ZERO
    return (number * 2).to_integral_value(rounding=ROUND_CEILING) / 2


def _parse_discount_type(value: Any) -> Optional[DiscountType]:
    if isinstance(value, DiscountType):
        return value
    for discount_type in DiscountType:
        if discount_type.value == value:
            return discount_type
    return None


def _amount(value: Any) -> Decimal:
    number = to_decimal(value)
    return number if number is not None else ZERO


def base_amount(item: LineItemInput) -> Decimal:
    """
    Pre-discount amount of a line.

    - ML (linear length): quantity x rounded length x unit price.
    - m2 (area): quantity x rounded length x rounded width (m) x unit price
      when a width is given, otherwise quantity x unit price.
    - anything else: quantity x unit price.

    Raises:
        MissingDimensionError: ML item without a length.
    """
    quantity = _amount(item.quantity)
    unit_price = _amount(item.unit_price)
    unit = ProductUnit.parse(item.unit)

    if unit is ProductUnit.LINEAR:
        if to_decimal(item.length) is None:
            raise MissingDimensionError(item.description)
        return quantity * ceil_to_half(item.length) * unit_price

    if unit is ProductUnit.AREA:
        width_cm = to_decimal(item.width)
        if width_cm is not None and width_cm.is_finite() and width_cm > 0:
            width_m = ceil_to_half(width_cm / HUNDRED)
            return quantity * ceil_to_half(item.length) * width_m * unit_price
        # Area products are also sold by the piece
        return quantity * unit_price

    return quantity * unit_price


def discount_amount(item: LineItemInput, base: Decimal) -> Decimal:
    """Percentage of the base, or the fixed value as given (not capped at base)."""
    value = _amount(item.discount_value)
    if _parse_discount_type(item.discount_type) is DiscountType.PERCENTAGE:
        return base * (value / HUNDRED)
    return value


def price_line(item: LineItemInput) -> LinePrice:
    """Price one line: base, discount and a total floored at zero."""
    base = base_amount(item)
    discount = discount_amount(item, base)
    return LinePrice(base=base, discount=discount, total=max(ZERO, base - discount))


def line_total(item: LineItemInput) -> Decimal:
    return price_line(item).total


def order_totals(items: Iterable[Any]) -> OrderTotals:
    """
    Recompute order header totals from the live item list.

    Accepts LineItemInput objects or anything exposing ``to_pricing_input()``
    (e.g. OrderItem rows). total is subtotal minus total_discount.
    """
    subtotal = ZERO
    total_discount = ZERO
    for item in items:
        if not isinstance(item, LineItemInput):
            item = item.to_pricing_input()
        line = price_line(item)
        subtotal += line.base
        total_discount += line.discount
    return OrderTotals(subtotal=subtotal, total_discount=total_discount, total=subtotal - total_discount)


def validate_line_input(item: LineItemInput) -> None:
    """
    Reject a line before it enters the item list.

    Raises:
        ValidationError: invalid quantity, price, discount, unit or dimensions.
        MissingDimensionError: ML item without a length.
    """
    label = item.description or 'item'

    quantity = to_decimal(item.quantity)
    if quantity is None or not quantity.is_finite() or quantity <= 0:
        raise ValidationError(f'Quantidade deve ser maior que zero ({label}).')

    unit_price = to_decimal(item.unit_price)
    if unit_price is None or not unit_price.is_finite() or unit_price < 0:
        raise ValidationError(f'Preço unitário inválido ({label}).')

    if _parse_discount_type(item.discount_type) is None:
        raise ValidationError(f'Tipo de desconto inválido: {item.discount_type}')

    discount = to_decimal(item.discount_value)
    if discount is not None and (not discount.is_finite() or discount < 0):
        raise ValidationError(f'Desconto não pode ser negativo ({label}).')

    unit = ProductUnit.parse(item.unit)
    if unit is None:
        raise ValidationError(f'Unidade inválida: {item.unit} ({label}).')

    if unit is ProductUnit.LINEAR and to_decimal(item.length) is None:
        raise MissingDimensionError(item.description)
