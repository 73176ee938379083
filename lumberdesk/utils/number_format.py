"""Number parsing for Brazilian formats (1.234,56)."""
import re
from decimal import Decimal, InvalidOperation

BR_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")


def parse_br_number(value) -> Decimal:
    """
    Parse a number typed in the order editor (e.g. 1.234,56 or 1,5) to Decimal.

    Plain dotted numbers ("2.5") are accepted too, since browsers send number
    inputs that way.

    Raises:
        ValueError: if the value is empty, malformed or negative.
    """
    if value is None:
        raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

    if isinstance(value, (int, Decimal)):
        decimal_value = Decimal(value)
    else:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

        if BR_NUMBER_PATTERN.match(cleaned) and (',' in cleaned or cleaned.count('.') != 1):
            normalized = cleaned.replace('.', '').replace(',', '.')
        else:
            normalized = cleaned
        try:
            decimal_value = Decimal(normalized)
        except (InvalidOperation, ValueError):
            raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

    if not decimal_value.is_finite():
        raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')
    if decimal_value < 0:
        raise ValueError('O valor não pode ser negativo')

    return decimal_value
