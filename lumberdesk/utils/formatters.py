"""
Formatting helpers for documents and messages.
Numbers, money and dates in Brazilian style.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional


def _group_thousands(integer_part: str) -> str:
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def num_br(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number Brazilian style: dot for thousands, comma for decimals.
    Trailing decimal zeros are dropped.

    Examples:
        num_br(1500) -> "1.500"
        num_br(1500.5) -> "1.500,5"
        num_br(2.000) -> "2"
        num_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        if isinstance(value, str):
            value = value.replace(",", ".")
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    num_str = f"{num:f}"
    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ""

    sign = ''
    if integer_part.startswith('-'):
        sign = '-'
        integer_part = integer_part[1:]

    integer_formatted = _group_thousands(integer_part)
    if decimal_part:
        return f"{sign}{integer_formatted},{decimal_part}"
    return f"{sign}{integer_formatted}"


def money_br(value: Union[int, float, Decimal, str, None], symbol: bool = True) -> str:
    """
    Format a monetary amount with exactly 2 decimals: "R$ 1.500,00".

    Returns "-" for invalid input.
    """
    if value is None or value == "":
        return "-"

    try:
        normalized = str(value).replace(",", ".")
        num = Decimal(normalized).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    integer_part, decimal_part = f"{num:.2f}".split(".")
    formatted = f"{sign}{_group_thousands(integer_part)},{decimal_part}"
    return f"R$ {formatted}" if symbol else formatted


def date_br(value: Union[date, datetime, None]) -> str:
    """
    Format a date as DD/MM/YYYY.

    Examples:
        date_br(date(2026, 1, 12)) -> "12/01/2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d/%m/%Y")


def datetime_br(value: Union[datetime, None], with_time: bool = True) -> str:
    """Format a datetime as DD/MM/YYYY HH:MM (or only the date)."""
    if value is None or not isinstance(value, datetime):
        return "-"

    if with_time:
        return value.strftime("%d/%m/%Y %H:%M")
    return value.strftime("%d/%m/%Y")
