"""
venue/utils/numbers.py
──────────────────────
Lenient numeric coercion shared by the API validators and the legacy
importer. Malformed input becomes 0 instead of an error.
"""
import re
from decimal import Decimal, InvalidOperation

_LEADING_INT = re.compile(r'^\s*(-?\d+)')


def parse_currency(value) -> Decimal:
    """
    Rupiah-formatted text → Decimal.

    '.' is the thousands separator and ',' the decimal separator:
    ``'Rp 1.500.000,50'`` → ``Decimal('1500000.50')``. Empty or
    unparseable input gives ``Decimal('0')``.
    """
    if not isinstance(value, str) or not value.strip():
        return Decimal('0')
    cleaned = re.sub(r'[^0-9,]', '', value)
    whole, _, frac = cleaned.partition(',')
    frac = frac.replace(',', '')
    if not whole and not frac:
        return Decimal('0')
    return Decimal(f"{whole or '0'}.{frac or '0'}")


def to_decimal(value) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal('0')
    if isinstance(value, (int, float, Decimal)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return Decimal('0')
        return result if result.is_finite() else Decimal('0')
    text = str(value).strip()
    if not text:
        return Decimal('0')
    try:
        result = Decimal(text)
        if result.is_finite():
            return result
    except InvalidOperation:
        pass
    return parse_currency(text)


def to_int(value) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError, InvalidOperation):
            return 0
    # parseInt-style: '120 orang' → 120
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0
