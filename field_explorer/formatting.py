from __future__ import annotations

import json
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from .paths import key_segments

PLACEHOLDER = '-'
MAX_FRACTION_DIGITS = 20
PERCENT_DECIMALS = 4
CURRENCY_SYMBOL = '$'
LIST_PREVIEW_LIMIT = 5
INLINE_OBJECT_KEYS = 3
PREVIEW_CHARS = 30
# Larger magnitudes are shown as written instead of expanded digit by digit.
MAX_INTEGER_DIGITS = 4300


def to_number(value: Any) -> Optional[Decimal]:
    """Decimal for ints, floats and numeric strings; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        # repr() gives the shortest round-tripping form, so 0.1 stays 0.1.
        return Decimal(repr(value))
    if isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def _round_half_up(number: Decimal, digits: int) -> Decimal:
    if number.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidOperation(f"{number} has too many integer digits to expand")
    with localcontext() as ctx:
        # Enough precision for every integer digit plus the kept fraction.
        ctx.prec = max(28, number.adjusted() + digits + 2)
        return number.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def _group_digits(number: Decimal, min_digits: int, max_digits: int) -> str:
    exponent = number.as_tuple().exponent
    digits = max(0, -exponent) if isinstance(exponent, int) else 0
    digits = min(max(digits, min_digits), max_digits)
    quantized = _round_half_up(number, digits)
    if quantized == 0:
        quantized = abs(quantized)
    text = f"{quantized:,.{digits}f}"
    if digits > min_digits:
        # Rounding can leave trailing zeros past the minimum; drop them.
        whole, _, frac = text.partition('.')
        frac = frac.rstrip('0').ljust(min_digits, '0')
        text = f"{whole}.{frac}" if frac else whole
    return text


def format_number(number: Decimal) -> str:
    return _group_digits(number.normalize() if number != 0 else Decimal(0), 0, MAX_FRACTION_DIGITS)


def format_currency(number: Decimal) -> str:
    text = _group_digits(number, 2, MAX_FRACTION_DIGITS)
    if text.startswith('-'):
        return f"-{CURRENCY_SYMBOL}{text[1:]}"
    return f"{CURRENCY_SYMBOL}{text}"


def format_percentage(number: Decimal) -> str:
    quantized = _round_half_up(number, PERCENT_DECIMALS)
    return f"{quantized:.{PERCENT_DECIMALS}f}%"


def scalar_text(value: Any) -> str:
    """String form of a JSON scalar (true/false/null, no trailing .0)."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


_NUMBER_FORMATTERS = {
    'currency': format_currency,
    'percentage': format_percentage,
    'number': format_number,
}


def format_value(value: Any, fmt: Optional[str] = None) -> str:
    if value is None:
        return PLACEHOLDER

    if isinstance(value, list):
        if not value:
            return '0 items'
        if isinstance(value[0], (dict, list)):
            return f"{len(value)} items (use Table view)"
        preview = ', '.join(scalar_text(v) for v in value[:LIST_PREVIEW_LIMIT])
        return preview + ('...' if len(value) > LIST_PREVIEW_LIMIT else '')

    if isinstance(value, dict):
        if len(value) <= INLINE_OBJECT_KEYS:
            return ', '.join(
                f"{k}: {'[...]' if isinstance(v, (dict, list)) else scalar_text(v)}"
                for k, v in value.items()
            )
        return f"{len(value)} fields"

    number = to_number(value)
    if number is not None and fmt in _NUMBER_FORMATTERS:
        try:
            return _NUMBER_FORMATTERS[fmt](number)
        except InvalidOperation:
            pass
    return scalar_text(value)


def preview_value(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, list):
        return f"[{len(value)} items]"
    if isinstance(value, dict):
        return '{...}'
    text = scalar_text(value)
    return text[:PREVIEW_CHARS] + '...' if len(text) > PREVIEW_CHARS else text


def default_label(path: str) -> str:
    parts = key_segments(path)
    if len(parts) >= 2:
        return f"{parts[-2]} {parts[-1]}"
    if parts:
        return parts[0]
    return path or ''
