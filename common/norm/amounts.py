from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

CURRENCY_SYMBOLS = {
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
}

_CENTS = Decimal("0.01")


def normalize_amount(raw: Union[str, float, int, Decimal, None]) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))

    s = raw.strip()
    if not s:
        return None
    if s.count(",") == 1 and "." not in s:
        s = s.replace(" ", "").replace(",", ".")
    else:
        s = s.replace(",", "").replace(" ", "")
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def normalize_currency(curr: Optional[str]) -> Optional[str]:
    if not curr:
        return None
    c = curr.strip().upper()
    return c or None


def format_currency(amount: Union[float, int, Decimal], currency: Optional[str]) -> str:
    """Render ``amount`` with two decimals, prefixed by a symbol for USD, GBP and EUR.

    Any other code is appended after the number, e.g. ``"12.50 CHF"``.
    """
    value = normalize_amount(amount) or Decimal(0)
    text = str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))
    code = normalize_currency(currency)
    if code is None:
        return text
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{text}"
    return f"{text} {code}"
