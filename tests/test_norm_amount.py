import pytest
from decimal import Decimal

from common.norm.amounts import format_currency, normalize_amount, normalize_currency


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("59.99", Decimal("59.99")),
        ("1,234.56", Decimal("1234.56")),
        ("1 234,56", Decimal("1234.56")),
        ("  99,00 ", Decimal("99.00")),
        (12.5, Decimal("12.5")),
        (Decimal("3.10"), Decimal("3.10")),
        ("bad", None),
        ("NaN", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_amount(raw, expected):
    assert normalize_amount(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("usd", "USD"),
        (" gbp ", "GBP"),
        (None, None),
        ("", None),
        ("UNK", "UNK"),
    ],
)
def test_normalize_currency(raw, expected):
    assert normalize_currency(raw) == expected


@pytest.mark.parametrize(
    "amount,currency,expected",
    [
        (12.5, "USD", "$12.50"),
        (12.5, "GBP", "£12.50"),
        (12.5, "EUR", "€12.50"),
        (12.5, "XYZ", "12.50 XYZ"),
        (12.5, "usd", "$12.50"),
        (Decimal("0.005"), "USD", "$0.01"),
        (1000, "GBP", "£1000.00"),
        (7, None, "7.00"),
    ],
)
def test_format_currency(amount, currency, expected):
    assert format_currency(amount, currency) == expected
