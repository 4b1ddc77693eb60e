"""Money parsing and rounding helpers. All amounts are Decimal, never float."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")

CURRENCY_PREFIX = "R$"


def parse_decimal(value: str | int | float | Decimal | None) -> Decimal:
    """
    Parse user input into a Decimal.

    Accepts Brazilian formatting ("1.234,56", "150,00") as well as plain
    dot-decimal strings ("1234.56"). Blank input parses to zero, the same
    way the counter forms treat an empty field.

    Raises:
        ValueError: the text is not a number
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # repr keeps 0.1 as "0.1" instead of the binary expansion
        return Decimal(repr(value))

    text = value.strip()
    if text.startswith(CURRENCY_PREFIX):
        text = text[len(CURRENCY_PREFIX):].lstrip()
    if not text:
        return Decimal("0")

    if "," in text:
        # Comma is the decimal separator, dots are thousands separators
        text = text.replace(".", "").replace(",", ".")

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Not a decimal amount: {value!r}")
    return amount


def round_cents(amount: Decimal) -> Decimal:
    """Quantize to cents, half-up"""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_brl(amount: Decimal) -> str:
    """Render an amount for customer-facing text, e.g. R$ 150.00"""
    return f"R$ {round_cents(amount):.2f}"
