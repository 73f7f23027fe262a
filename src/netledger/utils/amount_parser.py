"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999.99")


def quantize(amount: Decimal) -> Decimal:
    """Round an amount to cents using half-up rounding."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a cent-quantized Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount rounded to cents

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥₹]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return quantize(amount)


def parse_transfer_amount(amount_str: str, max_amount: Decimal = MAX_AMOUNT) -> Decimal:
    """Parse an amount that moves money between accounts.

    Transfer amounts must satisfy ``0 < amount <= max_amount``; the direction
    of the movement is carried by the from/to accounts, never by the sign.

    Raises:
        ValueError: If the amount is unparseable or out of range
    """
    amount = parse_amount(amount_str)
    check_transfer_amount(amount, max_amount)
    return amount


def check_transfer_amount(amount: Decimal, max_amount: Decimal = MAX_AMOUNT) -> None:
    """Raise ValueError unless ``0 < amount <= max_amount``."""
    if amount <= 0:
        raise ValueError("Amount must be greater than zero")
    if amount > max_amount:
        raise ValueError(f"Amount must not exceed {max_amount}")
