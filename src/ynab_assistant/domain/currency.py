"""Milliunit conversions.

YNAB stores every amount as an integer number of milliunits. Arithmetic stays in
integers; amounts only become strings here, at the display boundary.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from ynab_assistant.core.errors import ValidationError
from ynab_assistant.models import USD_FORMAT, CurrencyFormat

MILLIUNITS_PER_UNIT = 1000

AmountInput = Union[Decimal, int, float, str]


def milliunits_to_decimal(milliunits: int) -> Decimal:
    return Decimal(milliunits).scaleb(-3)


def format_currency(milliunits: int, currency_format: CurrencyFormat | None = None) -> str:
    """Format milliunits as a currency string, e.g. ``-1234560`` -> ``-$1,234.56``.

    Rounding to the display precision is half away from zero. A value that
    rounds to zero is shown without a sign.
    """
    fmt = currency_format or USD_FORMAT
    digits = max(fmt.decimal_digits, 0)
    quantum = Decimal(1).scaleb(-digits)
    rounded = milliunits_to_decimal(milliunits).quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if rounded < 0 else ""
    integral, _, fraction = f"{abs(rounded):,.{digits}f}".partition(".")
    number = integral.replace(",", fmt.group_separator)
    if fraction:
        number = f"{number}{fmt.decimal_separator}{fraction}"

    if not fmt.display_symbol:
        return f"{sign}{number}"
    if fmt.symbol_first:
        return f"{sign}{fmt.currency_symbol}{number}"
    return f"{sign}{number}{fmt.currency_symbol}"


def to_milliunits(amount: AmountInput) -> int:
    """Convert a major-unit amount to milliunits, rounding half away from zero.

    Floats are converted through their shortest decimal repr so ``12.3445``
    is treated as exactly 12.3445 and rounds to 12345.
    """
    if isinstance(amount, bool) or amount is None:
        raise ValidationError("invalid amount")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("invalid amount") from exc
    if not value.is_finite():
        raise ValidationError("invalid amount")
    return int((value * MILLIUNITS_PER_UNIT).to_integral_value(rounding=ROUND_HALF_UP))
