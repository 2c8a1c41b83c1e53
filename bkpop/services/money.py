"""
Money Utilities - integer price handling.

All cart prices are whole KRW amounts, so everything here works on ``int``.
"""
import re
from typing import Union

_NON_DIGITS = re.compile(r"[^0-9]")

CURRENCY_SUFFIX = "원"


def parse_price(display: Union[str, int, None]) -> int:
    """
    Parse a display price into an integer amount.

    Every non-digit character is stripped first, so currency symbols and
    thousands separators are ignored. Nothing left means ``0``.

    Args:
        display: Display price such as ``"12,000원"`` (an int is returned as is)

    Returns:
        Integer price, ``0`` when the string holds no digits
    """
    if display is None:
        return 0
    if isinstance(display, bool):
        return 0
    if isinstance(display, int):
        return display
    digits = _NON_DIGITS.sub("", str(display))
    return int(digits) if digits else 0


def format_price(amount: int) -> str:
    """Render an integer price as ``"12,000원"``."""
    return f"{int(amount):,}{CURRENCY_SUFFIX}"


def line_total(unit_price: int, quantity: int) -> int:
    """Total for ``quantity`` units."""
    return int(unit_price) * int(quantity)
