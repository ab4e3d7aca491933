"""
Spell out invoice totals the way Indian tax invoices print them.

Uses the Indian grouping (Hundred, Thousand, Lakh, Crore). Million and
Billion never appear: 1,00,00,000 is "One Crore".
"""

from decimal import Decimal
from typing import Union

_UNITS = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
_TEENS = [
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen",
    "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen",
]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

# (divisor, scale word), largest first
_SCALES = [
    (10_000_000, "Crore"),
    (100_000, "Lakh"),
    (1_000, "Thousand"),
    (100, "Hundred"),
]


def _spell(number: int) -> str:
    if number == 0:
        return ""
    if number < 10:
        return _UNITS[number]
    if number < 20:
        return _TEENS[number - 10]
    if number < 100:
        tens, units = divmod(number, 10)
        return _TENS[tens] + (" " + _UNITS[units] if units else "")

    for divisor, scale in _SCALES:
        if number >= divisor:
            head, rest = divmod(number, divisor)
            words = f"{_spell(head)} {scale}"
            return words + (" " + _spell(rest) if rest else "")

    raise AssertionError("unreachable")  # pragma: no cover


def amount_in_words(amount: Union[int, Decimal, float]) -> str:
    """
    Spell out a whole-rupee amount.

    Fractions are dropped (callers pass the already-rounded total).

        >>> amount_in_words(0)
        'Zero'
        >>> amount_in_words(123456)
        'One Lakh Twenty Three Thousand Four Hundred Fifty Six Only'
    """
    number = int(amount)
    if number < 0:
        raise ValueError(f"Cannot spell a negative amount: {amount}")
    if number == 0:
        return "Zero"
    return _spell(number) + " Only"
