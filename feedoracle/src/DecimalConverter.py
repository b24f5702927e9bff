"""DecimalConverter: Exact conversion of decimal literals to oracle values.

External feeds deliver numbers as decimal text. The JSON extractor splits
each number into integer, fraction and exponent parts; this module turns
those parts into an :class:`OracleValue` using integer arithmetic only, so
``"0.1"`` becomes exactly ``0.100000000000000000`` and never ``0.1000000000000000055``.

.. code-block:: python

    >>> literal = DecimalLiteral(integer=1, fraction=35, fraction_digits=2, exponent=3)
    >>> str(convert(literal, NumericKind.FIXED).value)
    '1350'
    >>> convert(literal, NumericKind.INTEGER)
    OracleValue(kind=<NumericKind.INTEGER: 0>, value=1)
"""

from __future__ import annotations

from dataclasses import dataclass

from .OracleValue import FIXED_DECIMALS, U128_MAX, FixedU128, NumericKind, OracleValue

# Exponents beyond this bound are clamped before computing powers of ten;
# they only ever produce the saturated maximum or zero.
_MAX_DECIMAL_SHIFT = 80


@dataclass(frozen=True)
class DecimalLiteral:
    """A decimal number split into its textual components.

    Represents ``(integer + fraction / 10**fraction_digits) * 10**exponent``.

    :ivar integer: Signed integer part.
    :ivar fraction: Digits after the decimal point, as an integer.
    :ivar fraction_digits: Number of digits in the fraction (keeps leading zeros).
    :ivar exponent: Power-of-ten exponent.
    :ivar negative: Sign of the literal. Needed because ``-0.5`` has an
        integer part of zero.
    """

    integer: int
    fraction: int = 0
    fraction_digits: int = 0
    exponent: int = 0
    negative: bool = False

    @property
    def is_negative(self) -> bool:
        return self.negative or self.integer < 0


def convert(literal: DecimalLiteral, target_kind: NumericKind) -> OracleValue | None:
    """Convert a decimal literal to an oracle value of the requested kind.

    Negative literals are rejected for every kind. INTEGER targets keep only
    the integer part. FIXED targets are built from the exact rational value
    of the literal and truncated at 18 fractional digits. Both saturate at
    the 128-bit maximum instead of wrapping.

    :param literal: Decimal components produced by the JSON extractor.
    :param target_kind: Kind configured for the destination key.
    :returns: The converted value, or None if the literal is negative or
        malformed.
    """
    if literal.is_negative or literal.fraction < 0 or literal.fraction_digits < 0:
        return None

    if target_kind is NumericKind.INTEGER:
        return OracleValue.integer(min(literal.integer, U128_MAX))

    if target_kind is NumericKind.FIXED:
        return OracleValue.fixed(_to_fixed(literal))

    return None


def _to_fixed(literal: DecimalLiteral) -> FixedU128:
    mantissa = literal.integer * 10**literal.fraction_digits + literal.fraction
    decimal_point = literal.exponent - literal.fraction_digits

    if mantissa == 0:
        return FixedU128()

    if decimal_point >= 0:
        # e.g. 1.35e3: (1 * 10^2 + 35) * 10^(3 - 2) / 1
        if decimal_point > _MAX_DECIMAL_SHIFT:
            return FixedU128.max_value()
        return FixedU128.from_rational(mantissa * 10**decimal_point, 1)

    # e.g. 1.35e-2: (1 * 10^2 + 35) / 10^(2 + 2)
    shift = -decimal_point
    # mantissa < 10**bit_length, so the quotient truncates to zero
    if shift - FIXED_DECIMALS > mantissa.bit_length():
        return FixedU128()
    return FixedU128.from_rational(mantissa, 10**shift)
