"""OracleValue: Exact numeric values stored and aggregated by the oracle.

Two representations are supported, both unsigned and 128 bits wide:

- ``NumericKind.INTEGER``: a plain integer in ``[0, 2**128 - 1]``.
- ``NumericKind.FIXED``: a fixed-point number with 18 fractional digits,
  stored as an inner integer ``n`` meaning ``n / 10**18``.

Arithmetic never wraps. Addition saturates at the maximum and division is
checked, mirroring the reduction rules used by the aggregation engine.

.. code-block:: python

    >>> a = OracleValue.fixed(FixedU128.from_rational(135, 100))
    >>> a.kind
    <NumericKind.FIXED: 1>
    >>> str(a.value)
    '1.35'
    >>> OracleValue()
    OracleValue(kind=<NumericKind.INTEGER: 0>, value=0)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum

# Upper bound shared by both numeric kinds.
U128_MAX = 2**128 - 1

# Number of fractional decimal digits of FixedU128.
FIXED_DECIMALS = 18
FIXED_ONE = 10**FIXED_DECIMALS


class NumericKind(IntEnum):
    """Tag selecting one of the supported exact value representations."""

    INTEGER = 0
    FIXED = 1


class AggregationOp(Enum):
    """Reduction applied to a key's observations on each scheduled run."""

    AVERAGE = "average"
    SUM = "sum"


def saturating_add(a: int, b: int) -> int:
    """Add two unsigned 128-bit integers, clamping at ``U128_MAX``."""
    return min(a + b, U128_MAX)


def checked_div(a: int, b: int) -> int | None:
    """Divide two unsigned integers, returning None when ``b`` is zero."""
    if b == 0:
        return None
    return a // b


@dataclass(frozen=True, order=True)
class FixedU128:
    """Unsigned fixed-point number with 18 fractional digits.

    :ivar inner: Raw scaled integer, ``value * 10**18``.
    """

    inner: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.inner <= U128_MAX:
            raise ValueError(f"FixedU128 inner value out of range: {self.inner}")

    @classmethod
    def from_int(cls, n: int) -> FixedU128:
        """Build a fixed-point value equal to the integer ``n`` (saturating)."""
        return cls(min(max(n, 0) * FIXED_ONE, U128_MAX))

    @classmethod
    def from_rational(cls, numerator: int, denominator: int) -> FixedU128:
        """Build the fixed-point value closest to ``numerator / denominator``.

        The quotient is computed with integer arithmetic only, truncated toward
        zero at the 18th fractional digit and clamped to the representable range.

        :param numerator: Non-negative numerator.
        :param denominator: Positive denominator.
        :returns: The truncated, saturated fixed-point value.
        :raises ValueError: If the denominator is not positive or the
            numerator is negative.

        .. code-block:: python

            >>> FixedU128.from_rational(1, 3).inner
            333333333333333333
        """
        if denominator <= 0:
            raise ValueError("denominator must be positive")
        if numerator < 0:
            raise ValueError("numerator must not be negative")
        return cls(min(numerator * FIXED_ONE // denominator, U128_MAX))

    @classmethod
    def max_value(cls) -> FixedU128:
        return cls(U128_MAX)

    def saturating_add(self, other: FixedU128) -> FixedU128:
        """Add, clamping at the maximum representable value."""
        return FixedU128(saturating_add(self.inner, other.inner))

    def checked_div(self, other: FixedU128) -> FixedU128 | None:
        """Divide, returning None on division by zero or overflow."""
        if other.inner == 0:
            return None
        quotient = self.inner * FIXED_ONE // other.inner
        if quotient > U128_MAX:
            return None
        return FixedU128(quotient)

    def is_zero(self) -> bool:
        return self.inner == 0

    def to_decimal(self) -> Decimal:
        """Render the exact value as a Decimal (no rounding)."""
        return Decimal(self.inner).scaleb(-FIXED_DECIMALS).normalize()

    def __str__(self) -> str:
        return format(self.to_decimal(), "f")


@dataclass(frozen=True, order=True)
class OracleValue:
    """A numeric value tagged with its kind.

    Ordering compares the kind first and the value second, so values of
    different kinds never compare by magnitude. Callers must check
    :attr:`kind` before combining two values.

    :ivar kind: Representation of :attr:`value`.
    :ivar value: ``int`` for INTEGER, :class:`FixedU128` for FIXED.
    """

    kind: NumericKind = NumericKind.INTEGER
    value: int | FixedU128 = field(default=0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", NumericKind(self.kind))
        if self.kind is NumericKind.INTEGER:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise TypeError("INTEGER values must be int")
            if not 0 <= self.value <= U128_MAX:
                raise ValueError(f"INTEGER value out of range: {self.value}")
        elif not isinstance(self.value, FixedU128):
            raise TypeError("FIXED values must be FixedU128")

    @classmethod
    def integer(cls, n: int) -> OracleValue:
        return cls(NumericKind.INTEGER, n)

    @classmethod
    def fixed(cls, n: FixedU128) -> OracleValue:
        return cls(NumericKind.FIXED, n)

    @classmethod
    def zero(cls, kind: NumericKind) -> OracleValue:
        """Return the zero value of the given kind."""
        if kind is NumericKind.INTEGER:
            return cls.integer(0)
        return cls.fixed(FixedU128())

    @property
    def raw(self) -> int:
        """Raw integer payload (the scaled inner value for FIXED)."""
        if isinstance(self.value, FixedU128):
            return self.value.inner
        return self.value

    @classmethod
    def from_raw(cls, kind: NumericKind, raw: int) -> OracleValue:
        """Inverse of :attr:`raw`."""
        if kind is NumericKind.INTEGER:
            return cls.integer(raw)
        return cls.fixed(FixedU128(raw))

    def __str__(self) -> str:
        if self.kind is NumericKind.INTEGER:
            return f"Integer({self.value})"
        return f"Fixed({self.value})"
