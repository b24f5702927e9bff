"""KeyConfig: Per-key extraction and aggregation settings.

.. code-block:: python

    >>> config = KeyConfig(b"price", NumericKind.FIXED, AggregationOp.AVERAGE, 10)
    >>> config.should_aggregate(20)
    True
    >>> config.should_aggregate(25)
    False
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .OracleValue import AggregationOp, NumericKind


@dataclass(frozen=True)
class KeyConfig:
    """How submissions under one key are interpreted and reduced.

    :ivar extraction_path: Name of the JSON member holding the number.
    :ivar numeric_kind: Kind every submission must carry.
    :ivar operation: Reduction applied on each scheduled run.
    :ivar period: Aggregation runs on ticks that are multiples of this.
    """

    extraction_path: bytes
    numeric_kind: NumericKind
    operation: AggregationOp
    period: int

    @property
    def path(self) -> str:
        """Extraction path as text.

        :raises UnicodeDecodeError: If the stored path is not valid UTF-8.
        """
        return self.extraction_path.decode("utf-8")

    def should_aggregate(self, tick: int) -> bool:
        """Check whether aggregation fires on ``tick``.

        Non-positive periods never fire; registration rejects them.
        """
        if self.period <= 0:
            return False
        return tick % self.period == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "extraction_path": self.extraction_path,
            "numeric_kind": int(self.numeric_kind),
            "operation": self.operation.value,
            "period": self.period,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KeyConfig:
        """Rebuild a config from :meth:`to_dict` output.

        :raises KeyError: If a field is missing.
        :raises ValueError: If the kind or operation is unknown.
        """
        return cls(
            extraction_path=bytes(data["extraction_path"]),
            numeric_kind=NumericKind(data["numeric_kind"]),
            operation=AggregationOp(data["operation"]),
            period=int(data["period"]),
        )
