"""SubmissionBuffer: Fixed-capacity history of one submitter's values for one key.

Slot 0 always holds the newest value. Every push shifts the previous
contents one slot toward the end and drops whatever falls past the last
slot. The first push fills every slot with the submitted value, so a buffer
always holds exactly :data:`RING_BUF_LEN` slots.

Filler slots are not observations. The buffer tracks how many slots hold
real submissions (:attr:`SubmissionBuffer.count`) and :meth:`history` only
returns those, so one submission counts once during aggregation.

.. code-block:: python

    >>> buf = SubmissionBuffer.first(OracleValue.integer(1))
    >>> buf.push(OracleValue.integer(2))
    >>> [v.value for v in buf]
    [2, 1, 1, 1, 1, 1, 1, 1]
    >>> [v.value for v in buf.history()]
    [2, 1]
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

from .OracleValue import OracleValue

RING_BUF_LEN = 8


class SubmissionBuffer:
    """Most-recent-first ring buffer of :class:`OracleValue` entries.

    :ivar capacity: Number of slots (always :data:`RING_BUF_LEN` in production).
    :ivar count: Number of leading slots holding real submissions.
    """

    def __init__(
        self,
        values: Iterable[OracleValue],
        count: int | None = None,
        capacity: int = RING_BUF_LEN,
    ) -> None:
        """Restore a buffer from its slots.

        :param values: Slot contents, newest first.
        :param count: Number of real submissions (defaults to every slot).
        :param capacity: Number of slots.
        :raises ValueError: If the number of values does not match the
            capacity or the count is out of range.
        """
        values = list(values)
        if len(values) != capacity:
            raise ValueError(
                f"SubmissionBuffer needs exactly {capacity} slots, got {len(values)}"
            )
        if count is None:
            count = capacity
        if not 1 <= count <= capacity:
            raise ValueError(f"SubmissionBuffer count must be in [1, {capacity}], got {count}")

        self.capacity = capacity
        self.count = count
        self._slots: deque[OracleValue] = deque(values, maxlen=capacity)

    @classmethod
    def first(cls, value: OracleValue, capacity: int = RING_BUF_LEN) -> SubmissionBuffer:
        """Allocate a buffer for a first submission, every slot set to ``value``."""
        return cls([value] * capacity, count=1, capacity=capacity)

    def push(self, value: OracleValue) -> None:
        """Insert ``value`` at slot 0, evicting the oldest slot."""
        self._slots.appendleft(value)
        self.count = min(self.count + 1, self.capacity)

    def values(self) -> list[OracleValue]:
        """Return every slot, newest first, filler included."""
        return list(self._slots)

    def history(self) -> list[OracleValue]:
        """Return the real submissions, newest first."""
        return self.values()[: self.count]

    def __iter__(self) -> Iterator[OracleValue]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> OracleValue:
        return self._slots[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubmissionBuffer):
            return NotImplemented
        return self.count == other.count and self.values() == other.values()

    def __repr__(self) -> str:
        return f"SubmissionBuffer({self.values()!r}, count={self.count})"
