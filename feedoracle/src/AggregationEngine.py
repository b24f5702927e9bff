"""AggregationEngine: Scheduled reduction of submitted values.

Algorithm, per key on tick ``t``:
    1. Fire only if ``t`` is a multiple of the key's period
    2. Drain every submitter buffer stored under the key
    3. Keep values from submitters that are authorized right now
    4. Keep values whose kind matches the key's configured kind
    5. Reduce with the configured operation (saturating sum or average)
    6. Publish the result under the raw key

Bad entries are dropped rather than raised, so one corrupt submission can
never abort a scheduled run. No I/O happens here besides the store handle,
and the result depends only on buffer contents and the submitter set.

.. code-block:: python

    >>> values = [OracleValue.integer(3), OracleValue.integer(7)]
    >>> reduce_values(values, NumericKind.INTEGER, AggregationOp.SUM)
    OracleValue(kind=<NumericKind.INTEGER: 0>, value=10)
    >>> reduce_values([], NumericKind.INTEGER, AggregationOp.AVERAGE)
    OracleValue(kind=<NumericKind.INTEGER: 0>, value=0)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .KeyConfig import KeyConfig
from .OracleStorage import OracleStorage
from .OracleValue import (
    AggregationOp,
    FixedU128,
    NumericKind,
    OracleValue,
    checked_div,
    saturating_add,
)

logger = logging.getLogger(__name__)


def _reduce_integers(numbers: list[int], op: AggregationOp) -> int:
    total = 0
    for n in numbers:
        total = saturating_add(total, n)
    if op is AggregationOp.SUM:
        return total
    if not numbers:
        return 0
    quotient = checked_div(total, len(numbers))
    return quotient if quotient is not None else 0


def _reduce_fixed(numbers: list[FixedU128], op: AggregationOp) -> FixedU128:
    total = FixedU128()
    for n in numbers:
        total = total.saturating_add(n)
    if op is AggregationOp.SUM:
        return total
    if not numbers:
        return FixedU128()
    quotient = total.checked_div(FixedU128.from_int(len(numbers)))
    return quotient if quotient is not None else FixedU128()


def reduce_values(
    values: Iterable[OracleValue], kind: NumericKind, op: AggregationOp
) -> OracleValue:
    """Reduce values of ``kind`` with ``op``; values of other kinds are ignored.

    :param values: Values to reduce, in any order.
    :param kind: Kind of the result; mismatched values are dropped.
    :param op: SUM or AVERAGE.
    :returns: The reduced value, or the kind's zero if nothing matched.
    """
    matching = [v for v in values if v.kind is kind]
    if kind is NumericKind.INTEGER:
        return OracleValue.integer(_reduce_integers([v.value for v in matching], op))
    return OracleValue.fixed(_reduce_fixed([v.value for v in matching], op))


class AggregationEngine:
    """Runs the drain, filter, reduce and publish sequence for registered keys.

    :ivar storage: Storage handle holding buffers and receiving results.
    """

    def __init__(self, storage: OracleStorage) -> None:
        self.storage = storage

    def collect(self, key: bytes) -> list[OracleValue]:
        """Drain every buffer under ``key``, keeping authorized submitters only.

        All buffers under the key are removed, counted or not.
        """
        authorized = set(self.storage.active_submitters())
        collected: list[OracleValue] = []
        for submitter, values in self.storage.drain_buffers(key):
            if submitter in authorized:
                collected.extend(values)
            else:
                logger.debug(f"Discarding {len(values)} values from unauthorized {submitter} under {key!r}")
        return collected

    def aggregate(self, key: bytes, config: KeyConfig) -> OracleValue:
        """Drain, reduce and publish ``key`` unconditionally.

        :returns: The published value.
        """
        values = self.collect(key)
        result = reduce_values(values, config.numeric_kind, config.operation)
        dropped = sum(1 for v in values if v.kind is not config.numeric_kind)
        if dropped:
            logger.warning(f"Dropped {dropped} values of the wrong kind under {key!r}")

        self.storage.publish(key, result)
        logger.info(
            f"{key!r}: published {result} ({config.operation.name.lower()} of "
            f"{len(values) - dropped} values)"
        )
        return result

    def on_tick(self, tick: int) -> dict[bytes, OracleValue]:
        """Aggregate every active key whose schedule fires on ``tick``.

        Keys are processed in registration order. Keys with a missing or
        unusable config are skipped.

        :param tick: Current tick count.
        :returns: Mapping of key to published value for the keys that fired.
        """
        published: dict[bytes, OracleValue] = {}
        for key in self.storage.active_keys():
            config = self.storage.config(key)
            if config is None:
                logger.warning(f"Skipping {key!r}: no config")
                continue
            if config.period <= 0:
                logger.warning(f"Skipping {key!r}: invalid period {config.period}")
                continue
            if config.should_aggregate(tick):
                published[key] = self.aggregate(key, config)
        return published
