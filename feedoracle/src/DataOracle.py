"""DataOracle: Entry point tying the registry, intake and aggregation together.

Authorized submitters push values against registered keys with
:meth:`DataOracle.submit`. Each scheduling tick, :meth:`DataOracle.on_tick`
reduces the recent values of every key whose period divides the tick and
writes the result to the shared store.

.. code-block:: python

    >>> oracle = DataOracle(InMemoryStore(), StaticAccessControl(["root"]))
    >>> oracle.register_key("root", b"K", KeyConfig(b"n", NumericKind.INTEGER, AggregationOp.SUM, 5))
    >>> oracle.add_submitter("root", "alice")
    >>> oracle.submit("alice", b"K", OracleValue.integer(3))
    >>> oracle.on_tick(5)
    {b'K': OracleValue(kind=<NumericKind.INTEGER: 0>, value=3)}
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .AccessControl import AccessControl, Action
from .AggregationEngine import AggregationEngine
from .errors import KindMismatchError, NotAllowedError
from .KeyConfig import KeyConfig
from .OracleStorage import OracleStorage
from .OracleValue import OracleValue
from .Registry import Registry
from .SharedStore import SharedStore
from .SubmissionBuffer import SubmissionBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewDataEvent:
    """Notification emitted for every accepted submission."""

    submitter: str
    key: bytes
    value: OracleValue


class DataOracle:
    """Oracle facade over one shared store.

    :ivar storage: Typed view of the shared store.
    :ivar registry: Key and submitter registry.
    :ivar engine: Aggregation engine.
    :ivar access_control: Collaborator deciding who may mutate the registry.
    """

    def __init__(self, store: SharedStore, access_control: AccessControl) -> None:
        """Initialize the oracle.

        :param store: Shared store holding oracle state and published values.
        :param access_control: Permission check for privileged operations.
        """
        self.storage = OracleStorage(store)
        self.registry = Registry(self.storage)
        self.engine = AggregationEngine(self.storage)
        self.access_control = access_control
        self._listeners: list[Callable[[NewDataEvent], None]] = []
        self._lock = threading.RLock()

    def _ensure(self, caller: str, action: Action) -> None:
        if not self.access_control.is_authorized(caller, action):
            logger.warning(f"{caller} is not allowed to {action.value}")
            raise NotAllowedError(f"{caller} is not allowed to {action.value}")

    # Privileged registry operations

    def register_key(self, caller: str, key: bytes, config: KeyConfig) -> None:
        self._ensure(caller, Action.REGISTER_KEY)
        with self._lock:
            self.registry.register_key(key, config)

    def remove_key(self, caller: str, key: bytes) -> None:
        self._ensure(caller, Action.REMOVE_KEY)
        with self._lock:
            self.registry.remove_key(key)

    def set_extraction_source(self, caller: str, key: bytes, source: bytes) -> None:
        self._ensure(caller, Action.SET_SOURCE)
        with self._lock:
            self.registry.set_extraction_source(key, source)

    def add_submitter(self, caller: str, submitter: str) -> None:
        self._ensure(caller, Action.ADD_SUBMITTER)
        with self._lock:
            self.registry.add_submitter(submitter)

    def remove_submitter(self, caller: str, submitter: str) -> None:
        self._ensure(caller, Action.REMOVE_SUBMITTER)
        with self._lock:
            self.registry.remove_submitter(submitter)

    # Intake

    def submit(self, submitter: str, key: bytes, value: OracleValue) -> None:
        """Record a value from ``submitter`` under ``key``.

        Submitter authorization is not checked here; it is applied when the
        key is aggregated.

        :param submitter: Identity of the submitting account.
        :param key: Registered key.
        :param value: Value of the key's configured kind.
        :raises NotAllowedError: If the submitter identity is empty.
        :raises UnknownKeyError: If the key is not active.
        :raises KindMismatchError: If the value kind differs from the key's kind.
        """
        if not submitter:
            raise NotAllowedError("Submissions require a signed caller")

        with self._lock:
            config = self.registry.require_config(key)
            if value.kind is not config.numeric_kind:
                raise KindMismatchError(
                    f"Key {key!r} expects {config.numeric_kind.name}, got {value.kind.name}"
                )

            try:
                buffer = self.storage.buffer(key, submitter)
            except ValueError as e:
                logger.warning(f"Resetting unreadable buffer of {submitter} under {key!r}: {e}")
                buffer = None
            if buffer is None:
                buffer = SubmissionBuffer.first(value)
            else:
                buffer.push(value)
            self.storage.put_buffer(key, submitter, buffer)

        logger.debug(f"Feeding {value} from {submitter} to {key!r}")
        self._emit(NewDataEvent(submitter=submitter, key=key, value=value))

    def subscribe(self, listener: Callable[[NewDataEvent], None]) -> None:
        """Register a callback invoked for every accepted submission.

        Exceptions raised by the callback are logged and never reach the
        submitter.
        """
        self._listeners.append(listener)

    def _emit(self, event: NewDataEvent) -> None:
        # Listener failures are logged; the stored submission stands.
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {event}")

    # Scheduling

    def on_tick(self, tick: int) -> dict[bytes, OracleValue]:
        """Run aggregation for every key scheduled on ``tick``.

        :param tick: Current tick count from the tick source.
        :returns: Mapping of key to newly published value.
        """
        with self._lock:
            return self.engine.on_tick(tick)

    # Reads

    def config(self, key: bytes) -> KeyConfig | None:
        return self.registry.config(key)

    def extraction_source(self, key: bytes) -> bytes | None:
        return self.registry.extraction_source(key)

    def active_keys(self) -> list[bytes]:
        return self.registry.active_keys()

    def active_submitters(self) -> list[str]:
        return self.registry.active_submitters()

    def published(self, key: bytes, default: OracleValue | None = None) -> OracleValue:
        return self.storage.published(key, default)

    def buffer(self, key: bytes, submitter: str) -> SubmissionBuffer | None:
        return self.storage.buffer(key, submitter)
