"""OracleStorage: Typed view of oracle state kept in a SharedStore.

All registry and buffer state is persisted through the same byte-keyed
interface used for published values. Internal entries are stored under
keccak-256 derived keys so that they cannot collide with the raw keys that
aggregates are published under:

    ActiveKeys        keccak("Oracle/ActiveKeys")
    ActiveSubmitters  keccak("Oracle/ActiveSubmitters")
    Infos[key]        keccak("Oracle/Infos") + keccak(key)
    Url[key]          keccak("Oracle/Url") + keccak(key)
    DataFeeds[key]    keccak("Oracle/DataFeeds") + keccak(key)

Values are CBOR encoded. An :class:`OracleValue` is encoded as the pair
``[kind, raw]``.
"""

from __future__ import annotations

import logging

import cbor2
from web3 import Web3

from .KeyConfig import KeyConfig
from .OracleValue import NumericKind, OracleValue
from .SharedStore import SharedStore
from .SubmissionBuffer import SubmissionBuffer

logger = logging.getLogger(__name__)

_PREFIX = "Oracle"


def _item_key(item: str) -> bytes:
    return bytes(Web3.keccak(text=f"{_PREFIX}/{item}"))


def _map_key(item: str, key: bytes) -> bytes:
    return _item_key(item) + bytes(Web3.keccak(key))


def feed_key(name: str) -> bytes:
    """Derive a 32-byte storage key for a feed name.

    :param name: Human-readable feed name (e.g. ``"prices/btc/usd"``).
    :returns: keccak256 of the name.

    .. code-block:: python

        >>> len(feed_key("prices/btc/usd"))
        32
    """
    return bytes(Web3.keccak(text=name))


def encode_value(value: OracleValue) -> bytes:
    return cbor2.dumps([int(value.kind), value.raw])


def decode_value(data: bytes) -> OracleValue:
    """Decode an :class:`OracleValue` written by :func:`encode_value`.

    :raises ValueError: If the data is not a valid encoded value.
    """
    try:
        kind, raw = cbor2.loads(data)
        return OracleValue.from_raw(NumericKind(kind), raw)
    except (cbor2.CBORDecodeError, TypeError) as e:
        raise ValueError(f"Invalid encoded oracle value: {e}") from e


def read_feed(store: SharedStore, key: bytes, default: OracleValue | None = None) -> OracleValue:
    """Read the aggregate published under ``key``.

    :param store: Shared store holding published values.
    :param key: Raw key the aggregate is published under.
    :param default: Value returned when nothing was published yet.
    :returns: The published value or ``default`` (``Integer(0)`` if not given).
    """
    data = store.get(key)
    if data is None:
        return default if default is not None else OracleValue()
    return decode_value(data)


class OracleStorage:
    """Accessors for oracle state in a :class:`SharedStore`.

    :ivar store: The underlying store handle.
    """

    ACTIVE_KEYS = _item_key("ActiveKeys")
    ACTIVE_SUBMITTERS = _item_key("ActiveSubmitters")

    def __init__(self, store: SharedStore) -> None:
        self.store = store

    # Registry sets

    def active_keys(self) -> list[bytes]:
        data = self.store.get(self.ACTIVE_KEYS)
        return [bytes(k) for k in cbor2.loads(data)] if data else []

    def set_active_keys(self, keys: list[bytes]) -> None:
        self.store.put(self.ACTIVE_KEYS, cbor2.dumps(keys))

    def active_submitters(self) -> list[str]:
        data = self.store.get(self.ACTIVE_SUBMITTERS)
        return list(cbor2.loads(data)) if data else []

    def set_active_submitters(self, submitters: list[str]) -> None:
        self.store.put(self.ACTIVE_SUBMITTERS, cbor2.dumps(submitters))

    # Per-key configuration

    def config(self, key: bytes) -> KeyConfig | None:
        """Load the config of ``key``.

        A corrupt entry is logged and treated as missing.
        """
        data = self.store.get(_map_key("Infos", key))
        if data is None:
            return None
        try:
            return KeyConfig.from_dict(cbor2.loads(data))
        except (cbor2.CBORDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Corrupt config for key {key!r}: {e}")
            return None

    def put_config(self, key: bytes, config: KeyConfig) -> None:
        self.store.put(_map_key("Infos", key), cbor2.dumps(config.to_dict()))

    def remove_config(self, key: bytes) -> None:
        self.store.remove(_map_key("Infos", key))

    def source(self, key: bytes) -> bytes | None:
        return self.store.get(_map_key("Url", key))

    def put_source(self, key: bytes, source: bytes) -> None:
        self.store.put(_map_key("Url", key), bytes(source))

    def remove_source(self, key: bytes) -> None:
        self.store.remove(_map_key("Url", key))

    # Submission buffers

    def _load_feeds(self, key: bytes) -> dict[str, dict]:
        # {submitter: {"count": int, "slots": [encoded value, ...]}}
        data = self.store.get(_map_key("DataFeeds", key))
        if data is None:
            return {}
        try:
            feeds = cbor2.loads(data)
        except cbor2.CBORDecodeError as e:
            logger.warning(f"Corrupt submission buffers for key {key!r}: {e}")
            return {}
        return feeds if isinstance(feeds, dict) else {}

    def buffer(self, key: bytes, submitter: str) -> SubmissionBuffer | None:
        """Load the buffer of one submitter under ``key``.

        :raises ValueError: If the stored buffer is corrupt.
        """
        entry = self._load_feeds(key).get(submitter)
        if entry is None:
            return None
        try:
            return SubmissionBuffer(
                (decode_value(s) for s in entry["slots"]), count=entry["count"]
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Corrupt buffer for {submitter} under {key!r}: {e}") from e

    def put_buffer(self, key: bytes, submitter: str, buffer: SubmissionBuffer) -> None:
        feeds = self._load_feeds(key)
        feeds[submitter] = {
            "count": buffer.count,
            "slots": [encode_value(v) for v in buffer],
        }
        self.store.put(_map_key("DataFeeds", key), cbor2.dumps(feeds))

    def submitters_with_buffers(self, key: bytes) -> list[str]:
        return list(self._load_feeds(key))

    def drain_buffers(self, key: bytes) -> list[tuple[str, list[OracleValue]]]:
        """Remove every buffer stored under ``key`` and return their histories.

        Only the slots holding real submissions are returned. Entries that
        fail to decode are dropped with a warning so one corrupt entry cannot
        abort a scheduled run.

        :returns: ``(submitter, values)`` pairs in insertion order.
        """
        feeds = self._load_feeds(key)
        self.remove_buffers(key)

        drained: list[tuple[str, list[OracleValue]]] = []
        for submitter, entry in feeds.items():
            try:
                slots = entry["slots"][: entry["count"]]
            except (KeyError, TypeError) as e:
                logger.warning(f"Dropping corrupt buffer from {submitter} under {key!r}: {e}")
                continue
            values: list[OracleValue] = []
            for slot in slots:
                try:
                    values.append(decode_value(slot))
                except ValueError as e:
                    logger.warning(f"Dropping corrupt slot from {submitter} under {key!r}: {e}")
            drained.append((submitter, values))
        return drained

    def remove_buffers(self, key: bytes) -> None:
        self.store.remove(_map_key("DataFeeds", key))

    # Published aggregates

    def publish(self, key: bytes, value: OracleValue) -> None:
        """Write an aggregate under the raw key, replacing any previous value."""
        self.store.put(key, encode_value(value))

    def published(self, key: bytes, default: OracleValue | None = None) -> OracleValue:
        return read_feed(self.store, key, default)
