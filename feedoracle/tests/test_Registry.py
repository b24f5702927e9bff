"""Unit tests for Registry and OracleStorage."""

import cbor2
import pytest

from feedoracle.src.errors import DuplicateKeyError, InvalidPeriodError, UnknownKeyError
from feedoracle.src.KeyConfig import KeyConfig
from feedoracle.src.OracleStorage import (
    OracleStorage,
    decode_value,
    encode_value,
    feed_key,
    read_feed,
)
from feedoracle.src.OracleValue import AggregationOp, FixedU128, NumericKind, OracleValue
from feedoracle.src.Registry import Registry
from feedoracle.src.SharedStore import InMemoryStore
from feedoracle.src.SubmissionBuffer import SubmissionBuffer


def _config(period: int = 5, kind: NumericKind = NumericKind.INTEGER) -> KeyConfig:
    return KeyConfig(b"price", kind, AggregationOp.SUM, period)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def registry(store: InMemoryStore) -> Registry:
    return Registry(OracleStorage(store))


class TestRegisterKey:
    """Test key registration."""

    def test_register(self, registry: Registry) -> None:
        """A registered key is active and has its config."""
        registry.register_key(b"K", _config())
        assert registry.active_keys() == [b"K"]
        assert registry.is_active_key(b"K")
        assert registry.config(b"K") == _config()

    def test_duplicate_key(self, registry: Registry) -> None:
        """Registering an active key again fails and keeps the old config."""
        registry.register_key(b"K", _config(period=5))
        with pytest.raises(DuplicateKeyError, match="already registered"):
            registry.register_key(b"K", _config(period=9))
        assert registry.config(b"K").period == 5
        assert registry.active_keys() == [b"K"]

    @pytest.mark.parametrize("period", [0, -3])
    def test_invalid_period(self, registry: Registry, period: int) -> None:
        """Non-positive periods are rejected and nothing is stored."""
        with pytest.raises(InvalidPeriodError, match="must be positive"):
            registry.register_key(b"K", _config(period=period))
        assert registry.active_keys() == []
        assert registry.config(b"K") is None

    def test_registration_order_kept(self, registry: Registry) -> None:
        """Keys are listed in registration order."""
        for key in (b"c", b"a", b"b"):
            registry.register_key(key, _config())
        assert registry.active_keys() == [b"c", b"a", b"b"]

    def test_reregister_after_remove(self, registry: Registry) -> None:
        """Removal frees the key for a new config."""
        registry.register_key(b"K", _config(period=5))
        registry.remove_key(b"K")
        registry.register_key(b"K", _config(period=7))
        assert registry.config(b"K").period == 7


class TestRemoveKey:
    """Test key removal."""

    def test_remove_clears_everything(self, registry: Registry) -> None:
        """Config, source and buffers go away with the key."""
        storage = registry.storage
        registry.register_key(b"K", _config())
        registry.set_extraction_source(b"K", b"https://example.com")
        storage.put_buffer(b"K", "alice", SubmissionBuffer.first(OracleValue.integer(1)))

        registry.remove_key(b"K")

        assert registry.active_keys() == []
        assert registry.config(b"K") is None
        assert registry.extraction_source(b"K") is None
        assert storage.buffer(b"K", "alice") is None

    def test_remove_unknown_key_is_noop(self, registry: Registry) -> None:
        """Removing an absent key does not raise."""
        registry.register_key(b"A", _config())
        registry.remove_key(b"missing")
        assert registry.active_keys() == [b"A"]

    def test_remove_keeps_other_keys_buffers(self, registry: Registry) -> None:
        """Only buffers under the removed key are discarded."""
        storage = registry.storage
        registry.register_key(b"A", _config())
        registry.register_key(b"B", _config())
        storage.put_buffer(b"B", "alice", SubmissionBuffer.first(OracleValue.integer(1)))
        registry.remove_key(b"A")
        assert storage.buffer(b"B", "alice") is not None


class TestSubmitters:
    """Test the authorized submitter set."""

    def test_add_is_idempotent(self, registry: Registry) -> None:
        """Adding twice keeps one entry."""
        registry.add_submitter("alice")
        registry.add_submitter("alice")
        assert registry.active_submitters() == ["alice"]

    def test_remove_is_idempotent(self, registry: Registry) -> None:
        """Removing an absent submitter does not raise."""
        registry.add_submitter("alice")
        registry.remove_submitter("bob")
        registry.remove_submitter("alice")
        registry.remove_submitter("alice")
        assert registry.active_submitters() == []
        assert not registry.is_active_submitter("alice")


class TestRequireConfig:
    """Test config lookup for intake."""

    def test_inactive_key(self, registry: Registry) -> None:
        """Unknown keys raise UnknownKeyError."""
        with pytest.raises(UnknownKeyError):
            registry.require_config(b"nope")

    def test_active_key_without_config(self, registry: Registry) -> None:
        """An active key whose config is missing also raises UnknownKeyError."""
        registry.register_key(b"K", _config())
        registry.storage.remove_config(b"K")
        with pytest.raises(UnknownKeyError):
            registry.require_config(b"K")


class TestOracleStorage:
    """Test encoding and storage layout."""

    def test_value_encoding(self) -> None:
        """Values survive CBOR encoding for both kinds."""
        for value in (OracleValue.integer(2**100), OracleValue.fixed(FixedU128(12345))):
            assert decode_value(encode_value(value)) == value

    def test_decode_rejects_garbage(self) -> None:
        """Invalid encodings raise ValueError."""
        with pytest.raises(ValueError):
            decode_value(cbor2.dumps([7, 1]))
        with pytest.raises(ValueError):
            decode_value(cbor2.dumps([0, -1]))

    def test_internal_keys_are_namespaced(self, store: InMemoryStore, registry: Registry) -> None:
        """State never lands under the raw registered key."""
        registry.register_key(b"K", _config())
        assert b"K" not in store
        assert all(len(k) in (32, 64) for k in store.data)

    def test_corrupt_config_reads_as_missing(self, store: InMemoryStore, registry: Registry) -> None:
        """A config that fails to decode is treated as absent."""
        registry.register_key(b"K", _config())
        config_keys = [k for k in store.data if len(k) == 64]
        store.put(config_keys[0], b"\xff\xff")
        assert registry.config(b"K") is None

    def test_drain_returns_history_only(self, registry: Registry) -> None:
        """Draining yields real submissions and removes the buffers."""
        storage = registry.storage
        buf = SubmissionBuffer.first(OracleValue.integer(1))
        buf.push(OracleValue.integer(2))
        storage.put_buffer(b"K", "alice", buf)

        drained = storage.drain_buffers(b"K")

        assert drained == [("alice", [OracleValue.integer(2), OracleValue.integer(1)])]
        assert storage.drain_buffers(b"K") == []

    def test_read_feed_default(self, store: InMemoryStore) -> None:
        """Unpublished keys read as the default."""
        assert read_feed(store, b"K") == OracleValue.integer(0)
        fallback = OracleValue.fixed(FixedU128.from_int(1))
        assert read_feed(store, b"K", fallback) == fallback

    def test_read_feed_published(self, store: InMemoryStore) -> None:
        """Published values are read back from the raw key."""
        OracleStorage(store).publish(b"K", OracleValue.integer(9))
        assert read_feed(store, b"K") == OracleValue.integer(9)

    def test_feed_key(self) -> None:
        """Feed keys are 32-byte keccak digests."""
        key = feed_key("prices/btc/usd")
        assert len(key) == 32
        assert key == feed_key("prices/btc/usd")
        assert key != feed_key("prices/eth/usd")
