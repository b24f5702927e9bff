"""SharedStore: Abstract base class for the shared key-value store."""

from abc import ABC, abstractmethod


class SharedStore(ABC):
    """Byte-keyed storage that holds oracle state and published values.

    The oracle reads its registry from the store and writes each aggregate
    under the raw registered key.
    """

    @abstractmethod
    def get(self, key: bytes) -> bytes | None:
        """Read a value.

        :param key: Raw storage key.
        :returns: Stored bytes, or None if absent.
        """
        pass

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Write a value, replacing any previous one.

        :param key: Raw storage key.
        :param value: Bytes to store.
        """
        pass

    @abstractmethod
    def remove(self, key: bytes) -> None:
        """Delete a value. Removing an absent key is a no-op.

        :param key: Raw storage key.
        """
        pass


class InMemoryStore(SharedStore):
    """Dict-backed store for tests and single-process runs.

    :ivar data: Underlying mapping of raw key to bytes.
    """

    def __init__(self, data: dict[bytes, bytes] | None = None) -> None:
        self.data: dict[bytes, bytes] = dict(data or {})

    def get(self, key: bytes) -> bytes | None:
        return self.data.get(bytes(key))

    def put(self, key: bytes, value: bytes) -> None:
        self.data[bytes(key)] = bytes(value)

    def remove(self, key: bytes) -> None:
        self.data.pop(bytes(key), None)

    def __contains__(self, key: bytes) -> bool:
        return bytes(key) in self.data

    def __len__(self) -> int:
        return len(self.data)
