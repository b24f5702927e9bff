"""Registry: Active keys, their configuration and the authorized submitters.

Callers are expected to have passed the access-control check before any of
the mutating methods run. Each mutation touches its entities in a single
step, so a failed call leaves the store unchanged.

.. code-block:: python

    >>> registry = Registry(OracleStorage(InMemoryStore()))
    >>> registry.register_key(b"btc", KeyConfig(b"price", NumericKind.FIXED, AggregationOp.AVERAGE, 5))
    >>> registry.active_keys()
    [b'btc']
"""

from __future__ import annotations

import logging

from .errors import DuplicateKeyError, InvalidPeriodError, UnknownKeyError
from .KeyConfig import KeyConfig
from .OracleStorage import OracleStorage

logger = logging.getLogger(__name__)


class Registry:
    """Key and submitter registry backed by :class:`OracleStorage`.

    :ivar storage: Storage handle all state is read from and written to.
    """

    def __init__(self, storage: OracleStorage) -> None:
        self.storage = storage

    def register_key(self, key: bytes, config: KeyConfig) -> None:
        """Activate ``key`` with ``config``.

        :param key: Raw storage key the aggregate will be published under.
        :param config: Extraction and aggregation settings.
        :raises InvalidPeriodError: If ``config.period`` is not a positive integer.
        :raises DuplicateKeyError: If the key is already active.
        """
        if isinstance(config.period, bool) or not isinstance(config.period, int) or config.period <= 0:
            raise InvalidPeriodError(f"Aggregation period must be positive, got {config.period!r}")

        keys = self.storage.active_keys()
        if key in keys:
            raise DuplicateKeyError(f"Key {key!r} is already registered")

        keys.append(key)
        self.storage.put_config(key, config)
        self.storage.set_active_keys(keys)
        logger.info(
            f"Registered key {key!r} (path={config.extraction_path!r}, "
            f"kind={config.numeric_kind.name}, op={config.operation.name}, period={config.period})"
        )

    def remove_key(self, key: bytes) -> None:
        """Deactivate ``key`` and discard its config, source and buffers.

        Removing an unknown key is a no-op.
        """
        keys = self.storage.active_keys()
        if key in keys:
            keys.remove(key)
            self.storage.set_active_keys(keys)
        self.storage.remove_config(key)
        self.storage.remove_source(key)
        self.storage.remove_buffers(key)
        logger.info(f"Removed key {key!r}")

    def set_extraction_source(self, key: bytes, source: bytes) -> None:
        """Associate an opaque fetch source (e.g. a URL) with ``key``.

        The source is stored as given and only read by the fetch worker.
        """
        self.storage.put_source(key, source)
        logger.debug(f"Set source for {key!r}: {source!r}")

    def add_submitter(self, submitter: str) -> None:
        submitters = self.storage.active_submitters()
        if submitter not in submitters:
            submitters.append(submitter)
            self.storage.set_active_submitters(submitters)
            logger.info(f"Added submitter {submitter}")

    def remove_submitter(self, submitter: str) -> None:
        submitters = self.storage.active_submitters()
        if submitter in submitters:
            submitters.remove(submitter)
            self.storage.set_active_submitters(submitters)
            logger.info(f"Removed submitter {submitter}")

    def active_keys(self) -> list[bytes]:
        return self.storage.active_keys()

    def active_submitters(self) -> list[str]:
        return self.storage.active_submitters()

    def is_active_key(self, key: bytes) -> bool:
        return key in self.storage.active_keys()

    def is_active_submitter(self, submitter: str) -> bool:
        return submitter in self.storage.active_submitters()

    def config(self, key: bytes) -> KeyConfig | None:
        return self.storage.config(key)

    def extraction_source(self, key: bytes) -> bytes | None:
        return self.storage.source(key)

    def require_config(self, key: bytes) -> KeyConfig:
        """Return the config of an active key.

        :raises UnknownKeyError: If the key is inactive or has no config.
        """
        if not self.is_active_key(key):
            raise UnknownKeyError(key)
        config = self.storage.config(key)
        if config is None:
            raise UnknownKeyError(key)
        return config
