"""FeedWorker: Off-chain loop that fetches values and drives the schedule.

Architecture:
    - Each tick, every active key that has an extraction source is fetched
      concurrently
    - Each fetched value is submitted once per local submitter account
    - Per-key failures are logged and skipped; that key's buffers stay as
      they were for this tick
    - The oracle's scheduled aggregation then runs for the tick

Configuration is read from the environment by :meth:`WorkerConfig.from_env`:
    FETCH_TIMEOUT   Deadline for each request in seconds (default: 2.0)
    TICK_INTERVAL   Seconds between ticks in :meth:`FeedWorker.run` (default: 6.0)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

from .DataOracle import DataOracle
from .errors import OracleError
from .FeedFetcher import FeedFetcher, FetcherError
from .KeyConfig import KeyConfig
from .OracleValue import OracleValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerConfig:
    """Runtime settings of the feed worker.

    :ivar fetch_timeout: Deadline for each request in seconds.
    :ivar tick_interval: Seconds to sleep between ticks.
    """

    fetch_timeout: float = FeedFetcher.DEFAULT_TIMEOUT
    tick_interval: float = 6.0

    def __post_init__(self) -> None:
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if self.tick_interval < 0:
            raise ValueError("tick_interval must not be negative")

    @classmethod
    def from_env(cls) -> WorkerConfig:
        """Build a config from environment variables, falling back to defaults.

        :raises ValueError: If a variable is set to an invalid number.
        """
        return cls(
            fetch_timeout=float(os.environ.get("FETCH_TIMEOUT") or FeedFetcher.DEFAULT_TIMEOUT),
            tick_interval=float(os.environ.get("TICK_INTERVAL") or "6.0"),
        )


class FeedWorker:
    """Fetches external data for every active key and feeds it to the oracle.

    :ivar oracle: Oracle receiving submissions and running aggregation.
    :ivar accounts: Local submitter identities each value is submitted as.
    :ivar fetcher: Fetcher used for extraction sources.
    :ivar config: Worker settings.
    """

    def __init__(
        self,
        oracle: DataOracle,
        accounts: Sequence[str],
        fetcher: FeedFetcher | None = None,
        config: WorkerConfig | None = None,
    ) -> None:
        """Initialize the worker.

        :param oracle: Oracle to submit to.
        :param accounts: Local submitter accounts.
        :param fetcher: Optional fetcher; one is created from ``config`` if None.
        :param config: Optional settings; read from the environment if None.
        """
        self.oracle = oracle
        self.accounts = list(accounts)
        self.config = config or WorkerConfig.from_env()
        self.fetcher = fetcher or FeedFetcher(timeout=self.config.fetch_timeout)

    async def _fetch_key(self, key: bytes) -> OracleValue | None:
        """Fetch one key, returning None on any failure."""
        source = self.oracle.extraction_source(key)
        if source is None:
            logger.debug(f"{key!r}: no extraction source, skipping")
            return None
        config: KeyConfig | None = self.oracle.config(key)
        if config is None:
            logger.warning(f"{key!r}: storage key not configured")
            return None

        try:
            return await asyncio.wait_for(
                self.fetcher.fetch_value(source, config),
                timeout=self.config.fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"{key!r}: timeout fetching {source!r}")
        except (FetcherError, OracleError) as e:
            logger.warning(f"{key!r}: failed to fetch {source!r}: {e}")
        return None

    async def fetch_all(self) -> dict[bytes, OracleValue | None]:
        """Fetch every active key concurrently.

        :returns: Mapping of key to fetched value, or None where fetching failed.
        """
        keys = self.oracle.active_keys()
        if not keys:
            return {}
        values = await asyncio.gather(*(self._fetch_key(key) for key in keys))
        return dict(zip(keys, values, strict=True))

    def submit_all(self, values: dict[bytes, OracleValue | None]) -> int:
        """Submit fetched values from every local account.

        :returns: Number of accepted submissions.
        """
        if not self.accounts:
            logger.error("No local accounts available to submit data")
            return 0

        accepted = 0
        for key, value in values.items():
            if value is None:
                continue
            for account in self.accounts:
                try:
                    self.oracle.submit(account, key, value)
                    accepted += 1
                    logger.info(f"[{account}] Submitted {value} to {key!r}")
                except OracleError as e:
                    logger.error(f"[{account}] Failed to submit to {key!r}: {e}")
        return accepted

    async def run_once(self, tick: int) -> dict[bytes, OracleValue]:
        """Fetch, submit and aggregate for one tick.

        :param tick: Current tick count.
        :returns: Values published on this tick.
        """
        values = await self.fetch_all()
        self.submit_all(values)
        return self.oracle.on_tick(tick)

    async def run(self, start_tick: int = 1, max_ticks: int | None = None) -> None:
        """Run the worker over monotonically increasing ticks.

        :param start_tick: First tick to process.
        :param max_ticks: Stop after this many ticks (None runs forever).
        """
        logger.info(
            f"Starting feed worker at tick {start_tick} with accounts {self.accounts}, "
            f"tick_interval={self.config.tick_interval}s, fetch_timeout={self.config.fetch_timeout}s"
        )
        tick = start_tick
        try:
            while max_ticks is None or tick - start_tick < max_ticks:
                published = await self.run_once(tick)
                if published:
                    logger.info(f"Tick {tick}: published {len(published)} aggregates")
                tick += 1
                await asyncio.sleep(self.config.tick_interval)
        finally:
            await FeedFetcher.close_shared_client()
