"""
Feed Oracle - Numeric Ingestion and Aggregation Module

This module turns authorized numeric submissions into one published value per key:
- OracleValue: Exact integer and fixed-point value types
- DecimalConverter / JsonExtractor: Exact number extraction from JSON bodies
- SubmissionBuffer: Per-submitter ring buffer of recent values
- Registry: Active keys, key configuration and authorized submitters
- AggregationEngine: Scheduled drain, reduce and publish
- DataOracle: Facade tying intake, registry and aggregation together
- FeedWorker: Off-chain fetch loop driving submissions and ticks
"""

from .AccessControl import AccessControl, Action, StaticAccessControl
from .AggregationEngine import AggregationEngine, reduce_values
from .DataOracle import DataOracle, NewDataEvent
from .DecimalConverter import DecimalLiteral, convert
from .errors import (
    DuplicateKeyError,
    ExtractionFailedError,
    InvalidPeriodError,
    KindMismatchError,
    NotAllowedError,
    OracleError,
    UnknownKeyError,
)
from .FeedFetcher import FeedFetcher, FetcherError, FetcherHTTPError
from .FeedWorker import FeedWorker, WorkerConfig
from .JsonExtractor import extract, extract_value, parse_document
from .KeyConfig import KeyConfig
from .OracleStorage import OracleStorage, feed_key, read_feed
from .OracleValue import (
    FIXED_DECIMALS,
    U128_MAX,
    AggregationOp,
    FixedU128,
    NumericKind,
    OracleValue,
)
from .Registry import Registry
from .SharedStore import InMemoryStore, SharedStore
from .SubmissionBuffer import RING_BUF_LEN, SubmissionBuffer

__all__ = [
    "AccessControl",
    "Action",
    "AggregationEngine",
    "AggregationOp",
    "DataOracle",
    "DecimalLiteral",
    "DuplicateKeyError",
    "ExtractionFailedError",
    "FIXED_DECIMALS",
    "FeedFetcher",
    "FeedWorker",
    "FetcherError",
    "FetcherHTTPError",
    "FixedU128",
    "InMemoryStore",
    "InvalidPeriodError",
    "KeyConfig",
    "KindMismatchError",
    "NewDataEvent",
    "NotAllowedError",
    "NumericKind",
    "OracleError",
    "OracleStorage",
    "OracleValue",
    "RING_BUF_LEN",
    "Registry",
    "SharedStore",
    "StaticAccessControl",
    "SubmissionBuffer",
    "U128_MAX",
    "UnknownKeyError",
    "WorkerConfig",
    "convert",
    "extract",
    "extract_value",
    "feed_key",
    "parse_document",
    "read_feed",
    "reduce_values",
]
