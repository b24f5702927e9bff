"""Oracle error types.

Registry and intake operations raise these immediately to their caller. The
aggregation engine never raises them; it drops bad entries instead.
"""


class OracleError(Exception):
    """Base exception for oracle errors."""

    pass


class DuplicateKeyError(OracleError):
    """Raised when registering a key that is already active."""

    pass


class UnknownKeyError(OracleError):
    """Raised when submitting to or looking up a key that is not active.

    :ivar key: The offending storage key.
    """

    def __init__(self, key: bytes):
        """Initialize the error.

        :param key: Storage key that is not registered.
        """
        self.key = key
        super().__init__(f"Unknown key {key!r}")


class KindMismatchError(OracleError):
    """Raised when a submitted value's kind differs from the key's kind."""

    pass


class ExtractionFailedError(OracleError):
    """Raised when a response body yields no usable value."""

    pass


class InvalidPeriodError(OracleError):
    """Raised when a key is registered with a non-positive period."""

    pass


class NotAllowedError(OracleError):
    """Raised when the caller is not permitted to perform an action."""

    pass
