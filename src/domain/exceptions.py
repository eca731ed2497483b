"""
Domain exceptions for the holder analytics system.

Implements a hierarchy distinguishing between recoverable runtime errors
(an upstream snapshot fetch that failed, a stream that was already closed)
and fatal errors (malformed input, invalid configuration) that indicate a
caller bug and must be fixed rather than retried.

Mathematically undefined metrics are NOT errors: they are reported as
``None`` on the result records.
"""


class HolderAnalyticsError(Exception):
    """Base class for all holder analytics exceptions."""
    pass


class RecoverableError(HolderAnalyticsError):
    """
    Errors that the system can recover from without restarting.

    Examples:
    - Snapshot source temporarily unavailable
    - Operation attempted on a torn-down stream session
    """
    pass


class FatalError(HolderAnalyticsError):
    """
    Errors caused by structurally invalid input or configuration.

    Examples:
    - Negative or non-finite balances
    - Non-monotonic price timestamps
    - Non-positive window sizes or intervals
    """
    pass


class InvalidInputError(FatalError, ValueError):
    """Malformed balances, prices or window arguments."""
    pass


class UpstreamFailureError(RecoverableError):
    """Snapshot source call failed during a poll."""
    pass


class SessionClosedError(RecoverableError):
    """Operation attempted after a streaming session has been torn down."""
    pass


class ConfigurationError(FatalError):
    """Invalid system configuration."""
    pass
