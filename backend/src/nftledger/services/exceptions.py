"""Service error hierarchy for chain reads, metadata resolution and persistence.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- TransientError: Retryable errors (network, rate limits, timeouts)
- PermanentError: Non-retryable errors (malformed input, logic errors)

Contract call reverts are not exceptions: they are returned as CallResult values.
"""


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class TransientError(ServiceError):
    """Transient error that may succeed on retry.

    Examples:
    - Network timeouts
    - Rate limit exceeded (429)
    - Service unavailable (503)
    - RPC endpoint unreachable
    """

    pass


class PermanentError(ServiceError):
    """Permanent error that will not succeed on retry.

    Examples:
    - Malformed event logs
    - Metadata documents that are not JSON objects
    - Unsupported URI schemes
    """

    pass


# Blockchain-specific errors
class BlockchainConnectionError(TransientError):
    """Failed to reach the blockchain RPC endpoint (anything other than a revert)."""

    pass


class EventDecodeError(PermanentError):
    """A log matched a known event signature but could not be decoded."""

    pass


# Metadata-specific errors
class MetadataError(ServiceError):
    """Base exception for token metadata resolution errors."""

    pass


class MetadataFetchError(MetadataError, TransientError):
    """Metadata document could not be retrieved (timeout, 429, 5xx, network)."""

    pass


class MetadataParseError(MetadataError, PermanentError):
    """Metadata document is unusable (4xx, invalid JSON, unsupported URI)."""

    pass


# Persistence errors
class StoreFailure(ServiceError):
    """The entity store could not flush or commit an event's writes.

    Fatal for the current event: every write of the event is rolled back and
    the event must be redelivered.
    """

    pass
