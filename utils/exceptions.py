class WalletTrackerError(Exception):
    """Base class for errors surfaced to callers of the wallet tracker services."""


class ValidationError(WalletTrackerError, ValueError):
    """Malformed caller input, rejected before any network or cache access."""


class NotFoundError(WalletTrackerError):
    """The requested entity exists neither in the cache nor on-chain."""


class UpstreamError(WalletTrackerError):
    """A required upstream call failed and there is no degraded answer to return."""
