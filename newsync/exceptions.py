"""
Error taxonomy for the sync layer.

Failures are recovered as low in the stack as possible:
- UpstreamError: swallowed by the orchestrator's refresh step
- StoreUnavailable: caught at the gateway boundary, triggers local fallback
- FallbackIOError: logged by the local store, which returns a safe default
- DuplicateConstraint: treated as success for favorite adds
"""


class NewsyncError(Exception):
    """Base class for sync layer errors."""


class UpstreamError(NewsyncError):
    """News API unreachable or returned an error envelope."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class StoreUnavailable(NewsyncError):
    """Primary store unreachable or a query against it failed."""


class FallbackIOError(NewsyncError):
    """The on-device key-value store failed to read or write."""


class DuplicateConstraint(NewsyncError):
    """A unique constraint rejected an insert (e.g. favorite already exists)."""
