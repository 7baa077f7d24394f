"""Exception types shared across tilebot components."""


class TilebotError(Exception):
    """Base class for all tilebot errors."""
    pass


class SourceUnavailable(TilebotError):
    """Raised when the board surface is missing or has zero extent."""
    pass


class StorageFailure(TilebotError):
    """Raised by key-value stores when a read or write fails."""
    pass


class SolverError(TilebotError):
    """Raised when the external solver fails or returns a malformed solution."""
    pass
