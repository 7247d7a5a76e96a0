"""Domain errors raised by the sync services.

Services stay framework-free; ``portfolio_sync.main`` maps these onto HTTP
responses.
"""


class SyncError(Exception):
    """Base class for expected, user-facing sync failures."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class SyncValidationError(SyncError):
    """Malformed payload, out-of-range value, unknown type or strategy."""

    status_code = 422


class NotFoundError(SyncError):
    """Entity missing or owned by someone else.

    Ownership failures use this too so callers cannot discover other
    users' ids.
    """

    status_code = 404
