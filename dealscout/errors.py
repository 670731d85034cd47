class DealScoutError(Exception):
    """Base class for all scan pipeline errors."""


class InvalidScanRequest(DealScoutError):
    """The scan request cannot be started (no sources, unknown source, bad config)."""


class SourceFetchError(DealScoutError):
    """One page or section of a source could not be fetched."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"{source}: {detail}")


class RateLimited(DealScoutError):
    """The upstream answered HTTP 429."""


class ScanAborted(DealScoutError):
    """The progress stream consumer went away."""


class PersistenceError(DealScoutError):
    """A single deal could not be written to the store."""


class DuplicateDeal(PersistenceError):
    """The store rejected a deal whose identity already exists."""
