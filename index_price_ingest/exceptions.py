"""
Custom exception hierarchy for index-price-ingest.

The fetch errors double as the driver's event vocabulary: the client
classifies every failed request into exactly one ``FetchError`` subclass,
and the driver decides how to retry based on that class alone.
"""


class IndexPriceIngestError(Exception):
    """Base exception for all index-price-ingest errors."""


class SeedLoadError(IndexPriceIngestError):
    """Raised when the constituent seed file cannot be read.

    This is a startup precondition: nothing can be fetched without the
    constituent list, so callers are expected to let it propagate.
    """


class ConfigValidationError(IndexPriceIngestError):
    """Raised when a config YAML file is empty or otherwise unusable."""


class FetchError(IndexPriceIngestError):
    """Base class for a single failed price request.

    Attributes:
        symbol: Ticker symbol the request was issued for.
        status: HTTP status code, or ``None`` for transport-level failures.
    """

    def __init__(self, message: str, symbol: str = "", status: int | None = None):
        super().__init__(message)
        self.symbol = symbol
        self.status = status


class ConnectionResetFetchError(FetchError):
    """The connection was reset before a response arrived."""


class RateLimitedError(FetchError):
    """No usable data: no response at all, HTTP 403, or an empty or undecodable feed."""


class UnclassifiedFetchError(FetchError):
    """The source answered with an unexpected status code."""


class FetchStalledError(IndexPriceIngestError):
    """Raised when one symbol keeps failing with unclassified errors.

    Attributes:
        symbol: The symbol the driver gave up on.
        index: Position of that symbol in the constituent list.
        attempts: Number of consecutive unclassified failures observed.
    """

    def __init__(self, symbol: str, index: int, attempts: int):
        super().__init__(
            f"Giving up on {symbol} (position {index}) after "
            f"{attempts} unclassified fetch errors"
        )
        self.symbol = symbol
        self.index = index
        self.attempts = attempts


class ExportError(IndexPriceIngestError):
    """Raised when the exporter fails to write output files.

    For example, permission errors, disk full, or unsupported format.
    """
