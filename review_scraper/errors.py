from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Error categories exposed outside the extraction pipeline."""

    EMPTY_PARAMETERS = "EmptyParameters"
    TRANSPORT_OR_UPSTREAM = "TransportOrUpstreamError"
    UNKNOWN_PLATFORM = "UnknownPlatform"
    MALFORMED_UPSTREAM_DATA = "MalformedUpstreamData"


class ReviewScraperError(Exception):
    """Base class for every failure of a single extraction call."""

    kind: ErrorKind = ErrorKind.TRANSPORT_OR_UPSTREAM


class InputValidationError(ReviewScraperError):
    # Platform or URL missing/blank
    kind = ErrorKind.EMPTY_PARAMETERS


class TransportError(ReviewScraperError):
    # DNS / connect / TLS / timeout while reaching the upstream page
    kind = ErrorKind.TRANSPORT_OR_UPSTREAM


class UpstreamStatusError(ReviewScraperError):
    kind = ErrorKind.TRANSPORT_OR_UPSTREAM

    def __init__(self, status: int, url: Optional[str] = None):
        self.status = status
        self.url = url
        where = f" for {url}" if url else ""
        super().__init__(f"bad response status {status}{where}")


class UnknownPlatformError(ReviewScraperError):
    kind = ErrorKind.UNKNOWN_PLATFORM

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"No adapter registered for platform: {platform!r}")


class MalformedDocumentError(ReviewScraperError):
    # Page is not parsable, or the embedded payload does not have the expected shape
    kind = ErrorKind.MALFORMED_UPSTREAM_DATA
