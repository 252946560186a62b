"""
Exceptions raised by webtext
"""


class WebtextError(Exception):
    """Base class for all webtext errors."""


class FetchError(WebtextError):
    """The URL could not be fetched."""


class TooManyRedirectsError(FetchError):
    def __init__(self, message: str = "stopped after too many redirects"):
        super().__init__(message)


class HTTPStatusError(FetchError):
    """The server answered with a status outside the 2xx range."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        status = f"{status_code} {reason}".strip()
        super().__init__(f"non-2xx HTTP response status: {status}")


class ExtractionError(WebtextError):
    """HTML could not be parsed into text."""
