"""Exception classes for Last.fm access and chart builds."""


class LastFMError(Exception):
    """Base exception for all Last.fm API errors."""


class InvalidRequestError(LastFMError):
    """Request could not be constructed from the given arguments.

    Raised before any network activity, e.g. for an empty username or a page
    number below 1.
    """


class TransportError(LastFMError):
    """Network or transport failure (connection refused, timeout, TLS, ...)."""


class RemoteAPIError(LastFMError):
    """Last.fm rejected the request.

    Attributes:
        code: Last.fm error code, or the HTTP status when no error body was sent
        message: Error message from the service
    """

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"Last.fm ({code}): {message}")


class DecodeError(LastFMError):
    """Payload was not JSON or did not match the expected shape."""


class BuildSupersededError(Exception):
    """A chart build was cancelled because a newer build of the same series started."""

    def __init__(self, series: str, generation: int):
        self.series = series
        self.generation = generation
        super().__init__(f"{series} build #{generation} superseded by a newer build")
