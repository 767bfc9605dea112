"""Exception hierarchy for the interception engine."""


class InterceptionError(Exception):
    """Base class for interception failures."""
    pass


class NotInitializedError(InterceptionError):
    """Raised when a session is requested before the browser was started."""

    def __init__(self, message: str = "Interceptor not initialized. Call initialize() first."):
        super().__init__(message)


class NavigationError(InterceptionError):
    """Raised when the target page is unreachable or navigation times out."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class MalformedPayloadError(InterceptionError):
    """Raised when a captured body is not valid JSON.

    Always handled inside the extractor; never surfaced to callers.
    """
    pass
