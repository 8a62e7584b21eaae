"""Error types raised by the model client and the agent loop."""

from typing import Optional

from weaver.constants import MAX_ERROR_BODY_CHARS


class WeaverError(Exception):
    """Base class for all Weaver errors."""


class ConfigurationError(WeaverError):
    """Endpoint URL or model name is missing or invalid."""


class UpstreamError(WeaverError):
    """The model endpoint answered with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        self.status = status
        self.body = body
        if body:
            snippet = body[:MAX_ERROR_BODY_CHARS]
            if len(body) > MAX_ERROR_BODY_CHARS:
                snippet += "..."
            message = f"{message}: {snippet}"
        super().__init__(message)


class GatewayBlockedError(UpstreamError):
    """A tunneling gateway served its warning page instead of the model API."""


class NetworkError(WeaverError):
    """The model endpoint could not be reached."""

    def __init__(self, message: str, timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message)


class ParseError(WeaverError):
    """Model output did not contain a valid action object."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class UnknownActionError(WeaverError):
    """Model emitted an action tag the loop does not understand."""


class ActionError(WeaverError):
    """A well-formed action could not be executed against the file store."""


class CancelledError(WeaverError):
    """The run was cancelled by its caller."""


class RepositoryBusyError(WeaverError):
    """Another agent run already holds the repository."""


class TurnLimitError(WeaverError):
    """The model used up the turn budget without finishing."""
