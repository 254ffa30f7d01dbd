"""Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``playtime.main`` turn them
into the ``{"code", "message", "data"}`` response envelope.
"""


class PlaytimeError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(PlaytimeError):
    """Caller supplied a value that is out of range or malformed."""

    status_code = 400


class NotFoundError(PlaytimeError):
    status_code = 404


class MalformedRecordError(PlaytimeError):
    """A stored document cannot be read back into its response model."""


class MalformedPointError(MalformedRecordError):
    """Stored geometry does not hold exactly two coordinates."""


class QueryExecutionError(PlaytimeError):
    """Store level failure, timeouts included."""


class ConfigurationError(PlaytimeError):
    """An integration is missing its key, secret or endpoint."""


class TransportError(PlaytimeError):
    """Network failure reaching an upstream HTTP endpoint."""

    status_code = 502


class UpstreamError(PlaytimeError):
    """Upstream answered with a nonzero application error code."""

    status_code = 502

    def __init__(self, code: int, message: str = "", service: str = "WeChat"):
        super().__init__(f"{service} API error: {code} - {message}")
        self.code = code
        self.upstream_message = message


class UpstreamAuthError(UpstreamError):
    """Credential-issuing endpoint refused to issue a token."""
