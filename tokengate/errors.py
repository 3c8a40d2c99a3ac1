"""Error taxonomy shared by the codec, store, pipeline and HTTP boundary.

Every failure the gateway reports to a client is one of the kinds below. Each
kind maps to a fixed (HTTP status, error code, message) triple; the client
only ever sees ``{"code": ..., "message": ...}``.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Client-visible error kinds."""

    DEFAULT = "DefaultError"
    SYNTAX = "SyntaxError"
    TOKEN_PERMISSION = "TokenPermissionError"
    TOKEN_EXPIRED = "TokenExpiredError"
    JSON_WEB_TOKEN = "JsonWebTokenError"
    INVALID_PAYLOAD = "InvalidPayloadError"
    NO_DATA_AVAILABLE = "NoDataAvailableError"
    NOTHING_TO_REMOVE = "NothingToRemoveError"


@dataclass(frozen=True)
class ErrorSpec:
    """HTTP status, stable error code and message for one error kind."""

    status: int
    code: int
    message: str

    def envelope(self) -> dict:
        return {"code": self.code, "message": self.message}


ERROR_TABLE: dict[ErrorKind, ErrorSpec] = {
    ErrorKind.DEFAULT: ErrorSpec(400, 100, "Not allowed"),
    ErrorKind.SYNTAX: ErrorSpec(400, 101, "Malformed data"),
    ErrorKind.TOKEN_PERMISSION: ErrorSpec(401, 102, "Not enough permissions"),
    ErrorKind.TOKEN_EXPIRED: ErrorSpec(401, 103, "Token has expired"),
    ErrorKind.JSON_WEB_TOKEN: ErrorSpec(401, 104, "Token is invalid"),
    ErrorKind.INVALID_PAYLOAD: ErrorSpec(400, 105, "Token or request body payload is invalid"),
    ErrorKind.NO_DATA_AVAILABLE: ErrorSpec(404, 106, "No data matches given filters"),
    ErrorKind.NOTHING_TO_REMOVE: ErrorSpec(409, 107, "Nothing to remove"),
}

# Server-side faults keep the DefaultError code but carry a 500 status
SERVER_FAILURE = ErrorSpec(500, ERROR_TABLE[ErrorKind.DEFAULT].code, "Service temporarily unavailable")


class GatewayError(Exception):
    """Base class for every error the gateway reports to a client.

    ``detail`` is for logs and audit entries only; the client receives the
    fixed message from ``ERROR_TABLE``.
    """

    kind: ErrorKind = ErrorKind.DEFAULT

    def __init__(self, detail: str | None = None):
        self.detail = detail or ERROR_TABLE[self.kind].message
        super().__init__(self.detail)

    @property
    def spec(self) -> ErrorSpec:
        return ERROR_TABLE[self.kind]


class DefaultError(GatewayError):
    """Unspecified or disallowed request."""

    pass


class MalformedBodyError(GatewayError):
    """Request body is not parseable JSON."""

    kind = ErrorKind.SYNTAX


class TokenPermissionError(GatewayError):
    """Token scope does not cover the route's required permissions."""

    kind = ErrorKind.TOKEN_PERMISSION


class TokenExpiredError(GatewayError):
    """Signature is valid but the token is past its expiry."""

    kind = ErrorKind.TOKEN_EXPIRED


class JsonWebTokenError(GatewayError):
    """Signature is invalid, or the token was revoked or replaced."""

    kind = ErrorKind.JSON_WEB_TOKEN


class InvalidPayloadError(GatewayError):
    """Token claims or request body fail structural validation."""

    kind = ErrorKind.INVALID_PAYLOAD


class NoDataAvailableError(GatewayError):
    """A filtered query matched nothing."""

    kind = ErrorKind.NO_DATA_AVAILABLE


class NothingToRemoveError(GatewayError):
    """Invalidation target did not exist."""

    kind = ErrorKind.NOTHING_TO_REMOVE


class InternalError(GatewayError):
    """Unexpected server-side fault."""

    @property
    def spec(self) -> ErrorSpec:
        return SERVER_FAILURE


class StoreError(InternalError):
    """The backing store could not complete an operation."""

    pass


class EncodingError(InvalidPayloadError):
    """Claims could not be signed (not serialisable, bad validity)."""

    pass


class SignatureFailure(str, Enum):
    """Reasons a presented token failed verification."""

    EXPIRED = "expired"
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"


class SignatureError(Exception):
    """Raised by the codec when a token cannot be verified."""

    def __init__(self, subkind: SignatureFailure, detail: str = ""):
        self.subkind = subkind
        self.detail = detail or subkind.value
        super().__init__(self.detail)
