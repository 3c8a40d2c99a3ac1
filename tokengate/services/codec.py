"""Bearer token codec: HS256 JWT signing and verification."""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidSignatureError,
    PyJWTError,
)

from tokengate.errors import EncodingError, SignatureError, SignatureFailure

logger = logging.getLogger(__name__)

DEFAULT_VALIDITY = "24 hours"

_DURATION_RE = re.compile(
    r"^(?P<value>-?(?:\d+)?\.?\d+) *"
    r"(?P<unit>milliseconds?|msecs?|ms|seconds?|secs?|s|minutes?|mins?|m"
    r"|hours?|hrs?|h|days?|d|weeks?|w|years?|yrs?|y)?$",
    re.IGNORECASE,
)

# Seconds per singular unit name
_UNIT_SECONDS = {
    "ms": 0.001,
    "msec": 0.001,
    "millisecond": 0.001,
    "s": 1,
    "sec": 1,
    "second": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "h": 3600,
    "hr": 3600,
    "hour": 3600,
    "d": 86400,
    "day": 86400,
    "w": 604800,
    "week": 604800,
    "y": 31557600,
    "yr": 31557600,
    "year": 31557600,
}


def parse_validity(value: str | int | float) -> timedelta:
    """Parse a token lifetime.

    Numbers are seconds. Strings use the ``ms`` duration grammar
    ("24 hours", "10m", "7d", "1.5h"); a bare numeric string is
    milliseconds.
    """
    if isinstance(value, bool):
        raise EncodingError(f"Invalid validity: {value!r}")
    if isinstance(value, int | float):
        try:
            seconds = float(value)
        except OverflowError as e:
            raise EncodingError(f"Validity out of range: {value!r}") from e
    elif isinstance(value, str):
        match = _DURATION_RE.match(value.strip())
        if not match:
            raise EncodingError(f"Invalid validity: {value!r}")
        unit = (match.group("unit") or "ms").lower()
        if unit not in _UNIT_SECONDS:
            unit = unit.rstrip("s")
        seconds = float(match.group("value")) * _UNIT_SECONDS[unit]
    else:
        raise EncodingError(f"Invalid validity: {value!r}")

    if not seconds >= 1:
        raise EncodingError(f"Validity must be at least one second: {value!r}")
    try:
        return timedelta(seconds=int(seconds))
    except (OverflowError, ValueError) as e:
        raise EncodingError(f"Validity out of range: {value!r}") from e


class TokenCodec:
    """Signs and verifies bearer tokens with a single shared secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_validity: str = DEFAULT_VALIDITY,
        clock: Callable[[], datetime] | None = None,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self.default_validity = default_validity
        self._clock = clock or (lambda: datetime.now(UTC))

    def expiry_for(self, validity: str | int | float | None, issued_at: datetime) -> datetime:
        """Expiry timestamp for a token issued at ``issued_at``."""
        if validity is None:
            validity = self.default_validity
        try:
            return issued_at + parse_validity(validity)
        except OverflowError as e:
            raise EncodingError(f"Validity out of range: {validity!r}") from e

    def sign(self, claims: Mapping[str, Any], issued_at: datetime | None = None) -> str:
        """Sign ``claims`` (id, scope, optional validity) into a JWT string."""
        issued_at = issued_at or self._clock()
        expires_at = self.expiry_for(claims.get("validity"), issued_at)

        payload = dict(claims)
        payload["iat"] = int(issued_at.timestamp())
        payload["exp"] = int(expires_at.timestamp())
        try:
            token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Claims are not serialisable: {e}") from e
        return str(token)

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a JWT string and return its claims."""
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except ExpiredSignatureError as e:
            raise SignatureError(SignatureFailure.EXPIRED, "Token has expired") from e
        except InvalidSignatureError as e:
            raise SignatureError(SignatureFailure.INVALID_SIGNATURE, str(e)) from e
        except DecodeError as e:
            raise SignatureError(SignatureFailure.MALFORMED, str(e)) from e
        except PyJWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise SignatureError(SignatureFailure.MALFORMED, str(e)) from e
