"""Scope-based permission checks."""

from collections.abc import Iterable
from enum import Enum

from tokengate.errors import TokenPermissionError

# Required by every protected route
GENERAL_ACCESS = "General.Access"
GENERAL_LOGS = "General.Logs"
TOKENS_GENERATE = "Tokens.Generate"
TOKENS_LIST = "Tokens.List"


class Decision(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


class PermissionEvaluator:
    """Grants access iff every required permission is in the granted scope."""

    def check(self, required: Iterable[str], granted: Iterable[str]) -> Decision:
        required_set = set(required)
        granted_set = set(granted)
        if len(required_set & granted_set) == len(required_set):
            return Decision.ALLOWED
        return Decision.DENIED

    def enforce(self, required: Iterable[str], granted: Iterable[str]) -> TokenPermissionError | None:
        """Return the denial as an error value, or None when allowed."""
        required = tuple(required)
        granted = tuple(granted)
        if self.check(required, granted) is Decision.ALLOWED:
            return None
        missing = sorted(set(required) - set(granted))
        return TokenPermissionError(f"Missing permissions: {', '.join(missing)}")
