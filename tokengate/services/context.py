"""Per-request values threaded through the pipeline stages."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PipelineState(str, Enum):
    START = "start"
    AUTHENTICATED = "authenticated"
    VALIDATED = "validated"
    AUTHORIZED = "authorized"
    AUDITED = "audited"
    DISPATCHED = "dispatched"
    REJECTED = "rejected"


@dataclass(frozen=True)
class RouteSpec:
    """A protected route: its required permissions and audit policy."""

    name: str
    permissions: tuple[str, ...] = ()
    audited: bool = True


@dataclass
class RequestContext:
    """Everything the stages know about one inbound request.

    Built by the HTTP layer; ``token``, ``claims`` and ``state`` are
    filled in as the request advances through the pipeline.
    """

    method: str
    endpoint: str
    remote_address: str = ""
    authorization: str = ""
    path_params: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    payload: Any = None
    body_error: str | None = None
    token: str | None = None
    claims: dict[str, Any] | None = None
    state: PipelineState = PipelineState.START

    @property
    def requester(self) -> str:
        if self.claims and isinstance(self.claims.get("id"), str) and self.claims["id"]:
            return self.claims["id"]
        return "Unknown ID"

    @property
    def requester_scope(self) -> list[str]:
        scope = (self.claims or {}).get("scope")
        if isinstance(scope, list):
            return [str(item) for item in scope]
        return []


@dataclass(frozen=True)
class GatewayResponse:
    """Status code and JSON body handed back to the HTTP layer."""

    status_code: int
    body: Any


Operation = Callable[[RequestContext], Awaitable[GatewayResponse]]
