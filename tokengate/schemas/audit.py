"""Pydantic schemas for audit log entries."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from tokengate.schemas.token import CamelModel


class AuditType(str, Enum):
    REQUEST = "request"
    OPERATION = "operation"
    ERROR = "error"


class AuditLogEntry(CamelModel):
    """One audit trail entry. Never mutated once written."""

    type: AuditType
    time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    user: str = ""
    remote_address: str = ""
    raw_authorization_header: str = ""
    method: str = ""
    endpoint: str = ""
    payload: Any = None
    info: dict[str, Any] = Field(default_factory=dict)


class AuditLogFilter(CamelModel):
    """Query-string filter for GET /logs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    type: AuditType | None = None
    user: str | None = None
    method: str | None = None
    endpoint: str | None = None
    remote_address: str | None = None

    def as_filter(self) -> dict[str, Any]:
        return {key: value for key, value in self.model_dump().items() if value is not None}
