"""AuditLog model - append-only trail of requests, operations and errors."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tokengate.models.base import BaseModel
from tokengate.schemas.audit import AuditLogEntry

AuditTypeEnum = Enum(
    "request",
    "operation",
    "error",
    name="audit_type",
    create_constraint=True,
)


class AuditLog(BaseModel):
    """Audit log entry. Retention and rotation happen outside the gateway."""

    __tablename__ = "audit_logs"

    type: Mapped[str] = mapped_column(AuditTypeEnum, nullable=False, index=True)
    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    remote_address: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    raw_authorization_header: Mapped[str] = mapped_column(Text, nullable=False, default="")
    method: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    endpoint: Mapped[str] = mapped_column(Text, nullable=False, default="")
    payload: Mapped[Any | None] = mapped_column(JSONB, nullable=True)
    info: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_audit_logs_time", "time"),
        Index("ix_audit_logs_user_time", "user", "time"),
        Index("ix_audit_logs_type_time", "type", "time"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.type} {self.method} {self.endpoint}>"

    @classmethod
    def from_entry(cls, entry: AuditLogEntry) -> "AuditLog":
        data = entry.model_dump(mode="json")
        return cls(
            type=entry.type.value,
            time=entry.time,
            user=entry.user,
            remote_address=entry.remote_address,
            raw_authorization_header=entry.raw_authorization_header,
            method=entry.method,
            endpoint=entry.endpoint,
            payload=data["payload"],
            info=data["info"],
        )

    def to_entry(self) -> AuditLogEntry:
        return AuditLogEntry(
            type=self.type,
            time=self.time,
            user=self.user,
            remote_address=self.remote_address,
            raw_authorization_header=self.raw_authorization_header,
            method=self.method,
            endpoint=self.endpoint,
            payload=self.payload,
            info=self.info or {},
        )
