# tokengate Schemas
from tokengate.schemas.audit import AuditLogEntry, AuditLogFilter, AuditType
from tokengate.schemas.token import (
    CamelModel,
    RemovedResponse,
    TokenClaims,
    TokenCreatedResponse,
    TokenFilter,
    TokenGenerateRequest,
    TokenRecord,
    TokenStatus,
)

__all__ = [
    "AuditLogEntry",
    "AuditLogFilter",
    "AuditType",
    "CamelModel",
    "RemovedResponse",
    "TokenClaims",
    "TokenCreatedResponse",
    "TokenFilter",
    "TokenGenerateRequest",
    "TokenRecord",
    "TokenStatus",
]
