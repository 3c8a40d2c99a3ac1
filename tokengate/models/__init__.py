# tokengate Models
from tokengate.models.audit_log import AuditLog
from tokengate.models.base import BaseModel
from tokengate.models.issued_token import IssuedToken

__all__ = [
    "AuditLog",
    "BaseModel",
    "IssuedToken",
]
