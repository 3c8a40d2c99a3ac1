"""Pydantic schemas for issued tokens."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialised with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TokenStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class TokenRecord(CamelModel):
    """A persisted token, as exposed to API consumers."""

    user: str
    token_string: str
    scope: list[str]
    validity: str
    status: TokenStatus = TokenStatus.ENABLED
    authority: str
    issued_at: datetime
    expires_at: datetime | None = None


class TokenClaims(BaseModel):
    """Structural contract for claims carried by a usable token."""

    model_config = ConfigDict(extra="allow")

    id: StrictStr = Field(..., min_length=1)
    scope: list[StrictStr] = Field(..., min_length=1)
    validity: StrictStr | int | None = None

    @field_validator("scope")
    @classmethod
    def validate_scope(cls, v: list[str]) -> list[str]:
        if any(not item for item in v):
            raise ValueError("scope entries must be non-empty strings")
        return v


class TokenGenerateRequest(CamelModel):
    """Body of POST /tokens/{user}."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    scope: list[StrictStr] = Field(..., min_length=1)
    validity: StrictStr | int | None = None


class TokenFilter(CamelModel):
    """Query-string filter for GET /tokens."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    user: str | None = None
    status: TokenStatus | None = None

    def as_filter(self) -> dict[str, Any]:
        return {key: value for key, value in self.model_dump().items() if value is not None}


class TokenCreatedResponse(CamelModel):
    token: str


class RemovedResponse(CamelModel):
    removed_count: int
