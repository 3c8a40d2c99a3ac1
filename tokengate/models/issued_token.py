"""IssuedToken model - the single active bearer token of each user."""

from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from tokengate.models.base import BaseModel
from tokengate.schemas.token import TokenRecord

TokenStatusEnum = Enum(
    "enabled",
    "disabled",
    name="token_status",
    create_constraint=True,
)


class IssuedToken(BaseModel):
    """A signed token handed to ``user``.

    ``user`` is unique: issuing a new token for a user replaces the row,
    which invalidates the previously issued string. Revocation deletes it.
    """

    __tablename__ = "tokens"

    user: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    token_string: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[list[str]] = mapped_column(ARRAY(String(255)), nullable=False)
    validity: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(TokenStatusEnum, nullable=False, default="enabled")
    authority: Mapped[str] = mapped_column(String(255), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<IssuedToken {self.user} {self.status}>"

    def to_record(self) -> TokenRecord:
        """Convert to the API shape (storage id stripped)."""
        return TokenRecord(
            user=self.user,
            token_string=self.token_string,
            scope=list(self.scope),
            validity=self.validity,
            status=self.status,
            authority=self.authority,
            issued_at=self.issued_at,
            expires_at=self.expires_at,
        )
