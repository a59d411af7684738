"""Verified token claims."""

from typing import Any

from pydantic import BaseModel, Field


class TokenClaims(BaseModel):
    """Claims extracted from a verified access token."""

    raw_token: str = Field(repr=False, description="The verified JWT")
    uid: str = Field(description="Stable user identifier")
    subject: str = Field(description="Subject (sub) claim")
    issuer: str = Field(default="", description="Issuer (iss) claim")
    audience: str | list[str] = Field(default_factory=list, description="Audience (aud) claim")
    expires_at: int = Field(description="Expiration timestamp")
    issued_at: int = Field(description="Issued-at timestamp")
    not_before: int | None = Field(default=None, description="Not-before timestamp")
    jti: str | None = Field(default=None, description="Token identifier")
    scopes: list[str] = Field(default_factory=list, description="Granted scopes")
    roles: list[str] = Field(default_factory=list, description="Roles as found in the token")
    custom_claims: dict[str, Any] = Field(
        default_factory=dict, description="Claims not mapped to a dedicated field"
    )
