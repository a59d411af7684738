"""Access token minting with authlib."""

import time
from typing import Any

from authlib.common.security import generate_token
from authlib.jose import JoseError, jwt
from fastapi import HTTPException
from loguru import logger

from src.catalog.runtime.context import get_config

# claims the generator owns; callers cannot override them through ``claims``
_RESERVED_CLAIMS = frozenset({"iss", "sub", "aud", "exp", "iat", "nbf", "jti"})


class JwtGeneratorService:
    """Signs access tokens with the configured shared secret."""

    def generate_jwt(
        self,
        subject: str,
        claims: dict[str, Any] | None = None,
        expires_in_seconds: int | None = None,
        valid_after_seconds: int = 0,
        issuer: str | None = None,
        audience: str | list[str] | None = None,
        algorithm: str = "HS256",
        include_jti: bool = True,
        secret: str | None = None,
    ) -> str:
        """Return a signed compact JWT for ``subject``.

        Issuer, audience, lifetime and secret default to the ``jwt`` and
        ``app`` configuration sections.

        Raises:
            HTTPException: 500 when no secret is configured, the algorithm is
                not allowed, or encoding fails.
        """
        config = get_config()

        signing_key = secret or config.app.token_signing_secret
        if not signing_key:
            raise HTTPException(status_code=500, detail="JWT signing secret not configured")
        if algorithm not in config.jwt.allowed_algorithms:
            logger.debug(
                "Refusing to sign with {}; allowed: {}", algorithm, config.jwt.allowed_algorithms
            )
            raise HTTPException(status_code=500, detail=f"Algorithm {algorithm} not allowed")

        issued_at = int(time.time())
        lifetime = (
            config.jwt.token_ttl_seconds if expires_in_seconds is None else expires_in_seconds
        )
        payload: dict[str, Any] = {
            k: v for k, v in (claims or {}).items() if k not in _RESERVED_CLAIMS
        }
        payload.update(
            iss=issuer or config.jwt.issuer,
            sub=subject,
            aud=audience or config.jwt.audiences or ["api"],
            iat=issued_at,
            nbf=issued_at + valid_after_seconds,
            exp=issued_at + lifetime,
        )
        if include_jti:
            payload["jti"] = generate_token(16)

        try:
            token = jwt.encode({"alg": algorithm, "typ": "JWT"}, payload, signing_key)
        except JoseError as e:
            raise HTTPException(status_code=500, detail=f"JWT encoding failed: {e}") from e
        return token.decode() if isinstance(token, bytes) else token

    def generate_access_token(
        self,
        user_id: str,
        roles: list[str] | None = None,
        scopes: list[str] | None = None,
        expires_in_seconds: int | None = None,
        **kwargs: Any,
    ) -> str:
        """Mint an access token carrying the caller's roles and scopes.

        Roles go under the configured role claim (``jwt.claims.roles``).
        Remaining keyword arguments are passed to ``generate_jwt``.

        Example:
            token = JwtGeneratorService().generate_access_token(
                "librarian-1", roles=["LIBRARIAN"]
            )
        """
        claims: dict[str, Any] = {}
        if roles:
            claims[get_config().jwt.claims.roles] = list(roles)
        if scopes:
            claims["scope"] = " ".join(scopes)

        return self.generate_jwt(
            subject=user_id,
            claims=claims,
            expires_in_seconds=expires_in_seconds,
            **kwargs,
        )
