"""Bearer token verification."""

import time

from authlib.jose import JoseError, jwt
from fastapi import HTTPException
from loguru import logger

from src.catalog.core.models.claims import TokenClaims
from src.catalog.core.services.jwt.jwt_utils import (
    JwtPreview,
    create_token_claims,
    preview_jwt,
)
from src.catalog.runtime.context import get_config


class JwtVerificationService:
    """Verifies access tokens signed with the configured shared secret.

    Every rejection is an ``HTTPException(401)`` except a missing secret,
    which is a server misconfiguration (500).
    """

    async def verify_jwt(
        self,
        token: str,
        *,
        key: str | None = None,
        expected_audience: list[str] | str | None = None,
        expected_issuer: str | None = None,
        preview: JwtPreview | None = None,
    ) -> TokenClaims:
        cfg = get_config()
        preview = preview or preview_jwt(token)

        if preview.alg not in cfg.jwt.allowed_algorithms:
            raise HTTPException(status_code=401, detail="Disallowed JWT algorithm")
        if not preview.iss:
            raise HTTPException(status_code=401, detail="Missing iss claim")

        verification_key = key or cfg.app.token_signing_secret
        if not verification_key:
            raise HTTPException(status_code=500, detail="JWT signing secret not configured")

        issuer = (expected_issuer or cfg.jwt.issuer).rstrip("/")
        audiences = expected_audience or cfg.jwt.audiences
        if isinstance(audiences, str):
            audiences = [audiences]
        if not audiences:
            raise HTTPException(status_code=401, detail="No expected audience configured")

        logger.debug("Verifying JWT for issuer {} and audiences {}", issuer, audiences)
        try:
            claims = jwt.decode(
                token,
                verification_key,
                claims_options={
                    "iss": {"essential": True, "values": [issuer]},
                    "aud": {"essential": True, "values": list(audiences)},
                    "sub": {"essential": True},
                    "exp": {"essential": True},
                },
            )
            claims.validate(leeway=cfg.jwt.clock_skew)
        except (JoseError, ValueError) as exc:
            raise HTTPException(status_code=401, detail=f"JWT error: {exc}") from exc

        self._check_times(claims, cfg.jwt.clock_skew)
        if not claims.get("sub"):
            raise HTTPException(status_code=401, detail="Missing sub claim")

        return create_token_claims(token=token, claims=dict(claims))

    @staticmethod
    def _check_times(claims: dict, skew: int) -> None:
        now = int(time.time())
        exp, nbf, iat = claims.get("exp"), claims.get("nbf"), claims.get("iat")
        if exp is not None and now > int(exp) + skew:
            raise HTTPException(status_code=401, detail="Token expired")
        if nbf is not None and now < int(nbf) - skew:
            raise HTTPException(status_code=401, detail="Token not yet valid")
        if iat is not None and int(iat) > now + skew:
            raise HTTPException(status_code=401, detail="Token issued in the future")
