import base64
import json
import time
from typing import Any

from authlib.jose import jwt


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def encode_token(
    secret: str,
    *,
    issuer: str,
    audience: str | list[str],
    subject: str | None = "user-1",
    roles: list[str] | None = None,
    exp_offset: int = 3600,
    algorithm: str = "HS256",
    **extra: Any,
) -> str:
    """Encode a token directly with authlib, bypassing the generator service."""
    now = int(time.time())
    payload: dict[str, Any] = {
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "nbf": now,
        "exp": now + exp_offset,
    }
    if subject is not None:
        payload["sub"] = subject
    if roles is not None:
        payload["roles"] = roles
    payload.update(extra)
    token = jwt.encode({"alg": algorithm, "typ": "JWT"}, payload, secret)
    return token.decode() if isinstance(token, bytes) else token


def unsigned_token(payload: dict[str, Any]) -> str:
    """Build an ``alg=none`` token, which must never be accepted."""

    def seg(obj: dict[str, Any]) -> str:
        raw = json.dumps(obj, separators=(",", ":")).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    return f"{seg({'alg': 'none', 'typ': 'JWT'})}.{seg(payload)}.sig"
