"""Structural checks and claim extraction for compact JWTs.

Nothing here verifies a signature: ``preview_jwt`` only decodes the header
and payload so the verifier can reject obviously bad tokens cheaply, and the
``extract_*`` helpers map already-verified claims onto ``TokenClaims``.
"""

import base64
import binascii
import json
import re
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Final

from fastapi import HTTPException
from loguru import logger

from src.catalog.core.models.claims import TokenClaims
from src.catalog.runtime.context import get_config

MAX_JWT_CHARS: Final = 4096
MAX_HEADER_BYTES: Final = 8 * 1024
MAX_PAYLOAD_BYTES: Final = 64 * 1024

# three non-empty base64url segments, no padding
_COMPACT_JWT: Final = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

# claims consumed by dedicated TokenClaims fields
_MAPPED_CLAIMS: Final = frozenset(
    {
        "exp", "iat", "nbf", "sub", "aud", "iss", "jti",
        "scope", "scp", "scopes",
        "role", "roles", "authorities", "realm_access",
    }
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail)


def _decode_segment(segment: str, what: str, max_bytes: int) -> dict[str, Any]:
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as e:
        raise _unauthorized(f"Invalid base64url in {what}") from e
    if len(raw) > max_bytes:
        raise _unauthorized(f"{what} too large")
    try:
        obj = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise _unauthorized(f"Non-UTF8 {what}") from e
    except json.JSONDecodeError as e:
        raise _unauthorized(f"Invalid JSON in {what}") from e
    if not isinstance(obj, dict):
        raise _unauthorized(f"{what} must be a JSON object")
    return obj


@dataclass(frozen=True)
class JwtPreview:
    header: dict[str, Any]
    claims: dict[str, Any]
    alg: str | None
    kid: str | None
    iss: str | None


def preview_jwt(token: str) -> JwtPreview:
    """Decode header and payload without verifying the signature."""
    if not token or len(token) > MAX_JWT_CHARS:
        raise _unauthorized("Invalid JWT size")
    if not _COMPACT_JWT.fullmatch(token):
        raise _unauthorized("Invalid JWT format")

    header_seg, payload_seg, _ = token.split(".")
    header = _decode_segment(header_seg, "JWT header", MAX_HEADER_BYTES)
    claims = _decode_segment(payload_seg, "JWT payload", MAX_PAYLOAD_BYTES)

    iss = claims.get("iss")
    return JwtPreview(
        header=header,
        claims=claims,
        alg=header.get("alg"),
        kid=header.get("kid"),
        iss=iss.rstrip("/") if isinstance(iss, str) and iss else None,
    )


def _as_strings(value: Any) -> list[str]:
    """A claim value as a list: strings split on whitespace, lists kept."""
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def extract_uid(claims: dict[str, Any]) -> str:
    uid_claim = get_config().jwt.claims.user_id
    if uid_claim and uid_claim in claims:
        return str(claims[uid_claim])
    return f"{claims.get('iss')}|{claims.get('sub')}"


def extract_scopes(claims: dict[str, Any]) -> list[str]:
    """Scopes from ``scope``, ``scp`` and ``scopes``, first occurrence wins."""
    scopes = _as_strings(claims.get("scope")) + _as_strings(claims.get("scp"))
    if isinstance(claims.get("scopes"), (list, tuple)):
        scopes += _as_strings(claims["scopes"])
    return _unique(scopes)


def extract_roles(claims: dict[str, Any]) -> list[str]:
    """Roles from the configured claim, ``role``, ``authorities`` and ``realm_access``."""
    role_claim = get_config().jwt.claims.roles
    roles: list[str] = []
    for name in _unique([role_claim, "role", "roles", "authorities"]):
        roles += _as_strings(claims.get(name))

    realm_access = claims.get("realm_access")
    if isinstance(realm_access, dict) and isinstance(realm_access.get("roles"), list):
        roles += _as_strings(realm_access["roles"])
    return _unique(roles)


def create_token_claims(token: str, claims: dict[str, Any]) -> TokenClaims:
    """Build ``TokenClaims`` from verified JWT claims."""
    now = int(time.time())
    role_claim = get_config().jwt.claims.roles
    logger.debug("Creating TokenClaims for subject {}", claims.get("sub"))

    return TokenClaims(
        raw_token=token,
        uid=extract_uid(claims),
        subject=str(claims.get("sub", "")),
        issuer=str(claims.get("iss") or ""),
        audience=claims.get("aud", []),
        expires_at=int(claims.get("exp", now + 3600)),
        issued_at=int(claims.get("iat", now)),
        not_before=claims.get("nbf"),
        jti=claims.get("jti"),
        scopes=extract_scopes(claims),
        roles=extract_roles(claims),
        custom_claims={
            k: v
            for k, v in claims.items()
            if k not in _MAPPED_CLAIMS and k != role_claim
        },
    )
