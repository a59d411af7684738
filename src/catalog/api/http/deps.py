"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from loguru import logger
from sqlmodel import Session

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.core.exceptions import AccessDeniedError
from src.catalog.core.models.claims import TokenClaims
from src.catalog.core.security import CATALOG_POLICY, AccessPolicy, normalize_roles
from src.catalog.core.services import (
    CatalogService,
    JwtVerificationService,
)
from src.catalog.entities.book import BookRepository
from src.catalog.runtime.context import get_config


def get_db_session(request: Request) -> Session:
    """Get a new database session from the shared session service."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.database_service.get_session()


def get_session(request: Request) -> Iterator[Session]:
    """Yield a per-request session and close it when the request is done."""
    session = get_db_session(request)
    try:
        yield session
    finally:
        session.close()


def get_jwt_verify_service(request: Request) -> JwtVerificationService:
    """Get the JWT verification service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.jwt_verify_service


def get_book_repository(session: Session = Depends(get_session)) -> BookRepository:
    return BookRepository(session)


def get_catalog_service(
    repository: BookRepository = Depends(get_book_repository),
) -> CatalogService:
    return CatalogService(repository)


def get_access_policy() -> AccessPolicy:
    return CATALOG_POLICY


async def get_current_claims(
    request: Request,
    jwt_verify: JwtVerificationService = Depends(get_jwt_verify_service),
) -> TokenClaims:
    """Authenticate the request using a Bearer token."""

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Missing Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.split(" ", 1)[1].strip()
    claims = await jwt_verify.verify_jwt(token)

    request.state.claims = claims
    request.state.uid = claims.uid
    request.state.roles = normalize_roles(
        claims.roles, get_config().catalog.role_prefix
    )
    return claims


def require_operation(operation: str):
    """Create a dependency that checks the access policy for ``operation``.

    Runs after authentication and before the route body, so a rejected
    caller never reaches the catalog service.
    """

    async def dep(
        request: Request,
        claims: TokenClaims = Depends(get_current_claims),
        policy: AccessPolicy = Depends(get_access_policy),
    ) -> TokenClaims:
        roles = getattr(request.state, "roles", frozenset())
        try:
            policy.check(operation, roles)
        except AccessDeniedError as exc:
            logger.bind(
                operation=str(operation), subject=claims.subject, roles=sorted(roles)
            ).warning("access.denied")
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        return claims

    return dep
