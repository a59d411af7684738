"""Authentication and authorization dependency tests."""

import pytest
from fastapi import HTTPException

from src.catalog.api.http.deps import get_current_claims, require_operation
from src.catalog.core.security import CATALOG_POLICY, CatalogOperation
from src.catalog.core.services import JwtVerificationService
from tests.utils import bearer


class TestGetCurrentClaims:
    @pytest.mark.asyncio
    async def test_sets_request_state(
        self, request_factory, librarian_token, jwt_verifier: JwtVerificationService
    ):
        request = request_factory(bearer(librarian_token))

        claims = await get_current_claims(request, jwt_verifier)

        assert claims.subject == "librarian-1"
        assert request.state.uid == "librarian-1"
        assert request.state.roles == frozenset({"LIBRARIAN"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Basic abc"}])
    async def test_requires_bearer_scheme(
        self, request_factory, jwt_verifier: JwtVerificationService, headers
    ):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_claims(request_factory(headers), jwt_verifier)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


class TestRequireOperation:
    @pytest.mark.asyncio
    async def test_allows_matching_role(
        self, request_factory, user_token, jwt_verifier: JwtVerificationService
    ):
        request = request_factory(bearer(user_token))
        claims = await get_current_claims(request, jwt_verifier)
        guard = require_operation(CatalogOperation.SEARCH)

        assert await guard(request, claims, CATALOG_POLICY) is claims

    @pytest.mark.asyncio
    async def test_denies_with_403(
        self, request_factory, user_token, jwt_verifier: JwtVerificationService
    ):
        request = request_factory(bearer(user_token))
        claims = await get_current_claims(request, jwt_verifier)
        guard = require_operation(CatalogOperation.SET_AVAILABILITY)

        with pytest.raises(HTTPException) as exc_info:
            await guard(request, claims, CATALOG_POLICY)

        assert exc_info.value.status_code == 403
