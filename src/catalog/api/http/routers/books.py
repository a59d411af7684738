"""Book catalog endpoints: lookup, availability and search."""

from fastapi import APIRouter, Body, Depends, Query, Response
from pydantic import StrictBool
from sqlmodel import Session

from src.catalog.api.http.deps import (
    get_catalog_service,
    get_session,
    require_operation,
)
from src.catalog.api.http.middleware.limiter import rate_limit
from src.catalog.core.security import CatalogOperation
from src.catalog.core.services import CatalogService
from src.catalog.entities.book import Book
from src.catalog.runtime.context import get_config

router = APIRouter(prefix="/books", tags=["books"])

_AUTH_RESPONSES = {
    401: {"description": "Missing or invalid bearer token"},
    403: {"description": "Caller lacks the required role"},
    429: {"description": "Rate limit exceeded"},
}


def _guarded(operation: CatalogOperation) -> list:
    """Policy check, then the rate limiter.

    The limiter must come after authentication: it keys on the uid that
    ``get_current_claims`` stores on ``request.state``.
    """
    return [Depends(require_operation(operation)), Depends(rate_limit())]


# declared before /{book_id} so "search" is not captured as an id
@router.get(
    "/search",
    response_model=list[Book],
    summary="Search books",
    description="Returns the books whose title, author or ISBN contain the criterion.",
    responses={
        200: {"description": "Books found"},
        400: {"description": "Invalid search criterion"},
        **_AUTH_RESPONSES,
    },
    dependencies=_guarded(CatalogOperation.SEARCH),
)
def search_books(
    criterion: str = Query(default="", description="Free-text search criterion"),
    service: CatalogService = Depends(get_catalog_service),
) -> list[Book]:
    return service.search(criterion)


@router.get(
    "/{book_id}",
    response_model=Book,
    summary="Get book by id",
    description="Returns a specific book by its identifier.",
    responses={
        200: {"description": "Book found"},
        400: {"description": "Malformed book id"},
        404: {"description": "Book not found"},
        **_AUTH_RESPONSES,
    },
    dependencies=_guarded(CatalogOperation.GET_BOOK),
)
def get_book(
    book_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Book:
    return service.get_book(book_id)


@router.get(
    "/{book_id}/available",
    response_model=bool,
    summary="Check book availability",
    description=(
        "Whether the book can currently be borrowed. Unknown books answer "
        "false unless strict availability checking is enabled."
    ),
    responses={
        200: {"description": "Availability of the book"},
        404: {"description": "Book not found (strict availability only)"},
        **_AUTH_RESPONSES,
    },
    dependencies=_guarded(CatalogOperation.CHECK_AVAILABILITY),
)
def is_book_available(
    book_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> bool:
    if get_config().catalog.strict_availability:
        return service.get_book(book_id).available
    return service.is_available(book_id)


@router.put(
    "/{book_id}/availability",
    response_class=Response,
    summary="Update book availability",
    description="Sets the availability flag of a book. The body is a JSON boolean.",
    responses={
        200: {"description": "Availability updated"},
        404: {"description": "Book not found"},
        **_AUTH_RESPONSES,
    },
    dependencies=_guarded(CatalogOperation.SET_AVAILABILITY),
)
def update_availability(
    book_id: str,
    available: StrictBool = Body(..., description="New availability (a JSON boolean)"),
    service: CatalogService = Depends(get_catalog_service),
    session: Session = Depends(get_session),
) -> Response:
    service.set_availability(book_id, available)
    session.commit()
    return Response(status_code=200)

