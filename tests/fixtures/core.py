from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi import Response
from sqlalchemy import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from starlette.requests import Request

from src.catalog.core.services import CatalogService
from src.catalog.entities.book import Book, BookRepository


def _sample_books() -> list[Book]:
    return [
        Book(id="B1", title="Dune", author="Frank Herbert", isbn="9780441013593", available=False),
        Book(
            id="B2",
            title="The Left Hand of Darkness",
            author="Ursula K. Le Guin",
            isbn="9780441478125",
        ),
        Book(id="B3", title="Neuromancer", author="William Gibson", isbn="9780441569595"),
        Book(
            id="B4",
            title="The Dispossessed",
            author="Ursula K. Le Guin",
            isbn="9780061054884",
        ),
        Book(id="B5", title="100% Recall: A_Memory Handbook", author="Jane Doe"),
    ]


@pytest.fixture
def sample_books() -> list[Book]:
    return _sample_books()


@pytest.fixture
def request_factory() -> Callable[..., Request]:
    def _make_request(
        headers: dict[str, str] | None = None,
        *,
        method: str = "GET",
        path: str = "/",
        client: tuple[str, int] = ("127.0.0.1", 5000),
    ) -> Request:
        scope = {
            "type": "http",
            "headers": [
                (name.lower().encode("ascii"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "method": method,
            "path": path,
            "query_string": b"",
            "client": client,
        }
        return Request(scope)

    return _make_request


@pytest.fixture
def response_factory() -> Callable[[], Any]:
    def _make_response() -> Response:
        return Response(content="", status_code=200)

    return _make_response


@pytest.fixture
def session() -> Generator[Session]:
    """Create a fresh in-memory database session for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Import models to register them with the metadata
    from src.catalog.entities.book import BookTable  # noqa: F401

    SQLModel.metadata.create_all(engine)

    with Session(engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            session.rollback()
            session.close()
            engine.dispose()


@pytest.fixture
def book_repository(session: Session) -> BookRepository:
    return BookRepository(session)


@pytest.fixture
def seeded_repository(
    book_repository: BookRepository, session: Session, sample_books: list[Book]
) -> BookRepository:
    for book in sample_books:
        book_repository.upsert(book)
    session.commit()
    return book_repository


@pytest.fixture
def catalog_service(seeded_repository: BookRepository) -> CatalogService:
    return CatalogService(seeded_repository)
