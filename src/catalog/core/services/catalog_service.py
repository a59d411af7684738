"""Catalog boundary: book lookup, availability and search."""

from loguru import logger

from src.catalog.core.exceptions import BookNotFoundError, InvalidCriterionError
from src.catalog.entities.book import Book, BookId, BookRepository
from src.catalog.runtime.config.config_data import CatalogConfig
from src.catalog.runtime.context import get_config


class CatalogService:
    """Validates inbound identifiers and criteria and delegates to storage.

    The service holds no state across calls. Transactions belong to the
    caller: ``set_availability`` flushes the change but does not commit.
    """

    def __init__(
        self, repository: BookRepository, config: CatalogConfig | None = None
    ) -> None:
        self._repository = repository
        self._config = config or get_config().catalog

    def get_book(self, book_id: BookId | str) -> Book:
        """Return the book with ``book_id``.

        Raises:
            InvalidBookIdError: if the identifier is malformed.
            BookNotFoundError: if no book has that identifier.
        """
        bid = BookId.of(book_id)
        logger.debug("Looking up book {}", bid)
        book = self._repository.get(bid)
        if book is None:
            raise BookNotFoundError(str(bid))
        return book

    def is_available(self, book_id: BookId | str) -> bool:
        """Whether the book can be borrowed.

        An unknown identifier answers ``False`` instead of raising, so callers
        cannot tell "does not exist" from "exists but unavailable".
        """
        try:
            book = self.get_book(book_id)
        except BookNotFoundError:
            logger.debug("Availability requested for unknown book {}", book_id)
            return False
        return book.available

    def set_availability(self, book_id: BookId | str, available: bool) -> None:
        bid = BookId.of(book_id)
        updated = self._repository.set_availability(bid, available)
        if updated is None:
            raise BookNotFoundError(str(bid))
        logger.info("Book {} availability set to {}", bid, available)

    def search(self, criterion: str | None) -> list[Book]:
        """Books whose title, author or ISBN contain ``criterion``.

        Raises:
            InvalidCriterionError: if the criterion is missing, blank, too long
                or contains control characters.
        """
        term = self._validate_criterion(criterion)
        books = self._repository.search(term, limit=self._config.search_max_results)
        logger.debug("Search for {!r} matched {} books", term, len(books))
        return books

    def _validate_criterion(self, criterion: str | None) -> str:
        if criterion is None or not isinstance(criterion, str):
            raise InvalidCriterionError("Search criterion is required")
        term = criterion.strip()
        if not term:
            raise InvalidCriterionError("Search criterion must not be empty")
        if len(term) > self._config.criterion_max_length:
            raise InvalidCriterionError(
                f"Search criterion must be at most {self._config.criterion_max_length} characters"
            )
        if any(not ch.isprintable() for ch in term):
            raise InvalidCriterionError("Search criterion contains control characters")
        return term
