"""Entity: Book."""

from dataclasses import dataclass
from typing import Any, Final

from pydantic import Field

from src.catalog.core.exceptions import InvalidBookIdError
from src.catalog.entities._base import Entity

MAX_BOOK_ID_LENGTH: Final = 128


@dataclass(frozen=True)
class BookId:
    """Opaque, immutable book identifier compared by value."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise InvalidBookIdError("Book id must be a string")
        normalized = self.value.strip()
        if not normalized:
            raise InvalidBookIdError("Book id must not be empty")
        if len(normalized) > MAX_BOOK_ID_LENGTH:
            raise InvalidBookIdError(
                f"Book id must be at most {MAX_BOOK_ID_LENGTH} characters"
            )
        if any(ch.isspace() or not ch.isprintable() for ch in normalized):
            raise InvalidBookIdError(
                "Book id must not contain whitespace or control characters"
            )
        # frozen dataclass: bypass __setattr__ to store the normalized value
        object.__setattr__(self, "value", normalized)

    @classmethod
    def of(cls, value: "BookId | str") -> "BookId":
        return value if isinstance(value, BookId) else cls(value)

    def __str__(self) -> str:
        return self.value


class Book(Entity):
    """Book entity representing a catalog entry.

    The identifier is fixed at creation; availability is the only field the
    API is allowed to change.
    """

    title: str = Field(description="Title")
    author: str = Field(description="Author")
    isbn: str | None = Field(default=None, description="ISBN")
    available: bool = Field(default=True, description="Whether the book may be borrowed")

    def __eq__(self, other: Any) -> bool:
        """Compare books by business attributes, ignoring timestamps."""
        if not isinstance(other, Book):
            return False

        return (
            self.id == other.id
            and self.title == other.title
            and self.author == other.author
            and self.isbn == other.isbn
            and self.available == other.available
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.title,
            self.author,
            self.isbn,
            self.available,
        ))
