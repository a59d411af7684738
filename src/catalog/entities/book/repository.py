"""Book repository for data access operations."""

from sqlalchemy import or_
from sqlmodel import Session, col, select

from src.catalog.entities._base import utcnow
from src.catalog.entities.book.entity import Book, BookId
from src.catalog.entities.book.table import BookTable


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BookRepository:
    """Data-access layer for books."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, book_id: BookId | str) -> Book | None:
        row = self._session.get(BookTable, str(book_id))
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def set_availability(self, book_id: BookId | str, available: bool) -> Book | None:
        """Update the availability flag; returns None when the book is unknown."""
        row = self._session.get(BookTable, str(book_id))
        if row is None:
            return None
        row.available = available
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True)

    def search(self, criterion: str, limit: int | None = None) -> list[Book]:
        """Case-insensitive substring match on title, author and ISBN."""
        pattern = f"%{_escape_like(criterion)}%"
        statement = (
            select(BookTable)
            .where(
                or_(
                    col(BookTable.title).ilike(pattern, escape="\\"),
                    col(BookTable.author).ilike(pattern, escape="\\"),
                    col(BookTable.isbn).ilike(pattern, escape="\\"),
                )
            )
            .order_by(col(BookTable.title), col(BookTable.id))
        )
        if limit is not None:
            statement = statement.limit(limit)
        rows = self._session.exec(statement).all()
        return [Book.model_validate(row, from_attributes=True) for row in rows]

    def list_all(self) -> list[Book]:
        statement = select(BookTable).order_by(col(BookTable.title), col(BookTable.id))
        rows = self._session.exec(statement).all()
        return [Book.model_validate(row, from_attributes=True) for row in rows]

    def upsert(self, book: Book) -> tuple[Book, bool]:
        """Insert a new book or overwrite the metadata of an existing one.

        Returns the stored book and whether it was newly created.
        """
        row = self._session.get(BookTable, book.id)
        created = row is None
        if row is None:
            row = BookTable(
                id=book.id,
                title=book.title,
                author=book.author,
                isbn=book.isbn,
                available=book.available,
            )
        else:
            row.title = book.title
            row.author = book.author
            row.isbn = book.isbn
            row.available = book.available
            row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True), created
