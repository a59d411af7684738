"""Entity package: Book."""

from .entity import Book, BookId
from .repository import BookRepository
from .table import BookTable

__all__ = ["Book", "BookId", "BookRepository", "BookTable"]
