"""Entities organized by business concept.

Each entity has its own package containing:
- entity.py: Domain model with business logic
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .book import Book, BookId, BookRepository, BookTable

__all__ = [
    "Book",
    "BookId",
    "BookRepository",
    "BookTable",
]
