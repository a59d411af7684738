"""Domain errors raised by the catalog boundary.

The HTTP layer maps each error class to a status code; nothing below the
routers knows about HTTP.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BookNotFoundError(CatalogError):
    """No book exists for the requested identifier."""

    status_code = 404

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id


class InvalidBookIdError(CatalogError, ValueError):
    """The identifier is empty or malformed."""

    status_code = 400


class InvalidCriterionError(CatalogError, ValueError):
    """The search criterion is empty or malformed."""

    status_code = 400


class AccessDeniedError(Exception):
    """The caller's roles do not satisfy the policy for an operation."""

    def __init__(self, operation: str, required_roles: frozenset[str]) -> None:
        roles = ", ".join(sorted(required_roles)) or "<none>"
        super().__init__(f"Operation '{operation}' requires one of roles: {roles}")
        self.operation = operation
        self.required_roles = required_roles
