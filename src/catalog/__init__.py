"""Library catalog service.

A small HTTP service that answers lookup, availability and search queries
over a catalog of books, with role-based access control on every operation.
"""

__version__ = "0.1.0"
