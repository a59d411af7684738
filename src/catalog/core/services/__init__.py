"""Core services exports."""

from .catalog_service import CatalogService
from .database.db_session import DbSessionService
from .jwt.jwt_gen import JwtGeneratorService
from .jwt.jwt_verify import JwtVerificationService

__all__ = [
    "CatalogService",
    "DbSessionService",
    "JwtGeneratorService",
    "JwtVerificationService",
]
