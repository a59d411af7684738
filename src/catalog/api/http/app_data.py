from dataclasses import dataclass

from src.catalog.core.services import DbSessionService, JwtVerificationService


@dataclass
class ApplicationDependencies:
    jwt_verify_service: JwtVerificationService
    database_service: DbSessionService
