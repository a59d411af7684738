"""SQLAlchemy engine and sessions for the catalog database."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.context import get_config

_IN_MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


def _engine_options(config: ConfigData) -> dict[str, Any]:
    db = config.database
    options: dict[str, Any] = {"echo": db.echo}

    if db.is_sqlite:
        options["connect_args"] = {"check_same_thread": False, "timeout": 20}
        if db.url in _IN_MEMORY_URLS:
            # one shared connection, otherwise each checkout sees an empty database
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        pool_pre_ping=True,
    )
    if db.url.startswith("postgresql"):
        options["connect_args"] = {
            "application_name": f"library_catalog_{config.app.environment}",
            "connect_timeout": 30,
        }
    return options


class DbSessionService:
    """Owns the engine; hands out sessions to requests and CLI commands."""

    def __init__(self, config: ConfigData | None = None):
        config = config or get_config()
        if config.database.is_sqlite and config.app.environment == "production":
            logger.warning("Running the catalog on SQLite in production")

        self._engine = create_engine(
            config.database.connection_string, **_engine_options(config)
        )
        logger.info(
            "Database engine ready ({}) for {} environment",
            self._engine.dialect.name,
            config.app.environment,
        )

    @property
    def engine(self):
        return self._engine

    def create_all(self) -> None:
        # registers the table on SQLModel.metadata
        from src.catalog.entities.book import BookTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Catalog tables created")

    def get_session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that commits on exit and rolls back on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as exc:
            session.rollback()
            logger.bind(error_type=type(exc).__name__).error(
                "Rolled back catalog transaction: {}", exc
            )
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """True when ``SELECT 1`` succeeds."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.bind(error_type=type(exc).__name__).error(
                "Database health check failed: {}", exc
            )
            return False
        return True

    def dispose(self) -> None:
        self._engine.dispose()
