"""Database connectivity verification for the collected connection details."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.pool import NullPool

from core.config import Settings, get_settings
from core.exceptions import ConnectivityFailure
from core.logging_config import get_logger

LOGGER = get_logger(__name__)

SQLITE = "sqlite"

# Driver identifier -> SQLAlchemy dialect+driver
DIALECTS: Dict[str, str] = {
    "mysql": "mysql+pymysql",
    "pgsql": "postgresql+psycopg2",
    "sqlsrv": "mssql+pymssql",
}

# Driver identifier -> connect() keyword carrying the connection timeout
TIMEOUT_ARGUMENTS: Dict[str, str] = {
    "mysql": "connect_timeout",
    "pgsql": "connect_timeout",
    "sqlsrv": "login_timeout",
}


def build_url(details: Mapping[str, Any]) -> URL:
    """Build a SQLAlchemy URL from a collected ``db`` section."""
    driver = details["type"]
    if driver not in DIALECTS:
        raise ValueError(f"Unsupported database driver: {driver}")
    return URL.create(
        DIALECTS[driver],
        username=details.get("username") or None,
        password=details.get("password") or None,
        host=details.get("host") or None,
        database=details.get("name") or None,
    )


class DatabaseVerifier:
    """Checks that the installer can actually use the chosen database."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def verify(self, details: Mapping[str, Any]) -> None:
        """
        Verify the connection details.

        SQLite is verified by creating the database file; every other driver
        by opening a live connection with a short timeout.

        Raises:
            ConnectivityFailure: With the underlying error message.
        """
        if details["type"] == SQLITE:
            self._touch_sqlite()
        else:
            self._connect(details)

    def _touch_sqlite(self) -> None:
        path = self.settings.path(self.settings.sqlite_database)
        try:
            path.touch(exist_ok=True)
        except OSError as exc:
            LOGGER.error("Could not create SQLite database %s: %s", path, exc)
            raise ConnectivityFailure(str(exc)) from exc

    def _connect(self, details: Mapping[str, Any]) -> None:
        driver = details["type"]
        timeout = self.settings.db_connect_timeout
        try:
            engine = create_engine(
                build_url(details),
                poolclass=NullPool,
                connect_args={TIMEOUT_ARGUMENTS[driver]: timeout},
            )
        except Exception as exc:
            LOGGER.error("Could not configure %s engine: %s", driver, exc)
            raise ConnectivityFailure(str(exc)) from exc

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            LOGGER.error("Database connection check failed: %s", exc)
            raise ConnectivityFailure(str(getattr(exc, "orig", None) or exc)) from exc
        finally:
            engine.dispose()

        LOGGER.info("Connected to %s database on %s", driver, details.get("host"))
