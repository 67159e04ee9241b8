"""Oracle connection management for the legacy credential store."""

import re
from functools import lru_cache
from typing import Any

import oracledb
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from manager_api.core.config import Settings, get_settings
from manager_api.core.errors import DatabaseNotConfiguredError

_LOCALHOST_RE = re.compile("localhost", re.IGNORECASE)


def oracle_connect_params(settings: Settings) -> dict[str, Any]:
    """
    Build python-oracledb connect() keyword arguments from settings.
    Raises DatabaseNotConfiguredError when user, password or connect string is missing.
    """
    password = (
        settings.ORACLE_DB_PASSWORD.get_secret_value()
        if settings.ORACLE_DB_PASSWORD is not None
        else ""
    )
    if not settings.ORACLE_DB_USER or not password or not settings.ORACLE_DB_CONNECT_STRING:
        raise DatabaseNotConfiguredError(
            "Oracle DB is not configured. Set ORACLE_DB_USER, ORACLE_DB_PASSWORD "
            "and ORACLE_DB_CONNECT_STRING."
        )
    # Resolving "localhost" to IPv6 first breaks some listener setups.
    dsn = _LOCALHOST_RE.sub("127.0.0.1", settings.ORACLE_DB_CONNECT_STRING)
    return {"user": settings.ORACLE_DB_USER, "password": password, "dsn": dsn}


def build_engine(settings: Settings) -> Engine:
    """
    Create an engine on the oracledb dialect. Connection parameters are read
    on each new DBAPI connection, so the app starts even when Oracle is not configured.
    """

    def _connect() -> oracledb.Connection:
        return oracledb.connect(**oracle_connect_params(settings))

    return create_engine(
        "oracle+oracledb://",
        creator=_connect,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


@lru_cache
def get_engine() -> Engine:
    """Dependency returning the process-wide engine."""
    return build_engine(get_settings())


def is_db_configured(settings: Settings) -> bool:
    try:
        oracle_connect_params(settings)
    except DatabaseNotConfiguredError:
        return False
    return True


def check_db_connected(engine: Engine) -> bool:
    """Run a trivial query to verify the database is reachable."""
    query = "SELECT 1 FROM DUAL" if engine.dialect.name == "oracle" else "SELECT 1"
    try:
        with engine.connect() as conn:
            conn.execute(text(query))
        return True
    except (SQLAlchemyError, DatabaseNotConfiguredError, oracledb.Error):
        return False
