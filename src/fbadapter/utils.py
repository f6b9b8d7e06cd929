"""Low-level connection utilities with no internal dependencies.
"""
from typing import Any


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a SQLAlchemy wrapper.

    Accepts a SQLAlchemy `Connection` or its pooled connection proxy; the
    driver connection is what the strategies begin, commit and configure.
    """
    raw_conn = connection
    if hasattr(raw_conn, 'connection') and hasattr(raw_conn, 'engine'):
        raw_conn = raw_conn.connection
    if hasattr(raw_conn, 'driver_connection'):
        raw_conn = raw_conn.driver_connection
    return raw_conn
