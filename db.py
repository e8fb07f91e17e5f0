import logging
from contextlib import contextmanager
from urllib.parse import urlsplit, unquote

import mysql.connector
from flask import current_app

from config import SERVER_SELECTION_TIMEOUT_MS

logger = logging.getLogger(__name__)


def parse_database_uri(uri):
    parts = urlsplit(uri)
    if parts.scheme not in ('mysql', 'mysql+mysqlconnector'):
        raise ValueError(f"Unsupported database scheme: {parts.scheme!r}")
    return {
        'host': parts.hostname or '127.0.0.1',
        'port': parts.port or 3306,
        'user': unquote(parts.username or 'root'),
        'password': unquote(parts.password or ''),
        'database': parts.path.lstrip('/') or None,
    }


def connect(uri, **kwargs):
    return mysql.connector.connect(**parse_database_uri(uri), **kwargs)


def connect_database(uri, timeout_ms=SERVER_SELECTION_TIMEOUT_MS):
    """Open one connection within the timeout and ping it; raise on failure."""
    conn = connect(uri, connection_timeout=max(1, timeout_ms // 1000))
    try:
        conn.ping(reconnect=False)
        logger.info("Database %s reachable at %s", conn.database, conn.server_host)
    finally:
        conn.close()


def get_db():
    return connect(current_app.config['DATABASE_URI'], autocommit=False)


@contextmanager
def db_cursor(commit=False):
    conn = get_db()
    cur = conn.cursor(dictionary=True)
    try:
        yield cur
        if commit:
            conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()
