import logging
import sqlite3
from contextlib import contextmanager

from kanji_quiz.errors import UpstreamError

logger = logging.getLogger(__name__)


def db_conn(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: str):
    """Open a connection, commit on success and always close it.

    sqlite3 failures surface as UpstreamError so callers never see driver types.
    """
    try:
        conn = db_conn(db_path)
    except sqlite3.Error as exc:
        logger.error("cannot open database %s: %s", db_path, exc)
        raise UpstreamError("Database unavailable.") from exc

    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        logger.error("database error: %s", exc)
        raise UpstreamError("Database error.") from exc
    finally:
        conn.close()
