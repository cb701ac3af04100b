import os
import sqlite3
from typing import Optional

from .config import settings

LOG_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
        logger TEXT,
        level TEXT,
        message TEXT
    );
"""


def db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


def get_db_connection(path: Optional[str] = None):
    """Opens a connection to the log database."""
    conn = sqlite3.connect(path or db_path())
    conn.row_factory = sqlite3.Row
    return conn


def init_db(path: Optional[str] = None):
    """Creates the database directory and the log table if missing."""
    path = path or db_path()
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)
    conn = get_db_connection(path)
    with conn:
        conn.execute(LOG_TABLE_SQL)
    conn.close()
