import logging
from typing import Optional

from .database import get_db_connection


class SQLiteHandler(logging.Handler):
    """
    A logging handler that stores study engine records in the SQLite log table.
    """

    def __init__(self, path: Optional[str] = None, level=logging.NOTSET):
        super().__init__(level)
        self.path = path

    def emit(self, record):
        try:
            conn = get_db_connection(self.path)
            with conn:
                conn.execute(
                    "INSERT INTO logs (logger, level, message) VALUES (?, ?, ?)",
                    (record.name, record.levelname, self.format(record)),
                )
            conn.close()
        except Exception:
            self.handleError(record)
