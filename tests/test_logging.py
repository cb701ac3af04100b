import logging

from lingotrainer.database import get_db_connection, init_db
from lingotrainer.log_handler import SQLiteHandler


def test_sqlite_handler_writes_records(tmp_path):
    path = str(tmp_path / "db" / "logs.db")
    init_db(path)

    logger = logging.getLogger("lingotrainer.test_sqlite")
    logger.setLevel(logging.INFO)
    handler = SQLiteHandler(path)
    logger.addHandler(handler)
    try:
        logger.info("Study session started: study_1 with 3 words")
        logger.debug("not stored")
    finally:
        logger.removeHandler(handler)

    conn = get_db_connection(path)
    rows = conn.execute("SELECT logger, level, message FROM logs").fetchall()
    conn.close()

    assert len(rows) == 1
    assert rows[0]["logger"] == "lingotrainer.test_sqlite"
    assert rows[0]["level"] == "INFO"
    assert "study_1" in rows[0]["message"]
