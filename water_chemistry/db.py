import sqlite3
from contextlib import contextmanager
from pathlib import Path

from water_chemistry.core.config import settings


@contextmanager
def get_conn(db_path=None, timeout: float = settings.STORAGE_TIMEOUT_S):
    # autocommit mode; callers open explicit transactions with BEGIN IMMEDIATE
    conn = sqlite3.connect(db_path or settings.DATABASE_PATH, timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path=None):
    path = Path(db_path or settings.DATABASE_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_conn(path) as conn:
        conn.execute("""
        CREATE TABLE IF NOT EXISTS water_chemistry_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id TEXT NOT NULL,
            record_date TEXT NOT NULL,
            ph REAL,
            ammonia REAL,
            nitrite REAL,
            nitrate REAL,
            dissolved_oxygen REAL,
            water_temperature REAL,
            confidence REAL,
            notes TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (owner_id, record_date)
        );
        """)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_records_owner_date ON water_chemistry_records(owner_id, record_date DESC);"
        )
