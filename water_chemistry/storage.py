import logging
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from water_chemistry.db import get_conn
from water_chemistry.errors import NotFoundError, StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)

TABLE = "water_chemistry_records"

# columns a caller may write; owner_id/id/timestamps are managed here
DATA_COLUMNS = (
    "record_date",
    "ph",
    "ammonia",
    "nitrite",
    "nitrate",
    "dissolved_oxygen",
    "water_temperature",
    "confidence",
    "notes",
)

PARAMETER_COLUMNS = ("ph", "ammonia", "nitrite", "nitrate")


class RecordStore(Protocol):
    def find_by_owner_date(self, owner_id: str, record_date: str, *, timeout: float) -> Optional[Dict]: ...

    def upsert(self, owner_id: str, record_date: str, fields: Dict, now: str, *, timeout: float) -> Tuple[Dict, bool]: ...

    def get(self, record_id: int, *, timeout: float) -> Optional[Dict]: ...

    def update(self, record_id: int, fields: Dict, now: str, *, timeout: float) -> Dict: ...

    def delete(self, record_id: int, *, timeout: float) -> bool: ...

    def list(self, owner_id: str, *, timeout: float, record_date: Optional[str] = None,
             parameter: Optional[str] = None, search: Optional[str] = None) -> List[Dict]: ...


def _lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


def _check_columns(fields: Dict):
    unknown = set(fields) - set(DATA_COLUMNS)
    if unknown:
        raise KeyError(f"Unknown record columns: {sorted(unknown)}")


class SqliteRecordStore:
    """
    Record store on sqlite3. Uniqueness of (owner_id, record_date) is a
    table constraint and saves are a single INSERT .. ON CONFLICT statement,
    so concurrent saves for the same day converge on one row.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _session(self, timeout: float) -> Iterator[sqlite3.Connection]:
        try:
            with get_conn(self.db_path, timeout=timeout) as conn:
                # sqlite's lower() only folds ASCII
                conn.create_function("py_lower", 1, _lower, deterministic=True)
                yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            # "database is locked" after `timeout` lands here too
            logger.error("Record store failure on %s: %s", self.db_path, e)
            raise StorageUnavailable(f"Record store unavailable: {e}", cause=e) from e

    @contextmanager
    def _transaction(self, timeout: float) -> Iterator[sqlite3.Connection]:
        with self._session(timeout) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def find_by_owner_date(self, owner_id: str, record_date: str, *, timeout: float) -> Optional[Dict]:
        with self._session(timeout) as conn:
            r = conn.execute(
                f"SELECT * FROM {TABLE} WHERE owner_id = ? AND record_date = ?",
                (owner_id, record_date),
            ).fetchone()
        return dict(r) if r else None

    def upsert(self, owner_id: str, record_date: str, fields: Dict, now: str, *, timeout: float) -> Tuple[Dict, bool]:
        """
        Insert-or-update keyed by (owner_id, record_date).
        Only `fields` are written on update; returns (row, was_insert).
        """
        fields = {k: v for k, v in fields.items() if k != "record_date"}
        _check_columns(fields)

        cols = ["owner_id", "record_date", *fields, "created_at", "updated_at"]
        values = [owner_id, record_date, *fields.values(), now, now]
        updates = ", ".join([f"{c} = excluded.{c}" for c in fields] + ["updated_at = excluded.updated_at"])

        with self._transaction(timeout) as conn:
            existing = conn.execute(
                f"SELECT id FROM {TABLE} WHERE owner_id = ? AND record_date = ?",
                (owner_id, record_date),
            ).fetchone()

            conn.execute(
                f"""
                INSERT INTO {TABLE} ({", ".join(cols)})
                VALUES ({", ".join("?" for _ in cols)})
                ON CONFLICT (owner_id, record_date) DO UPDATE SET {updates}
                """,
                values,
            )

            row = conn.execute(
                f"SELECT * FROM {TABLE} WHERE owner_id = ? AND record_date = ?",
                (owner_id, record_date),
            ).fetchone()

        return dict(row), existing is None

    def get(self, record_id: int, *, timeout: float) -> Optional[Dict]:
        with self._session(timeout) as conn:
            r = conn.execute(f"SELECT * FROM {TABLE} WHERE id = ?", (record_id,)).fetchone()
        return dict(r) if r else None

    def update(self, record_id: int, fields: Dict, now: str, *, timeout: float) -> Dict:
        _check_columns(fields)
        sets = ", ".join([f"{c} = ?" for c in fields] + ["updated_at = ?"])

        try:
            with self._transaction(timeout) as conn:
                conn.execute(
                    f"UPDATE {TABLE} SET {sets} WHERE id = ?",
                    (*fields.values(), now, record_id),
                )
                row = conn.execute(f"SELECT * FROM {TABLE} WHERE id = ?", (record_id,)).fetchone()
        except sqlite3.IntegrityError:
            # moving a record onto a date the owner already has
            raise ValidationError(f"A record already exists for {fields.get('record_date')}")
        if row is None:
            raise NotFoundError(f"Record {record_id} not found")
        return dict(row)

    def delete(self, record_id: int, *, timeout: float) -> bool:
        with self._transaction(timeout) as conn:
            cur = conn.execute(f"DELETE FROM {TABLE} WHERE id = ?", (record_id,))
        return cur.rowcount > 0

    def list(self, owner_id: str, *, timeout: float, record_date: Optional[str] = None,
             parameter: Optional[str] = None, search: Optional[str] = None) -> List[Dict]:
        where = ["owner_id = ?"]
        args: List = [owner_id]

        if record_date:
            where.append("record_date = ?")
            args.append(record_date)

        # plain substring matches: instr() has no wildcard characters
        if parameter:
            where.append(
                "(" + " OR ".join(f"instr(CAST({c} AS TEXT), ?) > 0" for c in PARAMETER_COLUMNS) + ")"
            )
            args.extend([parameter] * len(PARAMETER_COLUMNS))

        if search:
            needle = search.lower()
            where.append("(instr(py_lower(notes), ?) > 0 OR instr(record_date, ?) > 0)")
            args.extend([needle, needle])

        with self._session(timeout) as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {TABLE}
                WHERE {" AND ".join(where)}
                ORDER BY record_date DESC, id DESC
                """,
                args,
            ).fetchall()
        return [dict(r) for r in rows]
