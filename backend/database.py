"""
SQLite provider for the job-hunting tracker.
Self-hosted backend used for local development and by the test suite;
implements the same interface as the hosted provider.
"""
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from .errors import ProviderError
from .provider import Provider, encode_fields

logger = logging.getLogger(__name__)

DB_PATH = Path(__file__).parent.parent / "data" / "tracker.db"
STORAGE_DIR = Path(__file__).parent.parent / "data" / "storage"

ANALYSIS_COLUMNS = [
    "revenue", "employee_count", "capital", "hiring_count", "average_salary",
    "benefits", "average_tenure", "overtime_hours", "business_content",
    "products", "department_operations", "competitive_comparison",
    "growth_potential", "commercials", "mid_term_plan", "philosophy",
    "company_culture", "career_plan",
]

COMPANY_FK = "REFERENCES companies(id) ON DELETE CASCADE"

# table -> (columns, table constraints). Columns are (name, declaration).
SCHEMA: Dict[str, Tuple[List[Tuple[str, str]], List[str]]] = {
    "users": ([
        ("id", "TEXT PRIMARY KEY"),
        ("email", "TEXT UNIQUE NOT NULL"),
        ("password_hash", "TEXT NOT NULL"),
        ("created_at", "TEXT NOT NULL"),
    ], []),
    "companies": ([
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("industry", "TEXT NOT NULL DEFAULT ''"),
        ("location", "TEXT"),
        ("website", "TEXT"),
        ("description", "TEXT"),
        ("image_url", "TEXT"),
        ("mypage_id", "TEXT"),
        ("mypage_password", "TEXT"),
        ("selection_process", "TEXT"),
        ("current_status", "TEXT"),
        ("motivation_level", "INTEGER NOT NULL DEFAULT 3"),
        ("next_selection_date", "TEXT"),
        ("es_deadline", "TEXT"),
        ("webtest_deadline", "TEXT"),
        ("webtest_format", "TEXT"),
        ("memo", "TEXT"),
        ("personal_analysis_memo", "TEXT"),
        *[(column, "TEXT") for column in ANALYSIS_COLUMNS],
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ], []),
    "tasks": ([
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("company_id", f"TEXT {COMPANY_FK}"),
        ("title", "TEXT NOT NULL"),
        ("description", "TEXT NOT NULL DEFAULT ''"),
        ("due_date", "TEXT"),
        ("completed", "INTEGER NOT NULL DEFAULT 0"),
        ("created_at", "TEXT NOT NULL"),
    ], []),
    "selection_steps": ([
        ("id", "TEXT PRIMARY KEY"),
        ("company_id", f"TEXT NOT NULL {COMPANY_FK}"),
        ("step_name", "TEXT NOT NULL"),
        ("memo", "TEXT NOT NULL DEFAULT ''"),
        ("order_index", "INTEGER NOT NULL DEFAULT 0"),
        ("created_at", "TEXT NOT NULL"),
    ], []),
    "entry_sheets": ([
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("company_id", f"TEXT NOT NULL {COMPANY_FK}"),
        ("theme", "TEXT NOT NULL"),
        ("content", "TEXT NOT NULL DEFAULT ''"),
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ], []),
    "templates": ([
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("type", "TEXT NOT NULL DEFAULT 'es'"),
        ("theme", "TEXT NOT NULL"),
        ("content", "TEXT NOT NULL DEFAULT ''"),
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ], []),
    "custom_analysis_fields": ([
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("field_name", "TEXT NOT NULL"),
        ("field_key", "TEXT NOT NULL"),
        ("order_index", "INTEGER NOT NULL DEFAULT 0"),
        ("is_active", "INTEGER NOT NULL DEFAULT 1"),
        ("tab_category", "TEXT NOT NULL DEFAULT 'basic'"),
        ("created_at", "TEXT NOT NULL"),
    ], []),
    "company_custom_fields": ([
        ("id", "TEXT PRIMARY KEY"),
        ("company_id", f"TEXT NOT NULL {COMPANY_FK}"),
        ("field_key", "TEXT NOT NULL"),
        ("value", "TEXT NOT NULL DEFAULT ''"),
        ("created_at", "TEXT NOT NULL"),
    ], ["UNIQUE(company_id, field_key)"]),
    "hidden_analysis_fields": ([
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("field_key", "TEXT NOT NULL"),
        ("created_at", "TEXT NOT NULL"),
    ], ["UNIQUE(user_id, field_key)"]),
    "user_profiles": ([
        ("id", "TEXT PRIMARY KEY"),
        ("full_name", "TEXT NOT NULL DEFAULT ''"),
        ("university", "TEXT NOT NULL DEFAULT ''"),
        ("department", "TEXT NOT NULL DEFAULT ''"),
        ("graduation_year", "INTEGER"),
        ("created_at", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ], []),
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_companies_user ON companies(user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_due ON tasks(user_id, completed, due_date)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_company ON tasks(company_id)",
    "CREATE INDEX IF NOT EXISTS idx_steps_company ON selection_steps(company_id, order_index)",
    "CREATE INDEX IF NOT EXISTS idx_entry_sheets_user ON entry_sheets(user_id, company_id)",
]

_initialized: Set[str] = set()
_init_lock = threading.Lock()


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_connection(db_path: Path = DB_PATH) -> sqlite3.Connection:
    """Get database connection, creating DB and tables if needed."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    key = str(db_path)
    if key not in _initialized:
        with _init_lock:
            if key not in _initialized:
                try:
                    _init_tables(conn)
                    _run_migrations(conn)
                except sqlite3.Error:
                    conn.close()
                    raise
                _initialized.add(key)
    return conn


def _init_tables(conn: sqlite3.Connection) -> None:
    """Initialize database tables."""
    for table, (columns, constraints) in SCHEMA.items():
        body = ",\n    ".join(
            [f"{name} {decl}" for name, decl in columns] + constraints
        )
        conn.execute(f"CREATE TABLE IF NOT EXISTS {table} (\n    {body}\n)")
    conn.commit()


def _run_migrations(conn: sqlite3.Connection) -> None:
    """Add columns introduced after a table was first created."""
    for table, (columns, _) in SCHEMA.items():
        cursor = conn.execute(f"PRAGMA table_info({table})")
        existing = {row["name"] for row in cursor.fetchall()}

        for name, decl in columns:
            if name in existing:
                continue
            # ALTER TABLE cannot add NOT NULL or key constraints without a default
            column_type = decl if "DEFAULT" in decl else decl.split()[0]
            logger.info("[Migration] Adding %s.%s", table, name)
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} {column_type}")

    for statement in INDEXES:
        conn.execute(statement)
    conn.commit()


def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    return {key: row[key] for key in row.keys()}


class LocalProvider(Provider):
    """Provider backed by a SQLite file and a directory of stored objects."""

    def __init__(self, db_path: Path = DB_PATH, storage_dir: Path = STORAGE_DIR):
        self.db_path = Path(db_path)
        self.storage_dir = Path(storage_dir)

    @contextmanager
    def _connect(self, table: str, operation: str) -> Iterator[sqlite3.Connection]:
        if table not in SCHEMA or table == "users":
            raise ProviderError(f"Unknown table: {table}", table, operation)

        conn = None
        try:
            conn = get_connection(self.db_path)
            yield conn
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            if conn is not None:
                conn.rollback()
            logger.error("SQLite %s on %s failed: %s", operation, table, e)
            raise ProviderError(str(e), table, operation) from e
        finally:
            if conn is not None:
                conn.close()

    def _check_columns(self, table: str, names: Iterable[str], operation: str) -> None:
        known = {name for name, _ in SCHEMA[table][0]}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ProviderError(
                f"Unknown column(s) on {table}: {', '.join(unknown)}", table, operation
            )

    def _where(self, filters: Mapping[str, Any]) -> Tuple[str, List[Any]]:
        clauses = []
        params: List[Any] = []
        for column, value in encode_fields(filters).items():
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(value)
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        with self._connect(table, "select") as conn:
            self._check_columns(table, list(filters) + ([order_by] if order_by else []), "select")
            where, params = self._where(filters)
            query = f"SELECT * FROM {table}{where}"
            if order_by:
                # Match PostgreSQL: NULLS LAST ascending, NULLS FIRST descending
                direction = "ASC" if ascending else "DESC"
                query += f" ORDER BY ({order_by} IS NULL) {direction}, {order_by} {direction}, rowid ASC"
            else:
                query += " ORDER BY rowid ASC"
            rows = conn.execute(query, params).fetchall()
        return [_row_to_dict(row) for row in rows]

    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        values = encode_fields(row)
        columns = {name for name, _ in SCHEMA.get(table, ([], []))[0]}
        values.setdefault("id", str(uuid.uuid4()))
        now = utc_now()
        for stamp in ("created_at", "updated_at"):
            if stamp in columns:
                values.setdefault(stamp, now)

        with self._connect(table, "insert") as conn:
            self._check_columns(table, values, "insert")
            names = ", ".join(values)
            placeholders = ", ".join("?" * len(values))
            conn.execute(
                f"INSERT INTO {table} ({names}) VALUES ({placeholders})",
                list(values.values()),
            )
            stored = conn.execute(
                f"SELECT * FROM {table} WHERE id = ?", (values["id"],)
            ).fetchone()
        return _row_to_dict(stored)

    def update(
        self, table: str, filters: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> List[Dict[str, Any]]:
        if not filters:
            raise ProviderError("Refusing to update without filters", table, "update")
        values = encode_fields(fields)
        if not values:
            return []

        with self._connect(table, "update") as conn:
            self._check_columns(table, list(filters) + list(values), "update")
            where, params = self._where(filters)
            rowids = [
                row[0] for row in conn.execute(f"SELECT rowid FROM {table}{where}", params)
            ]
            if not rowids:
                return []

            assignments = ", ".join(f"{name} = ?" for name in values)
            marks = ", ".join("?" * len(rowids))
            conn.execute(
                f"UPDATE {table} SET {assignments} WHERE rowid IN ({marks})",
                list(values.values()) + rowids,
            )
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE rowid IN ({marks}) ORDER BY rowid", rowids
            ).fetchall()
        return [_row_to_dict(row) for row in rows]

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ProviderError("Refusing to delete without filters", table, "delete")
        with self._connect(table, "delete") as conn:
            self._check_columns(table, filters, "delete")
            where, params = self._where(filters)
            conn.execute(f"DELETE FROM {table}{where}", params)

    # ============ Object storage ============

    def _object_path(self, bucket: str, path: str) -> Path:
        root = (self.storage_dir / bucket).resolve()
        target = (root / path).resolve()
        if root not in target.parents:
            raise ProviderError(f"Invalid object path: {path}", bucket, "storage")
        return target

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        target = self._object_path(bucket, path)
        if target.exists():
            raise ProviderError(f"Object already exists: {path}", bucket, "upload")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %s (%s, %d bytes)", path, content_type, len(data))

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        for path in paths:
            target = self._object_path(bucket, path)
            if target.exists():
                target.unlink()

    def public_url(self, bucket: str, path: str) -> str:
        return str(self._object_path(bucket, path))
