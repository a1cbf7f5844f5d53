import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import datetime
from pathlib import Path

from fncli import cli

from . import config
from .core.errors import StorageError

MIGRATIONS_TABLE = "_migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"

Migration = tuple[str, str]

logger = logging.getLogger(__name__)


def _connect(db_path: Path, autocommit: bool = False) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        db_path,
        timeout=config.get_busy_timeout(),
        isolation_level=None if autocommit else "DEFERRED",
    )
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


class Store:
    """Owns the single sqlite connection the engine works against.

    Every engine operation runs inside `transaction()`. BEGIN IMMEDIATE takes the
    write lock up front, so read-modify-write sequences on a habit never interleave
    with another writer. Nested calls join the outer transaction.
    """

    def __init__(self, db_path: Path):
        self.path = db_path
        try:
            self.conn = _connect(db_path, autocommit=True)
        except sqlite3.Error as e:
            raise StorageError(f"cannot open {db_path}: {e}") from e
        self._depth = 0

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _rollback(self) -> None:
        if self.conn.in_transaction:
            self.conn.execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        if self._depth:
            self._depth += 1
            try:
                yield self.conn
            finally:
                self._depth -= 1
            return

        try:
            self.conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StorageError(f"cannot begin transaction: {e}") from e
        self._depth = 1
        try:
            yield self.conn
        except sqlite3.Error as e:
            self._rollback()
            raise StorageError(str(e)) from e
        except BaseException:
            self._rollback()
            raise
        else:
            try:
                self.conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback()
                raise StorageError(f"commit failed: {e}") from e
        finally:
            self._depth = 0


@contextmanager
def open_store(db_path: Path | None = None) -> Iterator[Store]:
    """Apply pending migrations, then hand out a store for the life of the block."""
    db_path = db_path if db_path else config.DB_PATH
    init(db_path)
    store = Store(db_path)
    try:
        yield store
    finally:
        store.close()


def _backup_target(kind: str, tag: str) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    folder = config.BACKUP_DIR / kind
    folder.mkdir(parents=True, exist_ok=True)
    return folder / f"cadence.{tag}.{stamp}.db"


def _copy_database(src: Path, dest: Path) -> None:
    """Copy src over dest with sqlite's online backup, WAL pages included."""
    with (
        closing(sqlite3.connect(src, timeout=config.get_busy_timeout())) as source,
        closing(sqlite3.connect(dest)) as target,
    ):
        source.backup(target)


def _snapshot(db_path: Path, kind: str, tag: str) -> Path:
    path = _backup_target(kind, tag)
    try:
        _copy_database(db_path, path)
    except sqlite3.Error:
        path.unlink(missing_ok=True)
        raise
    return path


def _row_counts(conn: sqlite3.Connection) -> dict[str, int]:
    """Rows per data table, leaving out sqlite internals and the migration ledger."""
    names = [
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' AND name != ?",
            (MIGRATIONS_TABLE,),
        )
    ]
    return {name: conn.execute(f'SELECT COUNT(*) FROM "{name}"').fetchone()[0] for name in names}  # noqa: S608


def shrunk_tables(before: dict[str, int], after: dict[str, int]) -> list[str]:
    """Tables holding fewer rows after than before. A dropped table counts as empty."""
    return sorted(table for table, count in before.items() if after.get(table, 0) < count)


def load_migrations() -> list[Migration]:
    return [(sql_file.stem, sql_file.read_text()) for sql_file in sorted(MIGRATIONS_DIR.glob("*.sql"))]


def applied_migrations(conn: sqlite3.Connection) -> set[str]:
    try:
        rows = conn.execute(f"SELECT name FROM {MIGRATIONS_TABLE}").fetchall()  # noqa: S608
    except sqlite3.OperationalError:
        return set()
    return {row[0] for row in rows}


def _apply_migrations(conn: sqlite3.Connection, db_path: Path) -> list[str]:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} "
        "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
    )
    conn.commit()

    applied = applied_migrations(conn)
    pending = [(n, sql) for n, sql in load_migrations() if n not in applied]
    if not pending:
        return []

    backup_path = _snapshot(db_path, "migrations", pending[0][0]) if applied else None

    for name, sql in pending:
        before = _row_counts(conn)
        try:
            conn.executescript(sql)
            lost = shrunk_tables(before, _row_counts(conn))
            if lost:
                raise StorageError(f"migration {name} lost rows in {', '.join(lost)}")
            conn.execute(f"INSERT OR IGNORE INTO {MIGRATIONS_TABLE} (name) VALUES (?)", (name,))  # noqa: S608
            conn.commit()
        except Exception:
            conn.rollback()
            logger.exception("migration %s failed", name)
            if backup_path:
                conn.close()
                _copy_database(backup_path, db_path)
            raise
        logger.info("applied migration %s", name)

    if backup_path and backup_path.exists():
        backup_path.unlink()
    return [name for name, _ in pending]


def init(db_path: Path | None = None) -> list[str]:
    """Bring the schema up to date. Runs once at startup, before any store is opened."""
    db_path = db_path if db_path else config.DB_PATH
    try:
        conn = _connect(db_path)
    except sqlite3.Error as e:
        raise StorageError(f"cannot open {db_path}: {e}") from e
    try:
        return _apply_migrations(conn, db_path)
    except sqlite3.Error as e:
        raise StorageError(f"migration failed: {e}") from e
    finally:
        conn.close()


def backup(db_path: Path | None = None) -> dict[str, object]:
    db_path = db_path if db_path else config.DB_PATH
    init(db_path)
    path = _snapshot(db_path, "manual", load_migrations()[-1][0])
    with closing(sqlite3.connect(path)) as conn:
        rows = _row_counts(conn)
    return {"path": path, "rows": sum(rows.values()), "by_table": rows}


@cli("cadence db", name="migrate")
def db_migrate():
    """Run pending database migrations"""
    applied = init()
    print(f"{len(applied)} migrations applied" if applied else "schema up to date")


@cli("cadence db", name="backup")
def db_backup():
    """Create database backup"""
    result = backup()
    print(str(result["path"]))
    print(f"  {result['rows']} rows")
