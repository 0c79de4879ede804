import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable, List, Optional
import threading


log = logging.getLogger(__name__)


class Database:
    def __init__(self, path: Path, *, read_only: bool = False, schema: Optional[str] = None) -> None:
        self.path = path
        self.read_only = read_only
        self._lock = threading.Lock()
        if read_only:
            uri = f"{Path(path).resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        log.debug("Opened database %s (read_only=%s)", path, read_only)
        if schema:
            self.ensure_schema(schema)

    def ensure_schema(self, script: str) -> None:
        with self._lock:
            cur = self._conn.cursor()
            cur.executescript(script)
            self._conn.commit()

    def execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            cur = self._conn.execute(sql, tuple(params))
            self._conn.commit()
            return cur

    def query_all(self, sql: str, params: Iterable[Any] = ()) -> List[sqlite3.Row]:
        with self._lock:
            cur = self._conn.execute(sql, tuple(params))
            return cur.fetchall()

    def query_one(self, sql: str, params: Iterable[Any] = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            cur = self._conn.execute(sql, tuple(params))
            return cur.fetchone()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
