from typing import List, Optional

import logging
import sqlite3

from historyx.models.errors import HistoryFetchError
from historyx.models.punishments import EntrySource, PunishmentEntry
from historyx.services.database import Database
from historyx.services.extender import BanPluginExtender


log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    uuid TEXT,
    ip TEXT,
    reason TEXT NOT NULL DEFAULT '',
    executor_uuid TEXT,
    executor_name TEXT,
    removed_by_uuid TEXT,
    removed_by_name TEXT,
    removal_reason TEXT,
    date_start INTEGER NOT NULL,
    date_end INTEGER NOT NULL,
    server_scope TEXT NOT NULL DEFAULT '*',
    server_origin TEXT NOT NULL DEFAULT '',
    silent INTEGER NOT NULL DEFAULT 0,
    ipban INTEGER NOT NULL DEFAULT 0,
    active INTEGER NOT NULL DEFAULT 1,
    duration INTEGER NOT NULL DEFAULT 0,
    CHECK (uuid IS NOT NULL OR ip IS NOT NULL)
);

CREATE INDEX IF NOT EXISTS idx_entries_uuid ON entries (uuid);
"""


class CustomHistoryStore(BanPluginExtender[sqlite3.Row]):
    source = EntrySource.CUSTOM

    def __init__(self, db: Database) -> None:
        self._db = db
        self._db.ensure_schema(SCHEMA)

    def add_entry(self, entry: PunishmentEntry) -> PunishmentEntry:
        cur = self._db.execute(
            """
            INSERT INTO entries (
                id, type, uuid, ip, reason, executor_uuid, executor_name,
                removed_by_uuid, removed_by_name, removal_reason,
                date_start, date_end, server_scope, server_origin,
                silent, ipban, active, duration
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id if entry.id > 0 else None,
                entry.type,
                entry.uuid,
                entry.ip,
                entry.reason,
                entry.executor_uuid,
                entry.executor_name,
                entry.removed_by_uuid,
                entry.removed_by_name,
                entry.removal_reason,
                entry.date_start,
                entry.date_end,
                entry.server_scope,
                entry.server_origin,
                int(entry.silent),
                int(entry.ipban),
                int(entry.active),
                entry.duration,
            ),
        )
        stored = self.get_entry(int(cur.lastrowid))
        log.info("Stored custom %s entry %s", entry.type, cur.lastrowid)
        return stored  # type: ignore[return-value]

    def get_entry(self, entry_id: int) -> Optional[PunishmentEntry]:
        row = self._db.query_one("SELECT * FROM entries WHERE id = ?", (entry_id,))
        if row is None:
            return None
        return self.create_entry(row, self.source)

    def mark_removed(
        self,
        entry_id: int,
        removed_by_uuid: Optional[str],
        removed_by_name: Optional[str],
        removal_reason: Optional[str] = None,
    ) -> Optional[PunishmentEntry]:
        entry = self.get_entry(entry_id)
        if entry is None:
            return None
        self._db.execute(
            """
            UPDATE entries
            SET removed_by_uuid = ?, removed_by_name = ?, removal_reason = ?, active = 0
            WHERE id = ?
            """,
            (removed_by_uuid, removed_by_name, removal_reason, entry_id),
        )
        log.info("Entry %s removed by %s", entry_id, removed_by_name)
        return self.get_entry(entry_id)

    def get_history(self, uuid: str) -> List[PunishmentEntry]:
        try:
            rows = self._db.query_all(
                "SELECT * FROM entries WHERE uuid = ? ORDER BY date_start ASC",
                (uuid,),
            )
        except sqlite3.Error as exc:
            raise HistoryFetchError(self.source.value, "could not read entries", exc) from exc
        return [self.create_entry(row, self.source) for row in rows]

    def create_entry(self, punishment: sqlite3.Row, source: EntrySource) -> PunishmentEntry:
        return PunishmentEntry(
            id=punishment["id"],
            type=punishment["type"],
            uuid=punishment["uuid"],
            ip=punishment["ip"],
            reason=punishment["reason"],
            executor_uuid=punishment["executor_uuid"],
            executor_name=punishment["executor_name"],
            date_start=punishment["date_start"],
            date_end=punishment["date_end"],
            server_scope=punishment["server_scope"],
            server_origin=punishment["server_origin"],
            silent=bool(punishment["silent"]),
            ipban=bool(punishment["ipban"]),
            active=bool(punishment["active"]),
            duration=punishment["duration"],
            source=source,
            removed_by_uuid=punishment["removed_by_uuid"],
            removed_by_name=punishment["removed_by_name"],
            removal_reason=punishment["removal_reason"],
        )
