from dataclasses import dataclass
from typing import Dict, List, Optional
import logging
import sqlite3

from historyx.models.errors import HistoryFetchError
from historyx.models.punishments import EntrySource, PunishmentEntry
from historyx.services.database import Database
from historyx.services.extender import BanPluginExtender


log = logging.getLogger(__name__)

TABLES: Dict[str, str] = {
    "ban": "bans",
    "mute": "mutes",
    "warn": "warnings",
    "kick": "kicks",
}

# LiteBans writes "#" where it has no value for an identity column.
_UNKNOWN = "#"


@dataclass
class LiteBansRecord:
    type: str
    id: int
    uuid: Optional[str]
    ip: Optional[str]
    reason: Optional[str]
    banned_by_uuid: Optional[str]
    banned_by_name: Optional[str]
    removed_by_uuid: Optional[str]
    removed_by_name: Optional[str]
    removed_by_reason: Optional[str]
    time: int
    until: int
    server_scope: Optional[str]
    server_origin: Optional[str]
    silent: bool
    ipban: bool
    active: bool


def _identity(value: Optional[str]) -> Optional[str]:
    if value is None or value == _UNKNOWN:
        return None
    return value


class LiteBansExtender(BanPluginExtender[LiteBansRecord]):
    source = EntrySource.LITEBANS

    def __init__(self, db: Database, table_prefix: str = "litebans_") -> None:
        self._db = db
        self._prefix = table_prefix

    def _row_to_record(self, punishment_type: str, row: sqlite3.Row) -> LiteBansRecord:
        keys = row.keys()

        def column(name: str, default=None):
            return row[name] if name in keys else default

        return LiteBansRecord(
            type=punishment_type,
            id=row["id"],
            uuid=column("uuid"),
            ip=column("ip"),
            reason=column("reason"),
            banned_by_uuid=column("banned_by_uuid"),
            banned_by_name=column("banned_by_name"),
            removed_by_uuid=column("removed_by_uuid"),
            removed_by_name=column("removed_by_name"),
            removed_by_reason=column("removed_by_reason"),
            time=int(column("time", 0) or 0),
            until=int(column("until", 0) or 0),
            server_scope=column("server_scope"),
            server_origin=column("server_origin"),
            silent=bool(column("silent", False)),
            ipban=bool(column("ipban", False)),
            active=bool(column("active", False)),
        )

    def get_history(self, uuid: str) -> List[PunishmentEntry]:
        entries: List[PunishmentEntry] = []
        for punishment_type, table in TABLES.items():
            try:
                rows = self._db.query_all(
                    f"SELECT * FROM {self._prefix}{table} WHERE uuid = ? ORDER BY time ASC",
                    (uuid,),
                )
            except sqlite3.Error as exc:
                raise HistoryFetchError(self.source.value, f"could not read {self._prefix}{table}", exc) from exc
            for row in rows:
                entries.append(self.create_entry(self._row_to_record(punishment_type, row), self.source))
        log.debug("Loaded %d LiteBans entries for %s", len(entries), uuid)
        return entries

    def create_entry(self, punishment: LiteBansRecord, source: EntrySource) -> PunishmentEntry:
        duration = punishment.until - punishment.time if punishment.until > 0 else 0
        return PunishmentEntry(
            id=punishment.id,
            type=punishment.type,
            uuid=_identity(punishment.uuid),
            ip=_identity(punishment.ip),
            reason=punishment.reason or "",
            executor_uuid=punishment.banned_by_uuid,
            executor_name=punishment.banned_by_name,
            date_start=punishment.time,
            date_end=punishment.until,
            server_scope=punishment.server_scope or "*",
            server_origin=punishment.server_origin or "",
            silent=punishment.silent,
            ipban=punishment.ipban,
            active=punishment.active,
            duration=duration,
            source=source,
            removed_by_uuid=punishment.removed_by_uuid,
            removed_by_name=punishment.removed_by_name,
            removal_reason=punishment.removed_by_reason,
        )
