from dataclasses import dataclass
from typing import List, Optional, Set, Tuple
import logging
import sqlite3

from historyx.models.errors import HistoryFetchError
from historyx.models.punishments import EntrySource, PunishmentEntry, current_millis
from historyx.services.database import Database
from historyx.services.extender import BanPluginExtender
from historyx.services.mojang import normalize_uuid, undashed


log = logging.getLogger(__name__)

TYPE_LABELS = {
    "BAN": "ban",
    "TEMP_BAN": "ban",
    "IP_BAN": "ban",
    "TEMP_IP_BAN": "ban",
    "MUTE": "mute",
    "TEMP_MUTE": "mute",
    "WARNING": "warn",
    "TEMP_WARNING": "warn",
    "KICK": "kick",
    "NOTE": "note",
}

# Never stored in the Punishments table, so they are never "active".
ONE_SHOT_TYPES = {"KICK", "NOTE"}


@dataclass
class AdvancedBanRecord:
    id: int
    name: Optional[str]
    uuid: str
    reason: Optional[str]
    operator: Optional[str]
    punishment_type: str
    start: int
    end: int
    active: bool
    expired: bool


class AdvancedBanExtender(BanPluginExtender[AdvancedBanRecord]):
    source = EntrySource.ADVANCEDBANS

    def __init__(self, db: Database) -> None:
        self._db = db

    def _active_keys(self, target: str) -> Set[Tuple[str, int]]:
        rows = self._db.query_all(
            "SELECT punishmentType, start FROM Punishments WHERE uuid = ?",
            (target,),
        )
        return {(row["punishmentType"], int(row["start"])) for row in rows}

    def _row_to_record(self, row: sqlite3.Row, active_keys: Set[Tuple[str, int]], now: int) -> AdvancedBanRecord:
        punishment_type = str(row["punishmentType"]).upper()
        start = int(row["start"])
        end = int(row["end"])
        active = (punishment_type, start) in active_keys
        if punishment_type in ONE_SHOT_TYPES:
            expired = True
        else:
            expired = not active and 0 < end <= now
        return AdvancedBanRecord(
            id=row["id"],
            name=row["name"],
            uuid=row["uuid"],
            reason=row["reason"],
            operator=row["operator"],
            punishment_type=punishment_type,
            start=start,
            end=end,
            active=active,
            expired=expired,
        )

    def get_history(self, uuid: str) -> List[PunishmentEntry]:
        target = undashed(uuid)
        now = current_millis()
        try:
            active_keys = self._active_keys(target)
            rows = self._db.query_all(
                "SELECT * FROM PunishmentHistory WHERE uuid = ? ORDER BY start ASC",
                (target,),
            )
        except sqlite3.Error as exc:
            raise HistoryFetchError(self.source.value, "could not read punishment tables", exc) from exc
        entries = [self.create_entry(self._row_to_record(row, active_keys, now), self.source) for row in rows]
        log.debug("Loaded %d AdvancedBan entries for %s", len(entries), uuid)
        return entries

    def create_entry(self, punishment: AdvancedBanRecord, source: EntrySource) -> PunishmentEntry:
        ipban = "IP" in punishment.punishment_type
        account = normalize_uuid(punishment.uuid)
        # IP punishments keep the address in the uuid column.
        ip = punishment.uuid if account is None else None
        duration = punishment.end - punishment.start if punishment.end > 0 else 0
        return PunishmentEntry(
            id=punishment.id,
            type=TYPE_LABELS.get(punishment.punishment_type, punishment.punishment_type.lower()),
            uuid=account,
            ip=ip,
            reason=punishment.reason or "",
            executor_uuid=None,
            executor_name=punishment.operator,
            date_start=punishment.start,
            date_end=punishment.end,
            server_scope="*",
            server_origin="",
            silent=False,
            ipban=ipban,
            active=punishment.active,
            duration=duration,
            source=source,
            ab_expired=punishment.expired,
        )
