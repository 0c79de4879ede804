from dataclasses import dataclass
from typing import List, Optional, Set
import ipaddress
import logging
import sqlite3
import uuid as uuid_lib

from historyx.models.errors import HistoryFetchError
from historyx.models.punishments import EntrySource, PunishmentEntry
from historyx.services.database import Database
from historyx.services.extender import BanPluginExtender


log = logging.getLogger(__name__)

TYPE_LABELS = {0: "ban", 1: "mute", 2: "warn", 3: "kick"}

VICTIM_PLAYER = 0
VICTIM_ADDRESS = 1
VICTIM_COMPOSITE = 2

CONSOLE_UUID = uuid_lib.UUID(int=0)
CONSOLE_NAME = "Console"


@dataclass
class LibertyBansRecord:
    id: int
    type: int
    victim_type: int
    victim_uuid: Optional[bytes]
    victim_address: Optional[bytes]
    operator: Optional[bytes]
    reason: Optional[str]
    scope: Optional[str]
    start: int
    end: int
    active: bool


def _address(raw: Optional[bytes]) -> Optional[str]:
    if not raw:
        return None
    return str(ipaddress.ip_address(bytes(raw)))


def _account(raw: Optional[bytes]) -> Optional[uuid_lib.UUID]:
    if not raw:
        return None
    return uuid_lib.UUID(bytes=bytes(raw))


class LibertyBansExtender(BanPluginExtender[LibertyBansRecord]):
    source = EntrySource.LIBERTYBANS

    def __init__(self, db: Database) -> None:
        self._db = db

    def _active_ids(self, victim: bytes) -> Set[int]:
        rows = self._db.query_all(
            "SELECT id FROM libertybans_simple_active WHERE victim_uuid = ?",
            (victim,),
        )
        return {int(row["id"]) for row in rows}

    def get_history(self, uuid: str) -> List[PunishmentEntry]:
        victim = uuid_lib.UUID(uuid).bytes
        try:
            active_ids = self._active_ids(victim)
            rows = self._db.query_all(
                "SELECT * FROM libertybans_simple_history WHERE victim_uuid = ? ORDER BY start ASC",
                (victim,),
            )
        except sqlite3.Error as exc:
            raise HistoryFetchError(self.source.value, "could not read history views", exc) from exc
        entries: List[PunishmentEntry] = []
        for row in rows:
            record = LibertyBansRecord(
                id=row["id"],
                type=int(row["type"]),
                victim_type=int(row["victim_type"]),
                victim_uuid=row["victim_uuid"],
                victim_address=row["victim_address"],
                operator=row["operator"],
                reason=row["reason"],
                scope=row["scope"],
                start=int(row["start"]),
                end=int(row["end"]),
                active=int(row["id"]) in active_ids,
            )
            try:
                entries.append(self.create_entry(record, self.source))
            except ValueError as exc:
                raise HistoryFetchError(self.source.value, f"malformed punishment {record.id}", exc) from exc
        log.debug("Loaded %d LibertyBans entries for %s", len(entries), uuid)
        return entries

    def create_entry(self, punishment: LibertyBansRecord, source: EntrySource) -> PunishmentEntry:
        account = _account(punishment.victim_uuid) if punishment.victim_type != VICTIM_ADDRESS else None
        address = _address(punishment.victim_address) if punishment.victim_type != VICTIM_PLAYER else None
        operator = _account(punishment.operator)
        if operator is None or operator == CONSOLE_UUID:
            executor_uuid, executor_name = None, CONSOLE_NAME
        else:
            executor_uuid, executor_name = str(operator), None
        # Stored in seconds, entries use milliseconds.
        date_start = punishment.start * 1000
        date_end = punishment.end * 1000
        duration = date_end - date_start if punishment.end > 0 else 0
        return PunishmentEntry(
            id=punishment.id,
            type=TYPE_LABELS.get(punishment.type, str(punishment.type)),
            uuid=str(account) if account is not None else None,
            ip=address,
            reason=punishment.reason or "",
            executor_uuid=executor_uuid,
            executor_name=executor_name,
            date_start=date_start,
            date_end=date_end,
            server_scope=punishment.scope or "*",
            server_origin="",
            silent=False,
            ipban=punishment.victim_type in (VICTIM_ADDRESS, VICTIM_COMPOSITE),
            active=punishment.active,
            duration=duration,
            source=source,
        )
