from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import logging

from historyx.models.errors import HistoryFetchError
from historyx.models.punishments import EntrySource, PunishmentEntry, current_millis
from historyx.services.extender import BanPluginExtender


log = logging.getLogger(__name__)


@dataclass
class HistorySummary:
    total: int = 0
    active: int = 0
    removed: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)


def is_in_effect(entry: PunishmentEntry, now: Optional[int] = None) -> bool:
    if entry.source is EntrySource.LITEBANS:
        return entry.is_actually_active(now)
    # Other sources keep `active` accurate but may lag behind the clock.
    if not entry.active:
        return False
    if entry.is_permanent():
        return True
    return entry.remaining_millis(now) > 0


class HistoryService:
    def __init__(self, extenders: Iterable[BanPluginExtender]) -> None:
        self._extenders: Dict[EntrySource, BanPluginExtender] = {}
        for extender in extenders:
            self._extenders[extender.source] = extender

    @property
    def sources(self) -> List[EntrySource]:
        return list(self._extenders)

    def get_extender(self, source: EntrySource) -> Optional[BanPluginExtender]:
        return self._extenders.get(source)

    def get_history(self, uuid: str, sources: Optional[Iterable[EntrySource]] = None) -> List[PunishmentEntry]:
        wanted = list(sources) if sources is not None else self.sources
        entries: List[PunishmentEntry] = []
        for source in wanted:
            extender = self._extenders.get(source)
            if extender is None:
                continue
            try:
                entries.extend(extender.get_history(uuid))
            except HistoryFetchError:
                log.exception("Failed to load %s history for %s", source.value, uuid)
                raise
            except Exception as exc:
                log.exception("Unexpected error loading %s history for %s", source.value, uuid)
                raise HistoryFetchError(source.value, "unexpected error while loading history", exc) from exc
        entries.sort(key=lambda entry: entry.date_start, reverse=True)
        return entries

    def summarize(self, entries: Iterable[PunishmentEntry], now: Optional[int] = None) -> HistorySummary:
        if now is None:
            now = current_millis()
        summary = HistorySummary()
        counts: Counter = Counter()
        for entry in entries:
            summary.total += 1
            counts[entry.type] += 1
            if entry.was_removed():
                summary.removed += 1
            elif is_in_effect(entry, now):
                summary.active += 1
        summary.by_type = dict(counts)
        return summary
