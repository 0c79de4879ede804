from abc import ABC, abstractmethod
from typing import Generic, List, TypeVar

from historyx.models.punishments import EntrySource, PunishmentEntry


T = TypeVar("T")


class BanPluginExtender(ABC, Generic[T]):
    """Reads punishment history out of one punishment plugin.

    ``T`` is the plugin's own record shape. Implementations return an empty
    list when a player has no history and raise
    :class:`~historyx.models.errors.HistoryFetchError` only when the
    underlying data cannot be read.
    """

    source: EntrySource

    @abstractmethod
    def get_history(self, uuid: str) -> List[PunishmentEntry]:
        ...

    @abstractmethod
    def create_entry(self, punishment: T, source: EntrySource) -> PunishmentEntry:
        """Map a native record to an entry. Must not perform I/O."""
        ...
