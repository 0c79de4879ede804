from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple
import datetime
import time

from historyx.models.errors import InvalidEntryError


MILLIS_PER_DAY = 86_400_000
MILLIS_PER_HOUR = 3_600_000
MILLIS_PER_MINUTE = 60_000
MILLIS_PER_SECOND = 1_000

# Pinned so that "(MMM dd)" does not follow the process locale.
_MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def current_millis() -> int:
    return int(time.time() * 1000)


def _split(millis: int, unit: int) -> Tuple[int, int]:
    # Truncates toward zero, so a negative input stays negative in every field.
    quotient = abs(millis) // unit
    if millis < 0:
        quotient = -quotient
    return quotient, millis - quotient * unit


def _decompose(millis: int) -> Tuple[int, int, int, int]:
    days, millis = _split(millis, MILLIS_PER_DAY)
    hours, millis = _split(millis, MILLIS_PER_HOUR)
    minutes, millis = _split(millis, MILLIS_PER_MINUTE)
    seconds, _ = _split(millis, MILLIS_PER_SECOND)
    return days, hours, minutes, seconds


def format_compact(millis: int) -> str:
    """Render a duration as its largest non-zero unit plus at most one smaller unit.

    ``90_061_000`` becomes ``"1d 1h"``; anything under a second becomes ``"0s"``.
    Negative input is not clamped: no unit is positive, so the seconds branch
    is taken and the result is e.g. ``"-1s"``.
    """
    days, hours, minutes, seconds = _decompose(millis)
    if days > 0:
        if hours > 0:
            return f"{days}d {hours}h"
        return f"{days}d"
    if hours > 0:
        if minutes > 0:
            return f"{hours}h {minutes}m"
        return f"{hours}h"
    if minutes > 0:
        if seconds > 0:
            return f"{minutes}m {seconds}s"
        return f"{minutes}m"
    return f"{seconds}s"


def format_digital(millis: int) -> str:
    days, hours, minutes, seconds = _decompose(millis)
    return f"{days:02d}:{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_timestamp(millis: int, tz: Optional[datetime.tzinfo] = None) -> str:
    """Format as ``dd/MM/yyyy HH:mm:ss (MMM dd)``, e.g. ``05/12/2020 12:34:56 (Dec 05)``.

    Uses the local system zone unless ``tz`` is given.
    """
    moment = datetime.datetime.fromtimestamp(millis // 1000, tz=tz)
    month = _MONTH_ABBREVIATIONS[moment.month - 1]
    return f"{moment:%d/%m/%Y %H:%M:%S} ({month} {moment:%d})"


class EntrySource(Enum):
    LITEBANS = "litebans"
    ADVANCEDBANS = "advancedbans"
    LIBERTYBANS = "libertybans"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, raw: str) -> "EntrySource":
        key = raw.strip().lower()
        for member in cls:
            if member.value == key or member.name.lower() == key:
                return member
        raise ValueError(f"Unknown entry source: {raw!r}")


@dataclass(frozen=True)
class PunishmentEntry:
    """A single punishment taken from a player's history.

    ``uuid`` is None for IP-only punishments and ``ip`` is None for
    account-only ones; one of them must be set. ``date_end <= 0`` marks a
    permanent punishment. ``active`` is whatever the source plugin reports and
    is only trustworthy for some sources, see :meth:`was_removed`.
    """

    id: int
    type: str
    uuid: Optional[str]
    ip: Optional[str]
    reason: str
    executor_uuid: Optional[str]
    executor_name: Optional[str]
    date_start: int
    date_end: int
    server_scope: str
    server_origin: str
    silent: bool
    ipban: bool
    active: bool
    duration: int
    source: EntrySource
    removed_by_uuid: Optional[str] = None
    removed_by_name: Optional[str] = None
    removal_reason: Optional[str] = None
    ab_expired: bool = False

    def __post_init__(self) -> None:
        if self.uuid is None and self.ip is None:
            raise InvalidEntryError(f"Entry {self.id} targets neither an account nor an IP")

    def with_removal(
        self,
        removed_by_uuid: Optional[str],
        removed_by_name: Optional[str],
        removal_reason: Optional[str] = None,
    ) -> "PunishmentEntry":
        return replace(
            self,
            removed_by_uuid=removed_by_uuid,
            removed_by_name=removed_by_name,
            removal_reason=removal_reason,
        )

    def is_permanent(self) -> bool:
        return self.date_end <= 0

    def is_actually_active(self, now: Optional[int] = None) -> bool:
        """Check ``active`` against the expiry date as well.

        LiteBans leaves ``active`` set on bans that simply ran out, so for its
        entries this is the reliable check.
        """
        if now is None:
            now = current_millis()
        return self.active and (self.is_permanent() or self.date_end > now)

    def was_removed(self) -> bool:
        # AdvancedBan clears `active` on expiry as well as on removal, ab_expired tells them apart.
        if self.source is EntrySource.ADVANCEDBANS:
            return not self.active and not self.ab_expired
        # Some LiteBans rows store the text "null" instead of NULL.
        return (
            self.removed_by_name is not None
            and self.removed_by_uuid is not None
            and self.removed_by_uuid.lower() != "null"
        )

    def duration_string(self) -> str:
        if self.duration <= 0:
            return "Permanent"
        return format_compact(self.duration)

    def remaining_millis(self, now: Optional[int] = None) -> int:
        if now is None:
            now = current_millis()
        return self.date_end - now

    def remaining_string(self, now: Optional[int] = None) -> str:
        return format_compact(self.remaining_millis(now))

    def remaining_string_digital(self, now: Optional[int] = None) -> str:
        return format_digital(self.remaining_millis(now))

    def date_start_formatted(self, tz: Optional[datetime.tzinfo] = None) -> str:
        return format_timestamp(self.date_start, tz)

    def date_end_formatted(self, tz: Optional[datetime.tzinfo] = None) -> str:
        return format_timestamp(self.date_end, tz)
