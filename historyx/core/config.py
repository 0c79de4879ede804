from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import os

from historyx.models.punishments import EntrySource


@dataclass
class BotConfig:
    token: str
    guild_ids: Optional[List[int]]
    owner_ids: Optional[List[int]]
    staff_role_ids: Optional[List[int]]
    sources: List[EntrySource]
    litebans_db: Optional[str]
    litebans_prefix: str
    advancedban_db: Optional[str]
    libertybans_db: Optional[str]
    timezone: Optional[str]
    log_level: str

    def sanitize(self) -> Dict[str, Any]:
        data = asdict(self)
        if "token" in data and data["token"]:
            data["token"] = "****"
        data["sources"] = [source.value for source in self.sources]
        return data


def _parse_int_list(raw: Optional[str]) -> Optional[List[int]]:
    if not raw:
        return None
    values: List[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            values.append(int(part))
        except ValueError:
            continue
    return values or None


def _normalize_list(source: Any) -> Optional[List[int]]:
    if source is None:
        return None
    if isinstance(source, list):
        result: List[int] = []
        for item in source:
            try:
                result.append(int(item))
            except (TypeError, ValueError):
                continue
        return result or None
    if isinstance(source, str):
        return _parse_int_list(source)
    return None


def _parse_sources(source: Any) -> List[EntrySource]:
    if source is None:
        return [EntrySource.CUSTOM]
    if isinstance(source, str):
        names = [part for part in source.split(",") if part.strip()]
    elif isinstance(source, list):
        names = [str(item) for item in source]
    else:
        raise RuntimeError("sources must be a list or a comma separated string")
    try:
        parsed = [EntrySource.parse(name) for name in names]
    except ValueError as exc:
        raise RuntimeError(str(exc)) from exc
    # Keep the configured order, drop duplicates.
    return list(dict.fromkeys(parsed)) or [EntrySource.CUSTOM]


def load_config(config_path: Optional[Path] = None) -> BotConfig:
    if config_path is None:
        base_dir = Path(__file__).resolve().parents[2]
        config_path = base_dir / "config.json"
    file_data: Dict[str, Any] = {}
    if config_path.exists():
        text = config_path.read_text(encoding="utf-8")
        if text.strip():
            file_data = json.loads(text)

    token = os.getenv("DISCORD_TOKEN") or file_data.get("token")
    if not token:
        raise RuntimeError("DISCORD_TOKEN environment variable or token in config.json is required")

    guild_ids = _normalize_list(os.getenv("DISCORD_GUILD_IDS") or file_data.get("guild_ids"))
    owner_ids = _normalize_list(os.getenv("DISCORD_OWNER_IDS") or file_data.get("owner_ids"))

    staff_roles_env = os.getenv("DISCORD_STAFF_ROLE_IDS")
    if staff_roles_env:
        staff_role_ids = _parse_int_list(staff_roles_env)
    else:
        staff_role_ids = _normalize_list(file_data.get("staff_role_ids"))

    sources = _parse_sources(os.getenv("HISTORYX_SOURCES") or file_data.get("sources"))

    litebans_db = os.getenv("HISTORYX_LITEBANS_DB") or file_data.get("litebans_db")
    litebans_prefix = os.getenv("HISTORYX_LITEBANS_PREFIX") or file_data.get("litebans_prefix") or "litebans_"
    advancedban_db = os.getenv("HISTORYX_ADVANCEDBAN_DB") or file_data.get("advancedban_db")
    libertybans_db = os.getenv("HISTORYX_LIBERTYBANS_DB") or file_data.get("libertybans_db")

    for source, path in (
        (EntrySource.LITEBANS, litebans_db),
        (EntrySource.ADVANCEDBANS, advancedban_db),
        (EntrySource.LIBERTYBANS, libertybans_db),
    ):
        if source in sources and not path:
            raise RuntimeError(f"A database path is required for the {source.value} source")

    timezone = os.getenv("HISTORYX_TIMEZONE") or file_data.get("timezone")
    log_level = (os.getenv("HISTORYX_LOG_LEVEL") or file_data.get("log_level") or "INFO").upper()

    return BotConfig(
        token=token,
        guild_ids=guild_ids,
        owner_ids=owner_ids,
        staff_role_ids=staff_role_ids,
        sources=sources,
        litebans_db=litebans_db,
        litebans_prefix=litebans_prefix,
        advancedban_db=advancedban_db,
        libertybans_db=libertybans_db,
        timezone=timezone,
        log_level=log_level,
    )
