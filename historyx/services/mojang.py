import logging
import re
import uuid as uuid_lib
from typing import Dict, Optional

import aiohttp

from historyx.models.errors import PlayerLookupError


log = logging.getLogger(__name__)

PROFILE_URL = "https://api.mojang.com/users/profiles/minecraft/{name}"
_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{1,16}$")


def normalize_uuid(raw: Optional[str]) -> Optional[str]:
    """Return ``raw`` as a lowercase dashed UUID, or None if it is not one."""
    if not raw:
        return None
    try:
        return str(uuid_lib.UUID(raw.strip()))
    except ValueError:
        return None


def undashed(value: str) -> str:
    return value.replace("-", "").lower()


class MojangResolver:
    def __init__(self, session: Optional[aiohttp.ClientSession] = None, *, profile_url: str = PROFILE_URL) -> None:
        self._session = session
        self._profile_url = profile_url
        self._cache: Dict[str, str] = {}

    async def resolve(self, player: str) -> Optional[str]:
        as_uuid = normalize_uuid(player)
        if as_uuid is not None:
            return as_uuid
        name = player.strip()
        if not _USERNAME_PATTERN.match(name):
            return None
        key = name.lower()
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        if self._session is not None:
            resolved = await self._fetch(self._session, name)
        else:
            async with aiohttp.ClientSession() as session:
                resolved = await self._fetch(session, name)
        if resolved is not None:
            self._cache[key] = resolved
        return resolved

    async def _fetch(self, session: aiohttp.ClientSession, name: str) -> Optional[str]:
        url = self._profile_url.format(name=name)
        try:
            async with session.get(url) as response:
                if response.status in (204, 404):
                    log.debug("No Mojang profile for %s", name)
                    return None
                if response.status != 200:
                    raise PlayerLookupError(f"Mojang API returned HTTP {response.status} for {name}")
                data = await response.json()
        except aiohttp.ClientError as exc:
            raise PlayerLookupError(f"Could not reach the Mojang API: {exc}") from exc
        resolved = normalize_uuid(data.get("id")) if isinstance(data, dict) else None
        if resolved is None:
            raise PlayerLookupError(f"Mojang API returned an unexpected profile for {name}")
        return resolved
