"""
Tests for historyx/services/mojang.py

The aiohttp session is replaced with a small fake so no network is used.
"""

import aiohttp
import pytest

from conftest import PLAYER_UUID
from historyx.models.errors import PlayerLookupError
from historyx.services.mojang import MojangResolver, normalize_uuid, undashed


class FakeResponse:
    def __init__(self, status, payload=None):
        self.status = status
        self._payload = payload

    async def json(self):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error
        self.urls = []

    def get(self, url):
        self.urls.append(url)
        if self._error is not None:
            raise self._error
        return self._response


class TestNormalizeUuid:
    """Tests for UUID helpers."""

    def test_dashed(self):
        assert normalize_uuid(PLAYER_UUID.upper()) == PLAYER_UUID

    def test_undashed(self):
        assert normalize_uuid(PLAYER_UUID.replace("-", "")) == PLAYER_UUID

    @pytest.mark.parametrize("raw", [None, "", "Notch", "127.0.0.1"])
    def test_not_a_uuid(self, raw):
        assert normalize_uuid(raw) is None

    def test_undashed_helper(self):
        assert undashed(PLAYER_UUID.upper()) == "069a79f444e94726a5befca90e38aaf5"


class TestMojangResolver:
    """Tests for MojangResolver.resolve."""

    async def test_uuid_skips_network(self):
        session = FakeSession()
        resolver = MojangResolver(session)
        assert await resolver.resolve(PLAYER_UUID) == PLAYER_UUID
        assert session.urls == []

    async def test_name_is_resolved(self):
        session = FakeSession(FakeResponse(200, {"id": "069a79f444e94726a5befca90e38aaf5", "name": "Notch"}))
        resolver = MojangResolver(session)
        assert await resolver.resolve("Notch") == PLAYER_UUID
        assert session.urls == ["https://api.mojang.com/users/profiles/minecraft/Notch"]

    async def test_resolved_names_are_cached(self):
        session = FakeSession(FakeResponse(200, {"id": "069a79f444e94726a5befca90e38aaf5"}))
        resolver = MojangResolver(session)
        await resolver.resolve("Notch")
        assert await resolver.resolve("notch") == PLAYER_UUID
        assert len(session.urls) == 1

    @pytest.mark.parametrize("status", [204, 404])
    async def test_unknown_name(self, status):
        resolver = MojangResolver(FakeSession(FakeResponse(status)))
        assert await resolver.resolve("NoSuchPlayer") is None

    async def test_invalid_name_skips_network(self):
        session = FakeSession()
        resolver = MojangResolver(session)
        assert await resolver.resolve("not a name!") is None
        assert session.urls == []

    async def test_server_error(self):
        resolver = MojangResolver(FakeSession(FakeResponse(500)))
        with pytest.raises(PlayerLookupError):
            await resolver.resolve("Notch")

    async def test_connection_error(self):
        resolver = MojangResolver(FakeSession(error=aiohttp.ClientConnectionError("down")))
        with pytest.raises(PlayerLookupError):
            await resolver.resolve("Notch")

    async def test_unexpected_payload(self):
        resolver = MojangResolver(FakeSession(FakeResponse(200, {"name": "Notch"})))
        with pytest.raises(PlayerLookupError):
            await resolver.resolve("Notch")
