"""
HistoryX - Test Fixtures
========================

Shared fixtures for all tests. Plugin databases are built as small SQLite
files under ``tmp_path`` with the same table layout the plugins use.
"""

import sqlite3
import sys
import uuid as uuid_lib
from pathlib import Path

import pytest

# Add the project root to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from historyx.models.punishments import EntrySource, PunishmentEntry  # noqa: E402
from historyx.services.database import Database  # noqa: E402


PLAYER_UUID = "069a79f4-44e9-4726-a5be-fca90e38aaf5"
OTHER_UUID = "853c80ef-3c37-49fd-aa49-938b674adae6"
MOD_UUID = "61699b2e-d327-4a01-9f1e-0ea8c3f06bc6"
ADMIN_UUID = "f7c77d99-9f15-4a66-a87d-c4a51ef30d19"

# Far enough out that "now" never catches up with it.
YEAR_2100_MILLIS = 4_102_444_800_000


def make_entry(**overrides) -> PunishmentEntry:
    fields = dict(
        id=1,
        type="ban",
        uuid=PLAYER_UUID,
        ip="127.0.0.1",
        reason="Hacking",
        executor_uuid=MOD_UUID,
        executor_name="Moderator",
        date_start=1_600_000_000_000,
        date_end=1_600_086_400_000,
        server_scope="*",
        server_origin="lobby",
        silent=False,
        ipban=False,
        active=True,
        duration=86_400_000,
        source=EntrySource.LITEBANS,
    )
    fields.update(overrides)
    return PunishmentEntry(**fields)


@pytest.fixture
def entry_factory():
    return make_entry


# =============================================================================
# LiteBans
# =============================================================================

LITEBANS_COLUMNS = """
    id INTEGER PRIMARY KEY,
    uuid TEXT,
    ip TEXT,
    reason TEXT,
    banned_by_uuid TEXT,
    banned_by_name TEXT,
    removed_by_uuid TEXT,
    removed_by_name TEXT,
    removed_by_reason TEXT,
    time INTEGER,
    until INTEGER,
    server_scope TEXT,
    server_origin TEXT,
    silent INTEGER,
    ipban INTEGER,
    active INTEGER
"""


def _insert_litebans(conn, table, *rows):
    conn.executemany(
        f"""
        INSERT INTO {table} (
            id, uuid, ip, reason, banned_by_uuid, banned_by_name,
            removed_by_uuid, removed_by_name, removed_by_reason,
            time, until, server_scope, server_origin, silent, ipban, active
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )


@pytest.fixture
def litebans_db(tmp_path):
    path = tmp_path / "litebans.db"
    conn = sqlite3.connect(path)
    for table in ("bans", "mutes", "warnings", "kicks"):
        conn.execute(f"CREATE TABLE litebans_{table} ({LITEBANS_COLUMNS})")
    _insert_litebans(
        conn,
        "litebans_bans",
        # Ran out on its own; LiteBans still reports it active.
        (1, PLAYER_UUID, "127.0.0.1", "Hacking", MOD_UUID, "Moderator", "NULL", "#expired", None,
         1_600_000_000_000, 1_600_086_400_000, "*", "lobby", 0, 0, 1),
        (2, PLAYER_UUID, "127.0.0.1", "Griefing", MOD_UUID, "Moderator", ADMIN_UUID, "Admin", "Appealed",
         1_600_100_000_000, -1, "survival", "survival", 1, 1, 0),
    )
    _insert_litebans(
        conn,
        "litebans_mutes",
        (1, PLAYER_UUID, "127.0.0.1", "Spam", MOD_UUID, "Moderator", None, None, None,
         1_600_050_000_000, -1, "*", "lobby", 0, 0, 1),
    )
    _insert_litebans(
        conn,
        "litebans_warnings",
        (1, OTHER_UUID, "10.0.0.2", "Language", MOD_UUID, "Moderator", None, None, None,
         1_600_000_000_000, 0, "*", "lobby", 0, 0, 1),
    )
    _insert_litebans(
        conn,
        "litebans_kicks",
        (1, PLAYER_UUID, "#", "AFK", None, "Console", None, None, None,
         1_600_200_000_000, 0, "*", "lobby", 0, 0, 0),
    )
    conn.commit()
    conn.close()
    db = Database(path, read_only=True)
    yield db
    db.close()


# =============================================================================
# AdvancedBan
# =============================================================================

ADVANCEDBAN_COLUMNS = """
    id INTEGER PRIMARY KEY,
    name TEXT,
    uuid TEXT,
    reason TEXT,
    operator TEXT,
    punishmentType TEXT,
    start INTEGER,
    end INTEGER,
    calculation TEXT
"""


@pytest.fixture
def advancedban_db(tmp_path):
    path = tmp_path / "advancedban.db"
    player = PLAYER_UUID.replace("-", "")
    conn = sqlite3.connect(path)
    conn.execute(f"CREATE TABLE Punishments ({ADVANCEDBAN_COLUMNS})")
    conn.execute(f"CREATE TABLE PunishmentHistory ({ADVANCEDBAN_COLUMNS})")
    conn.executemany(
        "INSERT INTO PunishmentHistory VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (1, "Notch", player, "Hacking", "Moderator", "TEMP_BAN", 1_000_000, 2_000_000, None),
            (2, "Notch", player, "Griefing", "Moderator", "BAN", 3_000_000, -1, None),
            (3, "Notch", player, "Spam", "Moderator", "MUTE", 4_000_000, -1, None),
            (4, "Notch", player, "AFK", "CONSOLE", "KICK", 5_000_000, -1, None),
            (5, "Notch", player, "Caps", "Moderator", "TEMP_MUTE", 6_000_000, YEAR_2100_MILLIS, None),
            (6, "jeb_", OTHER_UUID.replace("-", ""), "Hacking", "Moderator", "BAN", 1_000_000, -1, None),
        ],
    )
    conn.execute(
        "INSERT INTO Punishments VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (1, "Notch", player, "Spam", "Moderator", "MUTE", 4_000_000, -1, None),
    )
    conn.commit()
    conn.close()
    db = Database(path, read_only=True)
    yield db
    db.close()


# =============================================================================
# LibertyBans
# =============================================================================

LIBERTYBANS_COLUMNS = """
    id INTEGER PRIMARY KEY,
    type INTEGER,
    victim_type INTEGER,
    victim_uuid BLOB,
    victim_address BLOB,
    operator BLOB,
    reason TEXT,
    scope TEXT,
    start INTEGER,
    end INTEGER
"""


def libertybans_rows():
    player = uuid_lib.UUID(PLAYER_UUID).bytes
    console = bytes(16)
    return [
        (1, 0, 0, player, bytes(4), console, "Hacking", "", 1_600_000_000, 0),
        (2, 1, 2, player, bytes([127, 0, 0, 1]), uuid_lib.UUID(MOD_UUID).bytes, "Spam", "survival",
         1_600_000_100, 1_600_003_700),
        (3, 2, 0, uuid_lib.UUID(OTHER_UUID).bytes, bytes(4), console, "Language", "", 1_600_000_000, 0),
    ]


@pytest.fixture
def libertybans_path(tmp_path):
    path = tmp_path / "libertybans.db"
    conn = sqlite3.connect(path)
    conn.execute(f"CREATE TABLE libertybans_simple_history ({LIBERTYBANS_COLUMNS})")
    conn.execute(f"CREATE TABLE libertybans_simple_active ({LIBERTYBANS_COLUMNS})")
    rows = libertybans_rows()
    conn.executemany("INSERT INTO libertybans_simple_history VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)", rows)
    conn.execute("INSERT INTO libertybans_simple_active VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)", rows[0])
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def libertybans_db(libertybans_path):
    db = Database(libertybans_path, read_only=True)
    yield db
    db.close()


# =============================================================================
# HistoryX store
# =============================================================================

@pytest.fixture
def custom_db(tmp_path):
    db = Database(tmp_path / "historyx.db")
    yield db
    db.close()
