import asyncio

import pytest

from league_lineage import config, database


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point the cache and manual trade ledger at a fresh SQLite file."""
    db_file = str(tmp_path / "sleeper_cache.db")
    monkeypatch.setattr(config, "DATABASE_URL", db_file)
    asyncio.run(database.create_tables())
    return db_file
