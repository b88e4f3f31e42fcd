from datetime import datetime, timezone

import anysqlite
import pytest

from pkgcache import AsyncInMemoryStorage, AsyncSqliteStorage, FrozenClock, MalformedEntryError

ENTRY = {
    "etag": "foobar",
    "lastModified": None,
    "httpResponse": {"statusCode": 200, "headers": {"etag": "foobar"}, "body": "fetched response"},
    "timestamp": "2024-06-15T00:00:00.000Z",
}


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 15, tzinfo=timezone.utc))


@pytest.mark.anyio
async def test_inmemorystorage(clock: FrozenClock) -> None:
    storage = AsyncInMemoryStorage(clock=clock)

    await storage.set("npm", "https://example.com", ENTRY, 60)

    assert await storage.get("npm", "https://example.com") == ENTRY
    assert await storage.get("pypi", "https://example.com") is None
    assert await storage.get("npm", "https://example.org") is None


@pytest.mark.anyio
async def test_inmemorystorage_returns_copies(clock: FrozenClock) -> None:
    storage = AsyncInMemoryStorage(clock=clock)
    value = {**ENTRY, "httpResponse": dict(ENTRY["httpResponse"])}

    await storage.set("npm", "https://example.com", value, 60)
    value["httpResponse"]["body"] = "changed"
    first = await storage.get("npm", "https://example.com")
    first["etag"] = "changed"

    assert await storage.get("npm", "https://example.com") == ENTRY


@pytest.mark.anyio
async def test_inmemorystorage_expired(clock: FrozenClock) -> None:
    storage = AsyncInMemoryStorage(clock=clock)

    await storage.set("npm", "https://example.com", ENTRY, 60)
    clock.advance(minutes=59)
    assert await storage.get("npm", "https://example.com") is not None

    clock.advance(minutes=1)
    assert await storage.get("npm", "https://example.com") is None
    assert len(storage) == 0


@pytest.mark.anyio
async def test_sqlitestorage(clock: FrozenClock) -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"), clock=clock)

    await storage.set("npm", "https://example.com", ENTRY, 60)

    assert await storage.get("npm", "https://example.com") == ENTRY
    assert await storage.get("pypi", "https://example.com") is None
    await storage.aclose()


@pytest.mark.anyio
async def test_sqlitestorage_overwrites(clock: FrozenClock) -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"), clock=clock)
    updated = {**ENTRY, "etag": "updated"}

    await storage.set("npm", "https://example.com", ENTRY, 60)
    await storage.set("npm", "https://example.com", updated, 60)

    assert await storage.get("npm", "https://example.com") == updated
    await storage.aclose()


@pytest.mark.anyio
async def test_sqlitestorage_expired(clock: FrozenClock) -> None:
    connection = await anysqlite.connect(":memory:")
    storage = AsyncSqliteStorage(connection=connection, clock=clock)

    await storage.set("npm", "https://example.com", ENTRY, 60)
    clock.advance(minutes=60)
    assert await storage.get("npm", "https://example.com") is None

    await storage.set("npm", "https://example.org", ENTRY, 60)
    cursor = await connection.execute("SELECT key FROM entries")
    assert await cursor.fetchall() == [("https://example.org",)]
    await storage.aclose()


@pytest.mark.anyio
async def test_sqlitestorage_corrupt_row(clock: FrozenClock) -> None:
    connection = await anysqlite.connect(":memory:")
    storage = AsyncSqliteStorage(connection=connection, clock=clock)
    await storage.set("npm", "https://example.com", ENTRY, 60)

    await connection.execute("UPDATE entries SET data = ?", ["{not json"])
    await connection.commit()

    with pytest.raises(MalformedEntryError):
        await storage.get("npm", "https://example.com")
    await storage.aclose()


@pytest.mark.anyio
async def test_sqlitestorage_creates_database(tmp_path, clock: FrozenClock) -> None:
    storage = AsyncSqliteStorage(database_path=tmp_path / "cache" / "pkgcache.db", clock=clock)

    await storage.set("npm", "https://example.com", ENTRY, 60)

    assert (tmp_path / "cache" / "pkgcache.db").is_file()
    assert (tmp_path / "cache" / ".gitignore").is_file()
    await storage.aclose()
