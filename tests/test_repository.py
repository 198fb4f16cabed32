"""Tests for MessageRepository with SQLAlchemy Core."""

import pytest

from mailsync.core.database import EngineManager, MessageRepository, create_engine, metadata
from mailsync.utils.errors import CacheReadError

from test_helpers import make_detail, make_messages


@pytest.fixture
async def test_db(temp_db):
    """Create temporary test database."""
    engine = create_engine(temp_db, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield temp_db

    await engine.dispose()


@pytest.fixture
async def repo(test_db):
    """Create MessageRepository with test database."""
    engine_mgr = EngineManager(test_db)
    repo = MessageRepository(engine_mgr)

    yield repo

    await engine_mgr.close()


@pytest.mark.asyncio
async def test_read_empty_folder(repo):
    assert await repo.read_folder("INBOX") == []


@pytest.mark.asyncio
async def test_replace_and_read_keeps_server_order(repo):
    """Test cached messages come back in the order they were stored."""
    items = list(reversed(make_messages("i", 4, is_read=True)))

    await repo.replace_folder("INBOX", items)
    found = await repo.read_folder("INBOX")

    assert [m.id for m in found] == ["i-3", "i-2", "i-1", "i-0"]
    assert found[0] == items[0]
    assert all(m.is_read for m in found)


@pytest.mark.asyncio
async def test_replace_is_total(repo):
    await repo.replace_folder("INBOX", make_messages("old", 5))
    await repo.replace_folder("INBOX", make_messages("new", 2))

    found = await repo.read_folder("INBOX")

    assert [m.id for m in found] == ["new-0", "new-1"]


@pytest.mark.asyncio
async def test_replace_with_empty_list_clears_folder(repo):
    await repo.replace_folder("Trash", make_messages("t", 3))
    await repo.replace_folder("Trash", [])

    assert await repo.read_folder("Trash") == []


@pytest.mark.asyncio
async def test_folders_are_independent(repo):
    """Test the same message id can live in two folders."""
    await repo.replace_folder("INBOX", make_messages("m", 2))
    await repo.replace_folder("Sent", make_messages("m", 1))
    await repo.replace_folder("Sent", [])

    assert len(await repo.read_folder("INBOX")) == 2
    assert await repo.read_folder("Sent") == []


@pytest.mark.asyncio
async def test_read_with_limit(repo):
    await repo.replace_folder("INBOX", make_messages("i", 10))

    found = await repo.read_folder("INBOX", limit=3)

    assert [m.id for m in found] == ["i-0", "i-1", "i-2"]


@pytest.mark.asyncio
async def test_save_and_find_detail(repo):
    detail = make_detail("d-1", to=["a@example.com", "b@example.com"], labels=["work"], body_html="<p>Hi</p>")

    await repo.save_detail(detail)
    found = await repo.find_detail("d-1")

    assert found == detail
    assert found.to == ("a@example.com", "b@example.com")
    assert found.labels == ("work",)


@pytest.mark.asyncio
async def test_save_detail_upserts(repo):
    await repo.save_detail(make_detail("d-1", subject="First"))
    await repo.save_detail(make_detail("d-1", subject="Second", is_starred=True))

    found = await repo.find_detail("d-1")

    assert found.subject == "Second"
    assert found.is_starred


@pytest.mark.asyncio
async def test_find_unknown_detail(repo):
    assert await repo.find_detail("missing") is None


@pytest.mark.asyncio
async def test_broken_database_raises_cache_read_error(tmp_path):
    """Test read failures surface as CacheReadError."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    engine_mgr = EngineManager(blocker / "mailsync.db")
    repo = MessageRepository(engine_mgr)

    with pytest.raises(CacheReadError):
        await repo.read_folder("INBOX")


@pytest.mark.asyncio
async def test_health_check(test_db):
    engine_mgr = EngineManager(test_db)

    assert await engine_mgr.health_check() is True
    await engine_mgr.close()
