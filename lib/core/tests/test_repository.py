import sqlite3
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlite_utils import Database

from clipkeep.constants import ItemKind
from clipkeep.errors import ItemNotFound, LockContention, QueryFailure
from clipkeep.logger import logger as clipkeep_logger
from clipkeep.models import ClipboardItem
from clipkeep.repository import ClipboardRepository, _retry_on_lock
from clipkeep.utils import to_epoch


def _text(content, when, **flags) -> ClipboardItem:
    return ClipboardItem(content=content, captured_at=when, **flags)


def _contents(items):
    return [item.content for item in items]


def test_insert_get_and_count(repository, t0):
    item = _text("hello", t0, keywords=["b", "a"])
    repository.insert(item)
    assert repository.count() == 1
    assert repository.get(item.id) == item


def test_get_unknown_raises(repository):
    with pytest.raises(ItemNotFound) as exc:
        repository.get(str(uuid.uuid4()))
    assert exc.value.item_id


def test_duplicate_id_is_query_failure(repository, t0):
    item = _text("hello", t0)
    repository.insert(item)
    with pytest.raises(QueryFailure):
        repository.insert(item)
    assert repository.count() == 1


def test_touch_refreshes_timestamp(repository, t0):
    item = _text("hello", t0, pinned=True, keywords=["k"])
    repository.insert(item)
    later = t0 + timedelta(hours=1)
    repository.touch(item.id, later)
    stored = repository.get(item.id)
    assert stored.captured_at == later
    assert stored.pinned and stored.keywords == ["k"]


def test_touch_unknown_raises(repository, t0):
    with pytest.raises(ItemNotFound):
        repository.touch(str(uuid.uuid4()), t0)


def test_update_flags(repository, t0):
    item = _text("hello", t0)
    repository.insert(item)
    repository.update_flags(item.id, pinned=True)
    repository.update_flags(item.id, sticky=True, keywords=["x", " y", "x"])
    stored = repository.get(item.id)
    assert stored.pinned and stored.sticky
    assert stored.keywords == ["x", "y"]
    repository.update_flags(item.id, keywords=[])
    assert repository.get(item.id).keywords == []


def test_update_flags_unknown_id_changes_nothing(repository, t0):
    item = _text("hello", t0)
    repository.insert(item)
    with pytest.raises(ItemNotFound):
        repository.update_flags(str(uuid.uuid4()), pinned=True)
    with pytest.raises(ItemNotFound):
        repository.update_flags(str(uuid.uuid4()))
    assert repository.get(item.id) == item


def test_find_by_payload_never_crosses_kinds(repository, t0, png_factory):
    png = png_factory(1, 1)
    image = ClipboardItem.from_image(png, t0)
    lookalike = _text(image.content, t0)
    repository.insert(image)
    repository.insert(lookalike)

    assert repository.find_by_payload(ItemKind.IMAGE, png) == image.id
    assert repository.find_by_payload(ItemKind.TEXT, image.content) == lookalike.id
    assert repository.find_by_payload(ItemKind.TEXT, b"Image 1\xc3\x971") == lookalike.id
    assert repository.find_by_payload(ItemKind.IMAGE, png_factory(1, 1, "blue")) is None
    assert repository.find_by_payload(ItemKind.TEXT, "missing") is None


def test_delete_expired_spares_pinned_and_sticky(repository, t0):
    old = t0 - timedelta(days=40)
    repository.insert(_text("old", old))
    repository.insert(_text("old pinned", old, pinned=True))
    repository.insert(_text("old sticky", old, sticky=True))
    repository.insert(_text("fresh", t0))

    assert repository.delete_expired(t0 - timedelta(days=30)) == 1
    assert repository.count() == 3


def test_delete_beyond_capacity_counts_only_regular(repository, t0):
    for i in range(5):
        repository.insert(_text(f"r{i}", t0 + timedelta(seconds=i)))
    repository.insert(_text("pinned", t0 - timedelta(days=1), pinned=True))
    repository.insert(_text("sticky", t0 - timedelta(days=1), sticky=True))

    assert repository.delete_beyond_capacity(2) == 3
    items = repository.load_ordered(t0 - timedelta(days=30), 2)
    assert _contents(items) == ["pinned", "r4", "r3", "sticky"]


def test_capacity_tiebreak_keeps_newest_insertion(repository, t0):
    for name in ["first", "second", "third"]:
        repository.insert(_text(name, t0))
    assert repository.delete_beyond_capacity(2) == 1
    assert _contents(repository.load_ordered(t0, 10)) == ["third", "second"]


def test_load_ordered_pins_first_and_sticky_inline(repository, t0):
    repository.insert(_text("a", t0))
    repository.insert(_text("b", t0 + timedelta(seconds=1), sticky=True))
    repository.insert(_text("c", t0 + timedelta(seconds=2)))
    repository.insert(_text("p_old", t0 - timedelta(seconds=5), pinned=True))
    repository.insert(_text("p_new", t0 + timedelta(seconds=3), pinned=True))

    items = repository.load_ordered(t0 - timedelta(days=1), 10)
    assert _contents(items) == ["p_new", "p_old", "c", "b", "a"]


def test_load_ordered_applies_both_policies(repository, t0):
    repository.insert(_text("expired", t0 - timedelta(days=31)))
    repository.insert(_text("expired sticky", t0 - timedelta(days=31), sticky=True))
    for i in range(3):
        repository.insert(_text(f"r{i}", t0 + timedelta(seconds=i)))

    items = repository.load_ordered(t0 - timedelta(days=30), 2)
    assert _contents(items) == ["r2", "r1", "expired sticky"]


def test_load_skips_corrupt_rows(repository, t0):
    good = _text("good", t0)
    repository.insert(good)
    with repository.db.engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO clipboard_items (id, content, timestamp, type) "
                "VALUES (:id, 'bad kind', :ts, 'video')"
            ),
            {"id": str(uuid.uuid4()), "ts": to_epoch(t0)},
        )
        conn.execute(
            text(
                "INSERT INTO clipboard_items (id, content, timestamp) "
                "VALUES ('not-a-uuid', 'bad id', :ts)"
            ),
            {"ts": to_epoch(t0)},
        )
    assert repository.count() == 3
    assert repository.load_ordered(t0 - timedelta(days=1), 10) == [good]


def test_corrupt_rows_do_not_take_capacity(repository, t0):
    repository.insert(_text("a", t0))
    repository.insert(_text("b", t0 + timedelta(seconds=1)))
    newer = to_epoch(t0 + timedelta(seconds=2))
    with repository.db.engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO clipboard_items (id, content, timestamp) "
                "VALUES ('bad', 'bad id', :ts)"
            ),
            {"ts": newer},
        )
        conn.execute(
            text(
                "INSERT INTO clipboard_items (id, content, timestamp, type) "
                "VALUES (:id, 'bad kind', :ts, 'video')"
            ),
            {"id": str(uuid.uuid4()), "ts": newer},
        )

    assert repository.delete_beyond_capacity(2) == 0
    assert repository.count() == 4
    assert _contents(repository.load_ordered(t0 - timedelta(days=1), 2)) == ["b", "a"]

    repository.insert(_text("c", t0 + timedelta(seconds=3)))
    assert repository.delete_beyond_capacity(2) == 1
    assert _contents(repository.load_ordered(t0 - timedelta(days=1), 2)) == ["c", "b"]


def test_clear_all(repository, t0):
    repository.insert(_text("a", t0, pinned=True))
    repository.insert(_text("b", t0, sticky=True))
    assert repository.clear_all() == 2
    assert repository.count() == 0


def test_migrate_is_idempotent(repository, t0):
    repository.insert(_text("a", t0))
    repository.migrate()
    repository.migrate()
    assert repository.count() == 1


def test_legacy_database_is_migrated(file_repository, db_settings, t0):
    legacy_ids = [str(uuid.uuid4()).upper() for _ in range(2)]
    legacy = Database(db_settings.db_path)
    legacy["clipboard_items"].create(
        {"id": str, "content": str, "timestamp": float},
        pk="id",
        not_null={"content", "timestamp"},
    )
    legacy["clipboard_items"].insert_all(
        [
            {"id": legacy_ids[0], "content": "older", "timestamp": to_epoch(t0)},
            {"id": legacy_ids[1], "content": "newer", "timestamp": to_epoch(t0) + 1},
        ]
    )
    legacy.conn.close()

    file_repository.initialize()
    items = file_repository.load_ordered(t0 - timedelta(days=1), 10)

    assert [item.id for item in items] == [legacy_ids[1], legacy_ids[0]]
    for item in items:
        assert item.kind == ItemKind.TEXT
        assert not item.pinned and not item.sticky
        assert item.keywords == []

    migrated = Database(db_settings.db_path)
    columns = migrated["clipboard_items"].columns_dict
    for column in ["is_pinned", "is_sticky", "keywords", "type", "image_data"]:
        assert column in columns
    index_names = {index.name for index in migrated["clipboard_items"].indexes}
    assert {"idx_timestamp", "idx_pinned"} <= index_names
    migrated.conn.close()


def test_new_database_round_trips_images(file_repository, png_factory, t0):
    file_repository.initialize()
    item = ClipboardItem.from_image(png_factory(4, 4), t0)
    file_repository.insert(item)
    assert file_repository.get(item.id) == item


class _FlakyStore:
    retry_attempts = 2
    retry_delay = 0
    logger = clipkeep_logger.getChild("test")

    def __init__(self, message: str):
        self.calls = 0
        self.message = message

    @_retry_on_lock("flaky")
    def run(self):
        self.calls += 1
        raise OperationalError("SELECT 1", {}, sqlite3.OperationalError(self.message))


def test_lock_contention_is_retried_then_raised():
    store = _FlakyStore("database is locked")
    with pytest.raises(LockContention):
        store.run()
    assert store.calls == 3


def test_other_operational_errors_are_not_retried():
    store = _FlakyStore("no such table: clipboard_items")
    with pytest.raises(QueryFailure) as exc:
        store.run()
    assert not isinstance(exc.value, LockContention)
    assert store.calls == 1


def test_repository_uses_settings_retry_budget(repository, db_settings):
    assert isinstance(repository, ClipboardRepository)
    assert repository.retry_attempts == db_settings.lock_retry_attempts
    assert repository.retry_delay == 0
