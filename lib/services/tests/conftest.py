import sys
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

# Add the src directories to the path for imports
src_path = Path(__file__).parent.parent / "src"
core_src_path = Path(__file__).parent.parent.parent / "core" / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(core_src_path))

from clipkeep.config import DatabaseSettings, RetentionPolicy, get_settings  # noqa: E402
from clipkeep.database import DatabaseSessionGenerator  # noqa: E402
from clipkeep.logger import logger as clipkeep_logger  # noqa: E402
from clipkeep.repository import ClipboardRepository  # noqa: E402
from clipkeep_services.history import ClipboardStore  # noqa: E402


class FakeClock:
    """Manually advanced clock for simulated time."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Point the application home at a temp dir and drop cached settings."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("CLIPKEEP_HOME", str(home))
    for name in [
        "CLIPKEEP_RETENTION_DAYS",
        "CLIPKEEP_MAX_ITEMS",
        "CLIPKEEP_DB_PATH",
        "ENVIRONMENT",
    ]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "data" / "clipboard.db"


@pytest.fixture
def make_store(db_path, clock):
    """Factory opening stores on the same database file; all are closed at teardown."""
    stores = []

    def factory(
        retention_days: int = 30, max_items: int = 30, open_store: bool = True
    ) -> ClipboardStore:
        db = DatabaseSessionGenerator(
            DatabaseSettings(db_path=db_path, lock_retry_delay=0)
        )
        policy = RetentionPolicy(retention_days=retention_days, max_items=max_items)
        store = ClipboardStore(db, policy, clipkeep_logger, clock=clock)
        stores.append(store)
        if open_store:
            store.open()
        return store

    yield factory
    for store in stores:
        store.close()


@pytest.fixture
def repository(db_path):
    db = DatabaseSessionGenerator(DatabaseSettings(db_path=db_path, lock_retry_delay=0))
    repo = ClipboardRepository(db, clipkeep_logger)
    repo.initialize()
    yield repo
    db.dispose()


@pytest.fixture
def png_factory():
    def make_png(width: int, height: int, color: str = "red") -> bytes:
        buffer = BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()

    return make_png
