import sys
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Add the src directory to the path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from clipkeep.config import DatabaseSettings, get_settings  # noqa: E402
from clipkeep.database import DatabaseSessionGenerator  # noqa: E402
from clipkeep.logger import logger as clipkeep_logger  # noqa: E402
from clipkeep.repository import ClipboardRepository  # noqa: E402

CLIPKEEP_ENV_VARS = [
    "CLIPKEEP_RETENTION_DAYS",
    "CLIPKEEP_MAX_ITEMS",
    "CLIPKEEP_DB_PATH",
    "CLIPKEEP_LOG_LEVEL",
    "CLIPKEEP_LOG_FILE",
    "CLIPKEEP_LOG_CONSOLE",
    "ENVIRONMENT",
]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Point the application home at a temp dir and drop cached settings."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("CLIPKEEP_HOME", str(home))
    for name in CLIPKEEP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


@pytest.fixture
def t0() -> datetime:
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def db_settings(tmp_path) -> DatabaseSettings:
    return DatabaseSettings(db_path=tmp_path / "clipboard.db", lock_retry_delay=0)


@pytest.fixture
def repository(engine, db_settings) -> ClipboardRepository:
    """Initialized repository over the in-memory engine."""
    repo = ClipboardRepository(
        DatabaseSessionGenerator(db_settings, engine=engine), clipkeep_logger
    )
    repo.initialize()
    return repo


@pytest.fixture
def file_repository(db_settings) -> ClipboardRepository:
    """Repository over a real database file (WAL mode)."""
    db = DatabaseSessionGenerator(db_settings)
    repo = ClipboardRepository(db, clipkeep_logger)
    yield repo
    db.dispose()


def make_png(width: int, height: int, color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def png_3x2() -> bytes:
    return make_png(3, 2)
