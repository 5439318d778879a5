import logging
import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

# Add the src directories to the path for imports
repo_root = Path(__file__).parent.parent.parent.parent
for src_path in [
    Path(__file__).parent.parent / "src",
    repo_root / "lib" / "services" / "src",
    repo_root / "lib" / "core" / "src",
]:
    sys.path.insert(0, str(src_path))

from clipkeep.config import get_settings  # noqa: E402
from clipkeep.logger import LOGGER_NAME  # noqa: E402


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch) -> Path:
    """Run every command against a throwaway home, database and log file."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("CLIPKEEP_HOME", str(home))
    monkeypatch.setenv("CLIPKEEP_DB_PATH", str(home / "clipboard.db"))
    monkeypatch.setenv("CLIPKEEP_LOG_FILE", str(home / "logs" / "clipkeep.jsonl"))
    for name in [
        "CLIPKEEP_RETENTION_DAYS",
        "CLIPKEEP_MAX_ITEMS",
        "CLIPKEEP_LOG_CONSOLE",
        "ENVIRONMENT",
    ]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()
    clipkeep_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(clipkeep_logger.handlers):
        handler.close()
        clipkeep_logger.removeHandler(handler)
    clipkeep_logger.propagate = True


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def png_file(tmp_path) -> Path:
    buffer = BytesIO()
    Image.new("RGB", (2, 3), "blue").save(buffer, format="PNG")
    path = tmp_path / "shot.png"
    path.write_bytes(buffer.getvalue())
    return path
