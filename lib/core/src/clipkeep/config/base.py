# region Docstring
"""
clipkeep.config.base

Where clipkeep keeps its files, and which deployment it is running in.

Overview:
- AppEnv answers two questions for the settings layer: the deployment environment
    (prod, docker, dev), which selects the environment-specific YAML file, and the
    home directory holding the database, the YAML settings files, `.env`, and logs.
- Both answers are recomputed on every call; APP_ENV and APP_HOME capture them once at
    import for field defaults.

Environment:
- ENVIRONMENT=prod|docker|dev wins when set.
- Otherwise the working directory decides: under /app is docker, under /srv is prod,
    anything else is dev.

Home:
- CLIPKEEP_HOME when set.
- /data/clipkeep for docker.
- ~/.clipkeep otherwise.
"""
# endregion
# region Imports
import os
from pathlib import Path
from typing import Literal

# endregion
# region AppEnv Class

EnvName = Literal["prod", "docker", "dev"]


class AppEnv:
    """
    Environment and home directory lookup.

    Attributes:
        PROD, DOCKER, DEV: The recognised environment names.
    """

    PROD: Literal["prod"] = "prod"
    DOCKER: Literal["docker"] = "docker"
    DEV: Literal["dev"] = "dev"

    _CWD_HINTS: dict[str, EnvName] = {"/app": DOCKER, "/srv": PROD}

    @classmethod
    def environment(cls) -> EnvName:
        declared = os.getenv("ENVIRONMENT", "").lower()
        if declared in (cls.PROD, cls.DOCKER, cls.DEV):
            return declared
        cwd = Path.cwd().as_posix()
        for prefix, name in cls._CWD_HINTS.items():
            if cwd.startswith(prefix):
                return name
        return cls.DEV

    @classmethod
    def app_home(cls) -> Path:
        override = os.getenv("CLIPKEEP_HOME")
        if override:
            return Path(override).expanduser().resolve()
        if cls.environment() == cls.DOCKER:
            return Path("/data/clipkeep")
        return (Path.home() / ".clipkeep").resolve()

    @classmethod
    def settings_files(cls) -> list[Path]:
        """YAML settings files, lowest priority first."""
        home = cls.app_home()
        return [home / "config.yaml", home / f"config.{cls.environment()}.yaml"]


# endregion
# region Module-level Constants

APP_ENV: EnvName = AppEnv.environment()
"""Environment detected at import."""
APP_HOME: Path = AppEnv.app_home()
"""Home directory detected at import; default location of the database and logs."""
# endregion


__all__ = ["APP_ENV", "APP_HOME", "AppEnv", "EnvName"]
