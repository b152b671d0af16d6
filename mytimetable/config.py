"""MyTimetable configuration loaded from environment variables.

Every setting can be overridden with a MYTIMETABLE_ prefixed variable, e.g.
MYTIMETABLE_UTC_OFFSET=+02:00 or MYTIMETABLE_DATA_PATH=~/timetable.json.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent


class TimetableConfig(BaseSettings):
    """Timetable configuration loaded from environment variables.

    For local development, create a .env file in the project root.
    """

    # Clock
    utc_offset: str = Field(
        default="+00:00",
        description="Fixed civil timezone of the calendar clock (+HH:MM, -HHMM or UTC)",
    )

    # Paths
    data_path: str = Field(
        default=str(PACKAGE_DIR / "data" / "timetable.json"),
        description="JSON file holding the event definitions",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "MYTIMETABLE_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def store_path(self) -> Path:
        return Path(self.data_path).expanduser()


# Singleton pattern
_config: TimetableConfig | None = None


def get_config() -> TimetableConfig:
    """Get the timetable configuration singleton.

    Returns:
        TimetableConfig: Timetable configuration instance
    """
    global _config
    if _config is None:
        _config = TimetableConfig()
    return _config


def reset_config() -> None:
    """Forget the cached configuration (tests change the environment)."""
    global _config
    _config = None
