# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Literal, NotRequired, Optional, TypedDict

from yaml import load

try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader  # type: ignore[assignment]
import platformdirs

APP_NAME = "achievement-keeper"

CONFIG_PATH = platformdirs.user_config_path(APP_NAME)
APP_CONFIG_PATH = CONFIG_PATH / "config.yaml"

# These will be set dynamically by load_data_path_configuration()
DATA_PATH: Path = platformdirs.user_data_path(APP_NAME)
DATA_STATUS_CACHE_PATH: Path = DATA_PATH / "status_cache.json"
DATA_LOG_PATH: Path = DATA_PATH / "achievement-keeper.log"

RECORD_FILE_NAME = "achievements.ini"
GSE_RECORD_FILE_NAME = "achievements.json"
RECORD_FILE_NAMES = (RECORD_FILE_NAME, GSE_RECORD_FILE_NAME)

# Roots whose entities keep their record file one level deeper, in Stats/
NESTED_STATS_MARKERS = ("OnlineFix",)
NESTED_STATS_DIR_NAME = "Stats"

GSE_ROOT_MARKER = "gse saves"
CATALOG_SOURCE_PREFIX = "steam://"

TimeFormat = Literal["12h", "24h"]
UnlockModeName = Literal["current", "random", "custom"]


class DirectoryConfig(TypedDict):
    path: str
    name: str
    enabled: bool
    is_default: bool


class Configuration(TypedDict):
    time_format: TimeFormat
    debounce_ms: int
    log_level: str
    log_file: bool
    data_path: Optional[str]
    wine_prefix_path: Optional[str]
    default_unlock_mode: UnlockModeName
    directories: list[DirectoryConfig]
    app_version: NotRequired[str]


def load_data_path_configuration() -> None:
    """
    Load the configuration and set the DATA_PATH variables dynamically.

    This must be called after the config file exists and before any
    repositories are instantiated.
    """
    global DATA_PATH, DATA_STATUS_CACHE_PATH, DATA_LOG_PATH

    if not APP_CONFIG_PATH.is_file():
        # Config doesn't exist yet, use defaults
        return

    config: Optional[Configuration] = load(APP_CONFIG_PATH.read_text(), Loader=Loader)
    if config is None:
        return
    data_path_setting = config.get("data_path")

    if data_path_setting is not None:
        DATA_PATH = Path(data_path_setting).expanduser()
        DATA_STATUS_CACHE_PATH = DATA_PATH / "status_cache.json"
        DATA_LOG_PATH = DATA_PATH / "achievement-keeper.log"


def expand_path(path: str | Path) -> Path:
    return Path(path).expanduser()
