# SPDX-License-Identifier: MIT

from copy import deepcopy
from typing import Optional

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader  # noqa: F401
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from achievement_keeper import configuration
from achievement_keeper.configuration import (
    DirectoryConfig,
    TimeFormat,
    UnlockModeName,
)
from achievement_keeper.template.configuration import get_configuration_template


class ConfigurationRepository:
    def __init__(self) -> None:
        self._config: Optional[configuration.Configuration] = None
        self.is_dirty = False

    @property
    def config(self) -> configuration.Configuration:
        if self._config is None:
            self.__load_data()
        if self._config is None:
            raise ValueError()
        return self._config

    def __load_data(self) -> None:
        self._config = load(configuration.APP_CONFIG_PATH.read_text(), Loader=Loader)

        if self._config is None:
            raise ValueError()

        # Migration: back-fill any key added after the file was created
        for key, value in get_configuration_template().items():
            if key not in self._config:
                self._config[key] = value  # type: ignore[literal-required]
                self.is_dirty = True

    def __save_data(self, config: configuration.Configuration) -> None:
        configuration.APP_CONFIG_PATH.write_text(dump(config, Dumper=Dumper))
        self.is_dirty = False

    def flush(self) -> None:
        if self._config is not None and self.is_dirty:
            self.__save_data(self._config)

    def reload(self) -> None:
        self._config = None
        self.is_dirty = False

    def get_config(self) -> configuration.Configuration:
        return deepcopy(self.config)

    def get_directories(self) -> list[DirectoryConfig]:
        return deepcopy(self.config["directories"])

    def update_config(
        self,
        time_format: Optional[TimeFormat] = None,
        debounce_ms: Optional[int] = None,
        log_level: Optional[str] = None,
        log_file: Optional[bool] = None,
        data_path: Optional[str] = None,
        remove_data_path: bool = False,
        wine_prefix_path: Optional[str] = None,
        default_unlock_mode: Optional[UnlockModeName] = None,
        directories: Optional[list[DirectoryConfig]] = None,
    ) -> None:
        self.is_dirty = True

        if time_format is not None:
            self.config["time_format"] = time_format
        if debounce_ms is not None:
            self.config["debounce_ms"] = debounce_ms
        if log_level is not None:
            self.config["log_level"] = log_level.upper()
        if log_file is not None:
            self.config["log_file"] = log_file
        if data_path is not None:
            self.config["data_path"] = data_path
        if remove_data_path:
            self.config["data_path"] = None
        if wine_prefix_path is not None:
            self.config["wine_prefix_path"] = wine_prefix_path
        if default_unlock_mode is not None:
            self.config["default_unlock_mode"] = default_unlock_mode
        if directories is not None:
            self.config["directories"] = deepcopy(directories)


CONFIGURATION_REPO = ConfigurationRepository()
