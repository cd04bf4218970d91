# SPDX-License-Identifier: MIT

from yaml import dump

try:
    from yaml import CDumper as Dumper
except ImportError:
    from yaml import Dumper  # type: ignore[assignment]

from achievement_keeper import configuration
from achievement_keeper.logger import setup_logging
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.service.directory import build_default_directory_configs
from achievement_keeper.template.configuration import get_configuration_template


def initialize() -> None:
    configuration.CONFIG_PATH.mkdir(parents=True, exist_ok=True)
    configuration.load_data_path_configuration()
    configuration.DATA_PATH.mkdir(parents=True, exist_ok=True)

    __ensure_config_files()

    config = CONFIGURATION_REPO.get_config()
    setup_logging(
        config["log_level"],
        configuration.DATA_LOG_PATH if config["log_file"] else None,
    )


def __ensure_config_files() -> None:
    if not configuration.APP_CONFIG_PATH.is_file():
        configuration.APP_CONFIG_PATH.touch()
        config = get_configuration_template()
        config["directories"] = build_default_directory_configs(
            config["wine_prefix_path"]
        )
        configuration.APP_CONFIG_PATH.write_text(dump(config, Dumper=Dumper))
