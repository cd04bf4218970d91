# SPDX-License-Identifier: MIT

import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from achievement_keeper import configuration
from achievement_keeper.configuration import DirectoryConfig
from achievement_keeper.logger import LOGGER

DEFAULT_WINE_PREFIX = "~/.wine"
DEFAULT_GSE_USER = "steamuser"

_DEFAULT_ROOT_TEMPLATES = (
    "C:/Users/Public/Documents/Steam/RUNE",
    "C:/Users/Public/Documents/Steam/CODEX",
    "C:/ProgramData/Steam/RLD!",
    "C:/Users/Public/Documents/OnlineFix",
    "C:/users/{user}/AppData/Roaming/GSE Saves",
)


def resolve_gse_user(users_roots: Iterable[Path]) -> str:
    """
    Find the user whose profile holds a ``GSE Saves`` folder.

    Any user other than ``steamuser`` wins; ``steamuser`` is also the
    fallback when nobody has the folder.
    """
    for users_root in users_roots:
        if not users_root.is_dir():
            continue
        try:
            user_dirs = sorted(users_root.iterdir(), key=lambda child: child.name)
        except OSError as error:
            LOGGER.warning("Failed to read users directory %s: %s", users_root, error)
            continue
        for user_dir in user_dirs:
            if not user_dir.is_dir():
                continue
            if not (user_dir / "AppData" / "Roaming" / "GSE Saves").is_dir():
                continue
            if user_dir.name.lower() != DEFAULT_GSE_USER:
                return user_dir.name
    return DEFAULT_GSE_USER


def wine_drive_c(wine_prefix_path: Optional[str]) -> Path:
    prefix = (wine_prefix_path or "").strip() or DEFAULT_WINE_PREFIX
    expanded = configuration.expand_path(prefix)
    if expanded.name == "drive_c":
        return expanded
    return expanded / "drive_c"


def build_default_directory_configs(
    wine_prefix_path: Optional[str] = None, platform: str = sys.platform
) -> list[DirectoryConfig]:
    """
    Build the well-known emulator roots.

    On Windows the paths are used as they are. Everywhere else they are
    rebased under the ``drive_c`` of a wine prefix.
    """
    if platform.startswith("win"):
        drive_c: Optional[Path] = None
        users_roots = [Path("C:/users"), Path("C:/Users")]
    else:
        drive_c = wine_drive_c(wine_prefix_path)
        users_roots = [drive_c / "users", drive_c / "Users"]

    gse_user = resolve_gse_user(users_roots)

    directories: list[DirectoryConfig] = []
    for template in _DEFAULT_ROOT_TEMPLATES:
        path = template.format(user=gse_user)
        name = path.rsplit("/", 1)[-1]
        if drive_c is not None:
            path = str(drive_c / path.removeprefix("C:/"))
        directories.append(
            {"path": path, "name": name, "enabled": True, "is_default": True}
        )
    return directories


def enabled_roots(directories: list[DirectoryConfig]) -> list[str]:
    return [
        str(configuration.expand_path(directory["path"]))
        for directory in directories
        if directory["enabled"]
    ]


def add_directory(
    directories: list[DirectoryConfig], path: str
) -> list[DirectoryConfig]:
    """Append a custom root; a path that is already listed is left alone."""
    expanded = configuration.expand_path(path.strip())
    if any(
        configuration.expand_path(directory["path"]) == expanded
        for directory in directories
    ):
        return list(directories)

    LOGGER.info("Adding monitored directory %s", expanded)
    return [
        *directories,
        {
            "path": str(expanded),
            "name": expanded.name or str(expanded),
            "enabled": True,
            "is_default": False,
        },
    ]


def _matches(directory: DirectoryConfig, path: str) -> bool:
    return directory["path"] == path or configuration.expand_path(
        directory["path"]
    ) == configuration.expand_path(path)


def find_directory(
    directories: list[DirectoryConfig], path: str
) -> Optional[DirectoryConfig]:
    for directory in directories:
        if _matches(directory, path):
            return directory
    return None


def toggle_directory(
    directories: list[DirectoryConfig], path: str
) -> list[DirectoryConfig]:
    toggled: list[DirectoryConfig] = []
    for directory in directories:
        if _matches(directory, path):
            directory = {**directory, "enabled": not directory["enabled"]}
        toggled.append(directory)
    return toggled


def remove_directory(
    directories: list[DirectoryConfig], path: str
) -> list[DirectoryConfig]:
    """Drop a custom root. Default roots can only be disabled."""
    remaining: list[DirectoryConfig] = []
    for directory in directories:
        if _matches(directory, path):
            if directory["is_default"]:
                LOGGER.warning("Default directory cannot be removed: %s", path)
            else:
                continue
        remaining.append(directory)
    return remaining


def set_wine_prefix(
    directories: list[DirectoryConfig],
    wine_prefix_path: str,
    platform: str = sys.platform,
) -> list[DirectoryConfig]:
    """
    Rebuild the default roots under a new prefix.

    Default roots keep their enabled flag (matched by name) and custom
    roots are kept after them.
    """
    if not wine_prefix_path.strip():
        raise ValueError("Wine prefix path cannot be empty")

    enabled_by_name = {
        directory["name"]: directory["enabled"]
        for directory in directories
        if directory["is_default"]
    }
    rebuilt = build_default_directory_configs(wine_prefix_path, platform)
    for directory in rebuilt:
        directory["enabled"] = enabled_by_name.get(directory["name"], True)

    return rebuilt + [
        directory for directory in directories if not directory["is_default"]
    ]
