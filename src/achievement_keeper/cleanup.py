# SPDX-License-Identifier: MIT

import atexit

from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO


def flush_and_sync() -> None:
    CONFIGURATION_REPO.flush()
    STATUS_CACHE_REPO.flush()


def register_cleanup() -> None:
    atexit.register(flush_and_sync)
