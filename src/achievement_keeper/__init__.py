# SPDX-License-Identifier: MIT

from achievement_keeper.cleanup import register_cleanup
from achievement_keeper.initialize import initialize
from achievement_keeper.terminal.app import run


def main() -> None:
    initialize()
    register_cleanup()
    run()


if __name__ == "__main__":
    main()
