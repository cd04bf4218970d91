# SPDX-License-Identifier: MIT

from typing import Annotated

import typer

from achievement_keeper.terminal import (
    achievement,
    backup,
    configuration,
    directory,
    status,
)
from achievement_keeper.terminal.custom_typer import OrderedAliasedTyperGroup
from achievement_keeper.terminal.unlock import unlock
from achievement_keeper.terminal.watch import watch
from achievement_keeper.view import state as view_state

app = typer.Typer(
    cls=OrderedAliasedTyperGroup,
    help="Achievement Keeper - track and edit emulator achievement records",
    no_args_is_help=True,
)
app.add_typer(achievement.app, name="achievement, a")
app.add_typer(status.app, name="status, s")
app.command(name="unlock, u")(unlock)
app.command(name="watch, w")(watch)
app.add_typer(directory.app, name="directory, d")
app.add_typer(backup.app, name="backup, b")
app.add_typer(configuration.app, name="config, c")


@app.callback()
def main_callback(
    no_header: Annotated[
        bool,
        typer.Option(
            "--no-header",
            "-nh",
            help="Suppress header output in reports",
        ),
    ] = False,
) -> None:
    """
    Achievement Keeper - track and edit emulator achievement records

    Global options that apply to all commands.
    """
    if no_header:
        view_state.set_show_header(False)


def run() -> None:
    app()
