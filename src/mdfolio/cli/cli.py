"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdfolio.cli.commands import (
    build_cmd, check_cmd, configure_logging, init_cmd, list_cmd, migrate_cmd, show_cmd,
)


app = typer.Typer(name="mdfolio", no_args_is_help=True, help="Markdown blog and portfolio content toolchain")

app.callback()(configure_logging)
app.command(name="check")(check_cmd)
app.command(name="build")(build_cmd)
app.command(name="list")(list_cmd)
app.command(name="show")(show_cmd)
app.command(name="migrate")(migrate_cmd)
app.command(name="init")(init_cmd)
