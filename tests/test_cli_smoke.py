from typer.testing import CliRunner

from mdfolio.cli.cli import app


def test_cli_smoke():
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("check", "build", "list", "show", "migrate", "init"):
        assert command in result.output
