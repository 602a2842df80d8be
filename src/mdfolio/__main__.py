from mdfolio.cli.cli import app

app()
