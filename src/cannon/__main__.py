"""Allow ``python -m cannon``."""

from cannon.cli.app import app

app(prog_name="cannon")
