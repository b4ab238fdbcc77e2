"""Allow running with python -m thinkchat."""

from .cli.app import app

app()
