"""Entry point for ``python -m contextpipe``."""

from contextpipe.cli.commands import app

if __name__ == "__main__":
    app()
