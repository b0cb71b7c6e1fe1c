"""Entry point for running promptgate as a module.

Allows running the application with:
    python -m promptgate

This delegates to the Typer CLI app.
"""

from promptgate.cli import app

if __name__ == "__main__":
    app()
