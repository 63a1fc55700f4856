"""Entry point for running repoctx as a module.

Usage:
    python -m repoctx [command] [options]

Example:
    python -m repoctx sync https://github.com/org/app.git --kind git --project app
    python -m repoctx check
"""

from repoctx.cli import app

if __name__ == "__main__":
    app()
