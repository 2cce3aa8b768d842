"""Project root entry point for the command line interface."""

from __future__ import annotations

import sys
from pathlib import Path


def _bootstrap_path() -> None:
    """Ensure the project root is importable when running from a checkout."""
    project_root = Path(__file__).resolve().parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


def main():
    _bootstrap_path()
    from doctrans.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    raise SystemExit(main())
