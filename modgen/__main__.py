# File: modgen/__main__.py
"""
modgen - Module entry point.

Allows running the generator directly via::

    python -m modgen generate User name:string

This module simply delegates to the CLI entry point defined in ``modgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from modgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
