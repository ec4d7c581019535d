# File: tabletypes/__main__.py
"""
TableTypes — Module entry point.

Allows running the generator directly via::

    python -m tabletypes dbmd.json ./out --package acme.db

Delegates to ``tabletypes.cli``.
"""

from __future__ import annotations


def main() -> None:
    from tabletypes.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
