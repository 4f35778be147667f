# File: shipwright/__main__.py
"""
Shipwright — Module entry point.

Allows running the generator directly via::

    python -m shipwright scaffold post id:uuid! title:string!
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from shipwright.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
