"""opdscli - A terminal browser for OPDS catalogs.

A terminal-based application that provides a text user interface (TUI) for browsing
OPDS catalogs, downloading books and managing a local download directory.
"""

from .main import main

__all__: list[str] = ["main"]

if __name__ == "__main__":
    main()  # pragma: no cover
