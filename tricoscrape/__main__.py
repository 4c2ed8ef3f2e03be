"""
Package entry point.

Allows running the application via:

    python -m tricoscrape

This simply forwards execution to tricoscrape.cli.main().
"""

from tricoscrape.cli import main

if __name__ == "__main__":
    main()
