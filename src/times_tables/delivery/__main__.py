"""
Entry point for running the practice app as a module.

Usage:
    python -m times_tables.delivery practice
    python -m times_tables.delivery stats
    python -m times_tables.delivery --help
"""
from .cli import main

if __name__ == "__main__":
    main()
