"""
Entry point for running pspassess as a module.

Usage:
    python -m pspassess [command] [options]
"""

from pspassess.cli import main

if __name__ == "__main__":
    main()
