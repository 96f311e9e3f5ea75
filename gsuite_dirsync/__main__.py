"""
Entry point for running gsuite_dirsync as a module.

Usage:
    python -m gsuite_dirsync --help
    python -m gsuite_dirsync check-config
    python -m gsuite_dirsync sync --dry-run
"""

from gsuite_dirsync.cli import cli

if __name__ == "__main__":
    cli()
