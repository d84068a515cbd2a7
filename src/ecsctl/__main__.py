"""
Main entry point for ecsctl.

This module allows ecsctl to be run as:
    python -m ecsctl
"""

from .cli import main

if __name__ == "__main__":
    main()
