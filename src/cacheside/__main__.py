"""Main entry point for the Cacheside CLI.

Usage:
    python -m cacheside --help
    cacheside --help  # If installed via pip/uv
"""

from cacheside.cli import main

if __name__ == "__main__":
    main()
