"""
Entry point for running csfassess as a module.

Usage:
    python -m csfassess [command] [options]
"""

from csfassess.cli import main

if __name__ == "__main__":
    main()
