"""
Entry point for running dohprobe as a module.

Usage: python -m dohprobe [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
