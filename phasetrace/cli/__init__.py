"""
phasetrace CLI.

Usage:
    phasetrace phases
    phasetrace demo [--gap N] [--stream stdout|stderr]
    phasetrace replay <journal.jsonl>
"""

from .. import __version__

__cli_name__ = "phasetrace"

__all__ = ["__version__", "__cli_name__"]
