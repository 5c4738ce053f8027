"""
Trace block rendering.

A block frames one message under a border and behind an elapsed-time
prefix, so the messages of successive phases line up in one column::

                                                                             ─────────────────────────
    __[ 00:00:00.412 ]____________________________________________________/  3 configurators processed  \\____

The console is used instead of a logger because logging is usually not
configured yet when the earliest phases fire.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TextIO

import click

from .clock import ElapsedClock
from .events import size_of

logger = logging.getLogger("phasetrace.render")

__all__ = ["DEFAULT_GAP", "render_block", "disabled", "TracePrinter"]

DEFAULT_GAP = 70

_BORDER = "\u2500"   # ─


def render_block(message: str, elapsed: str, gap: int = DEFAULT_GAP) -> str:
    """
    Frame *message* with a top border and an elapsed-time prefix.

    Pure: the same message, elapsed label and gap always give the same text.
    The prefix is exactly *gap* characters wide (unless the elapsed label is
    longer than the gap allows), so the message starts at column ``gap + 3``
    right under the border.
    """
    top = " " * (gap + 3) + _BORDER * len(message)
    prefix = "__[ " + elapsed + " ]" + "_" * (gap - 6 - len(elapsed))
    return "\n\n" + top + "\n" + prefix + "/  " + message + "  \\____\n\n"


def disabled(items: Any) -> str:
    """Suffix for a phase that excluded some candidates: ``" (-N)"``."""
    return f" (-{size_of(items)})"


class TracePrinter:
    """
    Writes rendered blocks to a text sink.

    Owns the elapsed clock shared by the dispatcher and both bridges.
    Without a sink, blocks go to the console through ``click.echo``
    (``stream`` picks stdout or stderr), resolved on every write so output
    follows stream redirection.
    """

    __slots__ = ("clock", "sink", "stream", "gap", "color")

    def __init__(
        self,
        clock: Optional[ElapsedClock] = None,
        sink: Optional[TextIO] = None,
        *,
        stream: str = "stdout",
        gap: int = DEFAULT_GAP,
        color: bool = False,
    ) -> None:
        self.clock = clock or ElapsedClock.started()
        self.sink = sink
        self.stream = stream
        self.gap = gap
        self.color = color

    def render(self, message: str) -> str:
        return render_block(message, self.clock.format(), self.gap)

    def log(self, message: str, *args: Any) -> None:
        """
        Render *message* with the current elapsed time and write it.

        With *args*, the message is a ``%`` template: ``log("%s bundles", 3)``.
        """
        try:
            if args:
                message = message % args
            block = self.render(message)
            if self.color:
                block = click.style(block, fg="cyan")
            if self.sink is None:
                click.echo(block, nl=False, err=self.stream == "stderr", color=self.color or None)
            else:
                click.echo(block, file=self.sink, nl=False, color=self.color or None)
        except Exception as e:
            logger.error(f"Failed to write trace block: {e}")
