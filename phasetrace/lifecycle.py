"""
Phase broadcaster - host-side fan-out of phase events.

Hosts that do not have their own listener registry can use this one::

    phases = PhaseBroadcaster()
    phases.print_lifecycle_phases()
    ...
    phases.emit(ConfiguratorsProcessedEvent(configurators=found))
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TextIO, Union

from .events import Phase, PhaseEvent

logger = logging.getLogger("phasetrace.lifecycle")

__all__ = ["PhaseBroadcaster"]

Listener = Union[Callable[[PhaseEvent], None], Any]


class PhaseBroadcaster:
    """
    Delivers phase events to registered listeners in emission order.

    A listener is either an object with ``on_event(event)`` or a plain
    callable. Listener errors are logged and do not stop delivery.
    """

    def __init__(self) -> None:
        self.listeners: List[Listener] = []
        self.last_phase: Optional[Phase] = None
        self.emitted = 0

    def add_listener(self, listener: Listener) -> "PhaseBroadcaster":
        """Register listener (duplicates are ignored)."""
        if listener not in self.listeners:
            self.listeners.append(listener)
        return self

    def remove_listener(self, listener: Listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def print_lifecycle_phases(
        self,
        config: Any = None,
        sink: Optional[TextIO] = None,
    ) -> Any:
        """
        Register a :class:`~phasetrace.dispatcher.LifecycleTracer`.

        Register it as early as possible: its clock starts now.
        """
        from .dispatcher import LifecycleTracer

        if config is None and sink is not None:
            tracer = LifecycleTracer(sink)
        else:
            tracer = LifecycleTracer.from_config(config, sink)
        self.add_listener(tracer)
        return tracer

    def emit(self, event: PhaseEvent) -> None:
        """Emit event to all listeners."""
        phase = getattr(event, "phase", None)
        if isinstance(phase, Phase):
            if self.last_phase is not None and phase.order < self.last_phase.order:
                logger.debug(f"Phase {phase.value} emitted after {self.last_phase.value}")
            self.last_phase = phase
        self.emitted += 1

        for listener in list(self.listeners):
            handler = getattr(listener, "on_event", listener)
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Phase listener error: {e}")

    def status(self) -> Dict[str, Any]:
        return {
            "last_phase": self.last_phase.value if self.last_phase else None,
            "emitted": self.emitted,
            "listeners": len(self.listeners),
        }
