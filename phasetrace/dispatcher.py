"""
Lifecycle tracer - prints one trace block per host lifecycle phase.

Register it with the host (or a :class:`~phasetrace.lifecycle.PhaseBroadcaster`)
and feed it phase events in the order the host reaches them::

    tracer = LifecycleTracer()
    tracer.on_event(ConfiguratorsProcessedEvent(configurators=[a, b, c]))

Tracing is strictly best-effort: nothing raised while reporting a phase
reaches the host.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, TextIO, Tuple

from .bridges import PipelineEventBridge, ServerLifecycleBridge
from .clock import ElapsedClock
from .events import (
    ApplicationRunEvent,
    Phase,
    PhaseEvent,
    field_size,
)
from .render import DEFAULT_GAP, TracePrinter, disabled

logger = logging.getLogger("phasetrace.dispatcher")

__all__ = ["LifecycleTracer"]


class LifecycleTracer:
    """
    Phase event listener.

    Events are routed through a ``Phase -> handler`` table that must cover
    every phase. The clock starts when the tracer is created, which is about
    when the host registers it.
    """

    def __init__(
        self,
        sink: Optional[TextIO] = None,
        *,
        clock: Optional[ElapsedClock] = None,
        stream: str = "stdout",
        gap: int = DEFAULT_GAP,
        color: bool = False,
        printer: Optional[TracePrinter] = None,
    ):
        self.printer = printer or TracePrinter(clock, sink, stream=stream, gap=gap, color=color)
        self.server_bridge: Optional[ServerLifecycleBridge] = None
        self.pipeline_bridge: Optional[PipelineEventBridge] = None
        self._handlers: Dict[Phase, Callable[[Any], None]] = {
            Phase.CONFIGURATORS_PROCESSED: self.configurators_processed,
            Phase.INITIALIZATION: self.initialization,
            Phase.DW_BUNDLES_RESOLVED: self.dw_bundles_resolved,
            Phase.LOOKUP_BUNDLES_RESOLVED: self.lookup_bundles_resolved,
            Phase.BUNDLES_PROCESSED: self.bundles_processed,
            Phase.INJECTOR_CREATION: self.injector_creation,
            Phase.INSTALLERS_RESOLVED: self.installers_resolved,
            Phase.EXTENSIONS_RESOLVED: self.extensions_resolved,
            Phase.EXTENSIONS_INSTALLED: self.extensions_installed,
            Phase.APPLICATION_RUN: self.application_run,
            Phase.HK_CONFIGURATION: self.hk_configuration,
            Phase.HK_EXTENSIONS_INSTALLED: self.hk_extensions_installed,
        }
        missing = set(Phase) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No trace handler for phases: {sorted(p.value for p in missing)}")

    @classmethod
    def from_config(cls, config: Any = None, sink: Optional[TextIO] = None) -> "LifecycleTracer":
        """Build a tracer from a :class:`~phasetrace.config.TraceConfig` (loaded if omitted)."""
        if config is None:
            from .config import TraceConfig
            config = TraceConfig.load()
        return cls(sink, stream=config.stream, gap=config.gap, color=config.color)

    @property
    def clock(self) -> ElapsedClock:
        return self.printer.clock

    @property
    def bridges_attached(self) -> bool:
        return self.server_bridge is not None

    # ── Dispatch ─────────────────────────────────────────────────────

    def on_event(self, event: PhaseEvent) -> None:
        """Report one phase event. Never raises."""
        phase = getattr(event, "phase", None)
        handler = self._handlers.get(phase) if isinstance(phase, Phase) else None
        if handler is None:
            logger.warning(f"Ignoring non-phase event: {event!r}")
            return
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Trace handler for {phase.value} failed: {e}", exc_info=True)

    __call__ = on_event

    def log(self, message: str) -> None:
        self.printer.log(message)

    # ── Phase handlers ───────────────────────────────────────────────

    def configurators_processed(self, event: Any) -> None:
        self.log(f"{field_size(event, 'configurators')} configurators processed")

    def initialization(self, event: Any) -> None:
        commands = field_size(event, "commands")
        if commands:
            self.log(f"{commands} commands installed")

    def dw_bundles_resolved(self, event: Any) -> None:
        self.log(f"{field_size(event, 'bundles')} dw bundles recognized")

    def lookup_bundles_resolved(self, event: Any) -> None:
        self.log(f"{field_size(event, 'bundles')} lookup bundles recognized")

    def bundles_processed(self, event: Any) -> None:
        self.log(
            f"Configured from {field_size(event, 'bundles')}"
            f"{self._disabled(event)} GuiceyBundles"
        )

    def injector_creation(self, event: Any) -> None:
        self.log(
            f"Starting guice with {field_size(event, 'modules')}/"
            f"{field_size(event, 'overriding_modules')}{self._disabled(event)} modules..."
        )

    def installers_resolved(self, event: Any) -> None:
        self.log(f"{field_size(event, 'installers')}{self._disabled(event)} installers initialized")

    def extensions_resolved(self, event: Any) -> None:
        self.log(f"{field_size(event, 'extensions')}{self._disabled(event)} extensions found")

    def extensions_installed(self, event: Any) -> None:
        self.log(f"{field_size(event, 'extensions')} extensions installed")

    def application_run(self, event: Any) -> None:
        self.log("Guice started, app running...")
        self.attach_bridges(event)

    def hk_configuration(self, event: Any) -> None:
        self.log("Configuring HK...")

    def hk_extensions_installed(self, event: Any) -> None:
        self.log(f"{field_size(event, 'extensions')} HK extensions installed")

    # ── Bridges ──────────────────────────────────────────────────────

    def attach_bridges(self, event: ApplicationRunEvent) -> Tuple[bool, bool]:
        """
        Register the server and pipeline bridges through the run event.

        Returns which of the two were actually attached.
        """
        if self.server_bridge is None:
            self.server_bridge = ServerLifecycleBridge(self.printer)
            self.pipeline_bridge = PipelineEventBridge(self.printer)
        server = self._register(event, "register_server_listener", self.server_bridge)
        pipeline = self._register(event, "register_pipeline_listener", self.pipeline_bridge)
        return server, pipeline

    @staticmethod
    def _register(event: Any, method: str, bridge: Any) -> bool:
        register = getattr(event, method, None)
        if register is None:
            logger.debug(f"{type(event).__name__} has no {method}(); bridge not attached")
            return False
        try:
            attached = bool(register(bridge))
        except Exception as e:
            logger.error(f"{method}() failed: {e}", exc_info=True)
            return False
        if attached:
            logger.debug(f"{type(bridge).__name__} attached")
        else:
            logger.debug(f"{type(bridge).__name__} not attached: no collaborator")
        return attached

    @staticmethod
    def _disabled(event: Any) -> str:
        try:
            items = getattr(event, "disabled")
        except Exception:
            items = None
        return disabled(items)
