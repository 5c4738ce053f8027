"""
Sub-lifecycle bridges.

Attached once, when the application starts running. They translate web
server transitions and request-pipeline milestones into trace blocks on
the same timeline as the main phases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .errors import UnknownPhaseError
from .render import TracePrinter

logger = logging.getLogger("phasetrace.bridges")

__all__ = [
    "ServerState",
    "ServerLifecycleBridge",
    "PipelineEventType",
    "PipelineEvent",
    "PipelineEventBridge",
]


# ============================================================================
# Web server
# ============================================================================

class ServerState(str, Enum):
    """Web server lifecycle transitions."""
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILURE = "failure"

    @classmethod
    def parse(cls, value: Any) -> "ServerState":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownPhaseError(value, kind="server state", choices=[s.value for s in cls]) from None


class ServerLifecycleBridge:
    """
    Server start/stop listener.

    Stopping resets the clock, so "stopped" reports the shutdown duration
    rather than total uptime.
    """

    def __init__(self, printer: TracePrinter):
        self.printer = printer

    def lifecycle_starting(self, server: Any = None) -> None:
        self.printer.log("Jetty starting...")

    def lifecycle_started(self, server: Any = None) -> None:
        self.printer.log("Jetty started")

    def lifecycle_stopping(self, server: Any = None) -> None:
        self.printer.clock.reset()
        self.printer.log("Stopping Jetty...")

    def lifecycle_stopped(self, server: Any = None) -> None:
        self.printer.log("Jetty stopped")

    def lifecycle_failure(self, server: Any = None, error: Optional[BaseException] = None) -> None:
        logger.debug(f"Server lifecycle failure not traced: {error!r}")

    def on_transition(self, state: ServerState, server: Any = None) -> None:
        """Route a :class:`ServerState` to the matching callback."""
        state = ServerState.parse(state) if not isinstance(state, ServerState) else state
        if state is ServerState.STARTING:
            self.lifecycle_starting(server)
        elif state is ServerState.STARTED:
            self.lifecycle_started(server)
        elif state is ServerState.STOPPING:
            self.lifecycle_stopping(server)
        elif state is ServerState.STOPPED:
            self.lifecycle_stopped(server)
        else:
            self.lifecycle_failure(server)


# ============================================================================
# Request pipeline
# ============================================================================

class PipelineEventType(str, Enum):
    """Application-level milestones of the request pipeline."""
    INITIALIZATION_START = "initialization_start"
    INITIALIZATION_APP_FINISHED = "initialization_app_finished"
    INITIALIZATION_FINISHED = "initialization_finished"
    DESTROY_FINISHED = "destroy_finished"
    RELOAD_FINISHED = "reload_finished"

    @classmethod
    def parse(cls, value: Any) -> "PipelineEventType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownPhaseError(value, kind="pipeline event", choices=[t.value for t in cls]) from None


@dataclass(frozen=True)
class PipelineEvent:
    """Pipeline notification; ``source`` is whatever the pipeline attaches."""
    type: PipelineEventType
    source: Any = None


_PIPELINE_MESSAGES = {
    PipelineEventType.INITIALIZATION_START: "Initializing jersey app...",
    PipelineEventType.INITIALIZATION_APP_FINISHED: "Jersey app initialized",
    PipelineEventType.INITIALIZATION_FINISHED: "Jersey initialized",
    PipelineEventType.DESTROY_FINISHED: "Jersey app destroyed",
}


class PipelineEventBridge:
    """
    Request-pipeline application listener.

    Reports the four initialization/destruction milestones. Other milestone
    types are ignored. Per-request tracing is not supported.
    """

    def __init__(self, printer: TracePrinter):
        self.printer = printer

    def on_event(self, event: PipelineEvent) -> None:
        event_type = getattr(event, "type", None)
        try:
            message = _PIPELINE_MESSAGES.get(event_type)
        except TypeError:
            message = None
        if message is None:
            logger.debug(f"Pipeline event {event_type!r} not traced")
            return
        self.printer.log(message)

    def on_request(self, request_event: Any) -> None:
        """No per-request listener."""
        return None
