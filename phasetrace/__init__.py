"""
phasetrace - developer-facing trace of a host application's lifecycle.

Listens to the ordered phases a host framework passes through while it
starts up, wires dependencies and shuts down, and prints a framed,
timestamped block for each:

- Dispatcher: one handler per phase, routed by :class:`Phase`
- Bridges: web server start/stop and request-pipeline milestones,
  attached when the application starts running
- Renderer: pure block formatting plus a printer bound to an elapsed clock

Usage::

    from phasetrace import LifecycleTracer, ConfiguratorsProcessedEvent

    tracer = LifecycleTracer()
    tracer.on_event(ConfiguratorsProcessedEvent(configurators=[a, b, c]))
"""

__version__ = "0.1.0"

from .errors import PhaseTraceError, ConfigError, UnknownPhaseError
from .clock import ElapsedClock, format_elapsed
from .events import (
    Phase,
    PhaseEvent,
    ConfiguratorsProcessedEvent,
    InitializationEvent,
    DwBundlesResolvedEvent,
    LookupBundlesResolvedEvent,
    BundlesProcessedEvent,
    InjectorCreationEvent,
    InstallersResolvedEvent,
    ExtensionsResolvedEvent,
    ExtensionsInstalledEvent,
    ApplicationRunEvent,
    HkConfigurationEvent,
    HkExtensionsInstalledEvent,
    ServerLifecycle,
    RequestPipeline,
    size_of,
    event_from_dict,
)
from .render import DEFAULT_GAP, render_block, disabled, TracePrinter
from .bridges import (
    ServerState,
    ServerLifecycleBridge,
    PipelineEventType,
    PipelineEvent,
    PipelineEventBridge,
)
from .dispatcher import LifecycleTracer
from .lifecycle import PhaseBroadcaster
from .asgi import LifespanTraceMiddleware
from .config import TraceConfig

__all__ = [
    "__version__",
    # Errors
    "PhaseTraceError",
    "ConfigError",
    "UnknownPhaseError",
    # Clock / rendering
    "ElapsedClock",
    "format_elapsed",
    "DEFAULT_GAP",
    "render_block",
    "disabled",
    "TracePrinter",
    # Phases
    "Phase",
    "PhaseEvent",
    "ConfiguratorsProcessedEvent",
    "InitializationEvent",
    "DwBundlesResolvedEvent",
    "LookupBundlesResolvedEvent",
    "BundlesProcessedEvent",
    "InjectorCreationEvent",
    "InstallersResolvedEvent",
    "ExtensionsResolvedEvent",
    "ExtensionsInstalledEvent",
    "ApplicationRunEvent",
    "HkConfigurationEvent",
    "HkExtensionsInstalledEvent",
    "ServerLifecycle",
    "RequestPipeline",
    "size_of",
    "event_from_dict",
    # Bridges
    "ServerState",
    "ServerLifecycleBridge",
    "PipelineEventType",
    "PipelineEvent",
    "PipelineEventBridge",
    # Tracer
    "LifecycleTracer",
    "PhaseBroadcaster",
    "LifespanTraceMiddleware",
    "TraceConfig",
]
