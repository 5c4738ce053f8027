"""
Phase model - the ordered lifecycle phases a host framework reports.

Each notification is one immutable :class:`PhaseEvent` instance. The concrete
subclass is the tag, its fields are the payload::

    BundlesProcessedEvent(bundles=[...], disabled=[...])

Payload fields are collections (anything with ``len()``); plain integers are
accepted as pre-computed counts, which is what ``event_from_dict`` produces
when replaying journals.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Protocol, Sequence, Type, runtime_checkable

from .errors import PhaseTraceError, UnknownPhaseError

logger = logging.getLogger("phasetrace.events")

__all__ = [
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
    "EVENT_TYPES",
    "size_of",
    "field_size",
    "parse_phase",
    "event_from_dict",
]


class Phase(Enum):
    """Lifecycle phases, declared in the order the host reaches them."""
    CONFIGURATORS_PROCESSED = "configurators_processed"
    INITIALIZATION = "initialization"
    DW_BUNDLES_RESOLVED = "dw_bundles_resolved"
    LOOKUP_BUNDLES_RESOLVED = "lookup_bundles_resolved"
    BUNDLES_PROCESSED = "bundles_processed"
    INJECTOR_CREATION = "injector_creation"
    INSTALLERS_RESOLVED = "installers_resolved"
    EXTENSIONS_RESOLVED = "extensions_resolved"
    EXTENSIONS_INSTALLED = "extensions_installed"
    APPLICATION_RUN = "application_run"
    HK_CONFIGURATION = "hk_configuration"
    HK_EXTENSIONS_INSTALLED = "hk_extensions_installed"

    @property
    def order(self) -> int:
        """Zero-based position in the host lifecycle."""
        return list(Phase).index(self)

    @property
    def label(self) -> str:
        """Host-style CamelCase name, e.g. ``BundlesProcessed``."""
        return "".join(part.capitalize() for part in self.value.split("_"))


# ============================================================================
# Collaborator protocols
# ============================================================================

@runtime_checkable
class ServerLifecycle(Protocol):
    """Web server that accepts start/stop lifecycle listeners."""

    def add_lifecycle_listener(self, listener: Any) -> None: ...


@runtime_checkable
class RequestPipeline(Protocol):
    """Request-processing pipeline that accepts application event listeners."""

    def register_listener(self, listener: Any) -> None: ...


# ============================================================================
# Payload accessors
# ============================================================================

def size_of(value: Any) -> int:
    """
    Count of items in a payload value.

    ``None`` and anything without a length count as zero. Integers are taken
    as counts already.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    try:
        return len(value)
    except TypeError:
        return 0


def field_size(event: Any, name: str) -> int:
    """Size of ``event.<name>``; a missing or failing accessor counts as zero."""
    try:
        value = getattr(event, name)
    except Exception as e:
        logger.debug(f"Payload accessor {name!r} unavailable on {type(event).__name__}: {e}")
        return 0
    return size_of(value)


# ============================================================================
# Events
# ============================================================================

@dataclass(frozen=True)
class PhaseEvent:
    """Base class of all phase notifications."""
    phase: ClassVar[Phase]


@dataclass(frozen=True)
class ConfiguratorsProcessedEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.CONFIGURATORS_PROCESSED
    configurators: Sequence[Any] = ()


@dataclass(frozen=True)
class InitializationEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.INITIALIZATION
    commands: Sequence[Any] = ()


@dataclass(frozen=True)
class DwBundlesResolvedEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.DW_BUNDLES_RESOLVED
    bundles: Sequence[Any] = ()


@dataclass(frozen=True)
class LookupBundlesResolvedEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.LOOKUP_BUNDLES_RESOLVED
    bundles: Sequence[Any] = ()


@dataclass(frozen=True)
class BundlesProcessedEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.BUNDLES_PROCESSED
    bundles: Sequence[Any] = ()
    disabled: Sequence[Any] = ()


@dataclass(frozen=True)
class InjectorCreationEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.INJECTOR_CREATION
    modules: Sequence[Any] = ()
    overriding_modules: Sequence[Any] = ()
    disabled: Sequence[Any] = ()


@dataclass(frozen=True)
class InstallersResolvedEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.INSTALLERS_RESOLVED
    installers: Sequence[Any] = ()
    disabled: Sequence[Any] = ()


@dataclass(frozen=True)
class ExtensionsResolvedEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.EXTENSIONS_RESOLVED
    extensions: Sequence[Any] = ()
    disabled: Sequence[Any] = ()


@dataclass(frozen=True)
class ExtensionsInstalledEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.EXTENSIONS_INSTALLED
    extensions: Sequence[Any] = ()


@dataclass(frozen=True)
class ApplicationRunEvent(PhaseEvent):
    """
    Application fully started and about to serve.

    Carries the two sub-lifecycle sources so listeners can attach to them.
    Either may be ``None`` when the host runs without it (e.g. a CLI command).
    """
    phase: ClassVar[Phase] = Phase.APPLICATION_RUN
    server: Optional[ServerLifecycle] = None
    pipeline: Optional[RequestPipeline] = None

    def register_server_listener(self, listener: Any) -> bool:
        """Attach a server lifecycle listener. Returns False when there is no server."""
        if self.server is None:
            return False
        self.server.add_lifecycle_listener(listener)
        return True

    def register_pipeline_listener(self, listener: Any) -> bool:
        """Attach a request-pipeline listener. Returns False when there is no pipeline."""
        if self.pipeline is None:
            return False
        self.pipeline.register_listener(listener)
        return True


@dataclass(frozen=True)
class HkConfigurationEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.HK_CONFIGURATION


@dataclass(frozen=True)
class HkExtensionsInstalledEvent(PhaseEvent):
    phase: ClassVar[Phase] = Phase.HK_EXTENSIONS_INSTALLED
    extensions: Sequence[Any] = ()


EVENT_TYPES: Dict[Phase, Type[PhaseEvent]] = {
    cls.phase: cls
    for cls in (
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
    )
}


# ============================================================================
# Parsing (journal replay)
# ============================================================================

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def parse_phase(name: Any) -> Phase:
    """
    Resolve a phase from its value, enum name or CamelCase label.

    ``"bundles_processed"``, ``"BUNDLES_PROCESSED"`` and ``"BundlesProcessed"``
    all resolve to :attr:`Phase.BUNDLES_PROCESSED`.
    """
    if isinstance(name, Phase):
        return name
    if not isinstance(name, str) or not name.strip():
        raise UnknownPhaseError(name, choices=[p.value for p in Phase])
    key = _CAMEL_RE.sub("_", name.strip()).replace("-", "_").lower()
    try:
        return Phase(key)
    except ValueError:
        raise UnknownPhaseError(name, choices=[p.value for p in Phase]) from None


def event_from_dict(data: Dict[str, Any]) -> PhaseEvent:
    """
    Build a phase event from a plain mapping, e.g. one JSON journal line::

        {"phase": "bundles_processed", "bundles": 5, "disabled": 2}
    """
    payload = dict(data)
    phase = parse_phase(payload.pop("phase", None))
    cls = EVENT_TYPES[phase]
    allowed = {f.name for f in fields(cls)} - {"server", "pipeline"}
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise PhaseTraceError(
            f"Unexpected fields for phase {phase.value!r}: {', '.join(unknown)}"
        )
    return cls(**payload)
