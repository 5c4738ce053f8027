"""
phasetrace errors.

Only setup-time problems raise. Phase dispatch, the bridges and the printer
never let an exception escape into the host lifecycle.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = ["PhaseTraceError", "ConfigError", "UnknownPhaseError"]


class PhaseTraceError(Exception):
    """Base class for phasetrace errors."""


class ConfigError(PhaseTraceError):
    """Raised when trace configuration validation fails."""

    def __init__(self, key: str, value: Any, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid trace config {key}={value!r}: {reason}")


class UnknownPhaseError(PhaseTraceError):
    """Raised when a phase, server state or pipeline type name is not recognized."""

    def __init__(self, name: Any, kind: str = "phase", choices: Optional[list] = None):
        self.name = name
        self.kind = kind
        self.choices = choices or []
        message = f"Unknown {kind} {name!r}"
        if self.choices:
            message += f" (expected one of: {', '.join(self.choices)})"
        super().__init__(message)
