"""
Trace configuration.

Merge order (later overrides earlier):

1. Defaults
2. ``.env`` file (``PHASETRACE_*`` keys only)
3. Environment variables (``PHASETRACE_*``)
4. Manual overrides
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values

from .errors import ConfigError
from .render import DEFAULT_GAP

__all__ = ["TraceConfig", "ConfigError", "ENV_PREFIX", "MIN_GAP"]

ENV_PREFIX = "PHASETRACE_"
MIN_GAP = 10

_STREAMS = ("stdout", "stderr")


@dataclass
class TraceConfig:
    """Resolved trace settings."""
    gap: int = DEFAULT_GAP
    stream: str = "stdout"
    color: bool = False

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def load(
        cls,
        env_prefix: str = ENV_PREFIX,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "TraceConfig":
        """
        Load configuration from the environment.

        Args:
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Raises:
            ConfigError: On unknown types or out-of-range values
        """
        data: Dict[str, Any] = {}

        if env_file:
            env_path = Path(env_file)
            if env_path.exists():
                data.update(_from_mapping(dotenv_values(env_path), env_prefix))

        data.update(_from_mapping(os.environ, env_prefix))

        if overrides:
            data.update(overrides)

        known = {f.name: f for f in fields(cls)}
        return cls(**{k: _coerce(known[k].default, v) for k, v in data.items() if k in known})

    def validate(self) -> None:
        if isinstance(self.gap, bool) or not isinstance(self.gap, int):
            raise ConfigError("gap", self.gap, "must be an integer")
        if self.gap < MIN_GAP:
            raise ConfigError("gap", self.gap, f"must be at least {MIN_GAP}")
        if self.stream not in _STREAMS:
            raise ConfigError("stream", self.stream, f"must be one of {', '.join(_STREAMS)}")
        if not isinstance(self.color, bool):
            raise ConfigError("color", self.color, "must be a boolean")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _from_mapping(mapping: Any, prefix: str) -> Dict[str, Any]:
    """Pick ``PREFIX_KEY=value`` entries and parse them (``PHASETRACE_GAP`` -> ``gap``)."""
    result: Dict[str, Any] = {}
    for key, value in mapping.items():
        if not key.startswith(prefix) or value is None:
            continue
        result[key[len(prefix):].lower()] = _parse_value(value)
    return result


def _coerce(default: Any, value: Any) -> Any:
    """Accept 1/0 for boolean settings."""
    if isinstance(default, bool) and not isinstance(value, bool) and value in (0, 1):
        return bool(value)
    return value


def _parse_value(value: str) -> Any:
    """Parse string value to appropriate type."""
    value = value.strip()

    # Boolean
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    # Number
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    # JSON
    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value
