"""
``phasetrace replay`` - render a recorded lifecycle journal.

The journal is JSON Lines, one notification per line::

    {"phase": "configurators_processed", "configurators": 3}
    {"phase": "bundles_processed", "bundles": 5, "disabled": 2}
    {"phase": "application_run"}
    {"server": "starting"}
    {"pipeline": "initialization_start"}
    {"server": "stopping"}

Lines are replayed in file order. Blank lines and ``#`` comments are skipped.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import click

from phasetrace.bridges import PipelineEvent, PipelineEventType, ServerState
from phasetrace.config import ConfigError, TraceConfig
from phasetrace.dispatcher import LifecycleTracer
from phasetrace.errors import PhaseTraceError
from phasetrace.events import event_from_dict


def replay_line(tracer: LifecycleTracer, record: Dict[str, Any]) -> None:
    """Feed one journal record to *tracer*."""
    if not isinstance(record, dict):
        raise PhaseTraceError("Journal line must be a JSON object")

    if "server" in record:
        state = ServerState.parse(record["server"])
        if tracer.server_bridge is None:
            raise PhaseTraceError(f"Server event {state.value!r} before application_run")
        tracer.server_bridge.on_transition(state)
    elif "pipeline" in record:
        event_type = PipelineEventType.parse(record["pipeline"])
        if tracer.pipeline_bridge is None:
            raise PhaseTraceError(f"Pipeline event {event_type.value!r} before application_run")
        tracer.pipeline_bridge.on_event(PipelineEvent(event_type))
    else:
        tracer.on_event(event_from_dict(record))


@click.command("replay")
@click.argument("journal", type=click.File("r", encoding="utf-8"))
@click.option("--gap", type=int, default=None, help="Left margin width")
@click.option("--stream", type=click.Choice(["stdout", "stderr"]), default=None, help="Output stream")
def replay_command(journal, gap: Optional[int], stream: Optional[str]):
    """
    Replay a JSON Lines lifecycle journal.

    Examples:
      phasetrace replay startup.jsonl
      phasetrace replay - < startup.jsonl
    """
    overrides = {k: v for k, v in (("gap", gap), ("stream", stream)) if v is not None}
    try:
        config = TraceConfig.load(overrides=overrides)
    except ConfigError as e:
        raise click.BadParameter(str(e)) from e

    tracer = LifecycleTracer.from_config(config)

    for lineno, line in enumerate(journal, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            replay_line(tracer, json.loads(line))
        except json.JSONDecodeError as e:
            raise click.ClickException(f"line {lineno}: invalid JSON: {e.msg}") from e
        except (PhaseTraceError, TypeError) as e:
            raise click.ClickException(f"line {lineno}: {e}") from e
