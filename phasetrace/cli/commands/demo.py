"""
``phasetrace demo`` - replay a canonical startup and shutdown.

Runs a real tracer: the phases go through the dispatcher, the web server
transitions come from an ASGI lifespan exchange through
:class:`~phasetrace.asgi.LifespanTraceMiddleware`.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import click

from phasetrace.asgi import LifespanTraceMiddleware
from phasetrace.bridges import PipelineEvent, PipelineEventType
from phasetrace.config import ConfigError, TraceConfig
from phasetrace.dispatcher import LifecycleTracer
from phasetrace.events import (
    ApplicationRunEvent,
    BundlesProcessedEvent,
    ConfiguratorsProcessedEvent,
    DwBundlesResolvedEvent,
    ExtensionsInstalledEvent,
    ExtensionsResolvedEvent,
    HkConfigurationEvent,
    HkExtensionsInstalledEvent,
    InitializationEvent,
    InjectorCreationEvent,
    InstallersResolvedEvent,
    LookupBundlesResolvedEvent,
)


class DemoPipeline:
    """Minimal request pipeline that fires milestones on demand."""

    def __init__(self) -> None:
        self.listeners: List[Any] = []

    def register_listener(self, listener: Any) -> None:
        self.listeners.append(listener)

    def fire(self, event_type: PipelineEventType) -> None:
        event = PipelineEvent(event_type, source=self)
        for listener in self.listeners:
            listener.on_event(event)


async def _noop_app(scope, receive, send):
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


def run_demo(tracer: LifecycleTracer) -> None:
    """Drive *tracer* through a full startup and shutdown."""
    server = LifespanTraceMiddleware(_noop_app)
    pipeline = DemoPipeline()

    tracer.on_event(ConfiguratorsProcessedEvent(configurators=["jdbi", "admin"]))
    tracer.on_event(InitializationEvent(commands=["migrate"]))
    tracer.on_event(DwBundlesResolvedEvent(bundles=["assets", "views"]))
    tracer.on_event(LookupBundlesResolvedEvent(bundles=["auth"]))
    tracer.on_event(BundlesProcessedEvent(bundles=["assets", "views", "auth", "core"], disabled=["legacy"]))
    tracer.on_event(InjectorCreationEvent(modules=["core", "db", "web"], overriding_modules=["test"], disabled=[]))
    tracer.on_event(InstallersResolvedEvent(installers=list(range(12)), disabled=["health"]))
    tracer.on_event(ExtensionsResolvedEvent(extensions=list(range(8)), disabled=[]))
    tracer.on_event(ExtensionsInstalledEvent(extensions=list(range(8))))
    tracer.on_event(ApplicationRunEvent(server=server, pipeline=pipeline))

    tracer.on_event(HkConfigurationEvent())
    pipeline.fire(PipelineEventType.INITIALIZATION_START)
    tracer.on_event(HkExtensionsInstalledEvent(extensions=["resource", "provider"]))
    pipeline.fire(PipelineEventType.INITIALIZATION_APP_FINISHED)
    pipeline.fire(PipelineEventType.INITIALIZATION_FINISHED)

    asyncio.run(_lifespan(server, pipeline))


async def _lifespan(server: LifespanTraceMiddleware, pipeline: DemoPipeline) -> None:
    messages = asyncio.Queue()
    await messages.put({"type": "lifespan.startup"})

    async def receive():
        return await messages.get()

    async def send(message):
        if message["type"] == "lifespan.startup.complete":
            await messages.put({"type": "lifespan.shutdown"})
        elif message["type"] == "lifespan.shutdown.complete":
            pipeline.fire(PipelineEventType.DESTROY_FINISHED)

    await server({"type": "lifespan", "asgi": {"version": "3.0"}}, receive, send)


@click.command("demo")
@click.option("--gap", type=int, default=None, help="Left margin width")
@click.option("--stream", type=click.Choice(["stdout", "stderr"]), default=None, help="Output stream")
@click.option("--color/--no-color", default=None, help="Style trace blocks")
def demo_command(gap: Optional[int], stream: Optional[str], color: Optional[bool]):
    """
    Print a sample startup and shutdown trace.

    Examples:
      phasetrace demo
      phasetrace demo --gap 40 --stream stderr
    """
    overrides = {k: v for k, v in (("gap", gap), ("stream", stream), ("color", color)) if v is not None}
    try:
        config = TraceConfig.load(overrides=overrides)
    except ConfigError as e:
        raise click.BadParameter(str(e)) from e

    run_demo(LifecycleTracer.from_config(config))
