"""
Tests for LifecycleTracer phase dispatch.

Covers:
- One block per phase carrying the payload count
- Initialization skip on zero commands
- Disabled-count suffixes
- Missing / failing payload accessors
- ApplicationRun bridge attachment
- Order preservation and the end-to-end startup/shutdown scenario
"""

import io

import pytest

from phasetrace.bridges import PipelineEventBridge, ServerLifecycleBridge
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
    Phase,
)

from conftest import FakePipeline, FakeServer, elapsed_labels, messages, to_millis


def items(n):
    return [object() for _ in range(n)]


# ============================================================================
# Per-phase reports
# ============================================================================

class TestPhaseReports:

    @pytest.mark.parametrize("event, expected", [
        (ConfiguratorsProcessedEvent(configurators=items(7)), "7 configurators processed"),
        (InitializationEvent(commands=items(7)), "7 commands installed"),
        (DwBundlesResolvedEvent(bundles=items(7)), "7 dw bundles recognized"),
        (LookupBundlesResolvedEvent(bundles=items(7)), "7 lookup bundles recognized"),
        (BundlesProcessedEvent(bundles=items(7), disabled=items(1)), "Configured from 7 (-1) GuiceyBundles"),
        (InjectorCreationEvent(modules=items(7), overriding_modules=items(2), disabled=items(3)),
         "Starting guice with 7/2 (-3) modules..."),
        (InstallersResolvedEvent(installers=items(7), disabled=items(0)), "7 (-0) installers initialized"),
        (ExtensionsResolvedEvent(extensions=items(7), disabled=items(4)), "7 (-4) extensions found"),
        (ExtensionsInstalledEvent(extensions=items(7)), "7 extensions installed"),
        (HkExtensionsInstalledEvent(extensions=items(7)), "7 HK extensions installed"),
    ])
    def test_counted_phase(self, tracer, sink, event, expected):
        tracer.on_event(event)
        assert messages(sink.getvalue()) == [expected]

    def test_static_phases(self, tracer, sink):
        tracer.on_event(ApplicationRunEvent())
        tracer.on_event(HkConfigurationEvent())
        assert messages(sink.getvalue()) == ["Guice started, app running...", "Configuring HK..."]

    def test_initialization_without_commands_skipped(self, tracer, sink):
        tracer.on_event(InitializationEvent(commands=[]))
        assert sink.getvalue() == ""

    def test_initialization_with_one_command(self, tracer, sink):
        tracer.on_event(InitializationEvent(commands=["migrate"]))
        assert messages(sink.getvalue()) == ["1 commands installed"]

    def test_zero_counts_still_reported(self, tracer, sink):
        tracer.on_event(DwBundlesResolvedEvent())
        tracer.on_event(BundlesProcessedEvent())
        assert messages(sink.getvalue()) == [
            "0 dw bundles recognized",
            "Configured from 0 (-0) GuiceyBundles",
        ]

    def test_callable(self, tracer, sink):
        tracer(ConfiguratorsProcessedEvent(configurators=items(2)))
        assert messages(sink.getvalue()) == ["2 configurators processed"]

    def test_every_phase_has_handler(self, tracer):
        assert set(tracer._handlers) == set(Phase)


# ============================================================================
# Best-effort behaviour
# ============================================================================

class TestBestEffort:

    def test_missing_accessor_counts_zero(self, tracer, sink):
        class Bare:
            phase = Phase.BUNDLES_PROCESSED

        tracer.on_event(Bare())
        assert messages(sink.getvalue()) == ["Configured from 0 (-0) GuiceyBundles"]

    def test_failing_accessor_counts_zero(self, tracer, sink):
        class Broken:
            phase = Phase.INJECTOR_CREATION
            overriding_modules = [1]

            @property
            def modules(self):
                raise RuntimeError("not resolved yet")

        tracer.on_event(Broken())
        assert messages(sink.getvalue()) == ["Starting guice with 0/1 (-0) modules..."]

    def test_non_event_ignored(self, tracer, sink, caplog):
        tracer.on_event("not an event")
        tracer.on_event(None)
        assert sink.getvalue() == ""
        assert "Ignoring non-phase event" in caplog.text

    def test_handler_error_swallowed(self, tracer, sink, caplog):
        def explode(event):
            raise ValueError("boom")

        tracer._handlers[Phase.HK_CONFIGURATION] = explode
        tracer.on_event(HkConfigurationEvent())
        assert sink.getvalue() == ""
        assert "hk_configuration failed" in caplog.text

    def test_registration_error_swallowed(self, tracer, sink, caplog):
        class BadServer:
            def add_lifecycle_listener(self, listener):
                raise RuntimeError("server gone")

        tracer.on_event(ApplicationRunEvent(server=BadServer()))
        assert messages(sink.getvalue()) == ["Guice started, app running..."]
        assert "register_server_listener() failed" in caplog.text


# ============================================================================
# Bridge attachment
# ============================================================================

class TestAttachBridges:

    def test_application_run_registers_bridges(self, tracer):
        server, pipeline = FakeServer(), FakePipeline()
        tracer.on_event(ApplicationRunEvent(server=server, pipeline=pipeline))

        assert len(server.listeners) == 1
        assert isinstance(server.listeners[0], ServerLifecycleBridge)
        assert len(pipeline.listeners) == 1
        assert isinstance(pipeline.listeners[0], PipelineEventBridge)
        assert tracer.bridges_attached

    def test_bridges_share_printer(self, tracer):
        server, pipeline = FakeServer(), FakePipeline()
        tracer.on_event(ApplicationRunEvent(server=server, pipeline=pipeline))
        assert server.listeners[0].printer is tracer.printer
        assert pipeline.listeners[0].printer is tracer.printer

    def test_attach_result(self, tracer):
        assert tracer.attach_bridges(ApplicationRunEvent(server=FakeServer())) == (True, False)

    def test_without_collaborators(self, tracer, sink):
        tracer.on_event(ApplicationRunEvent())
        assert messages(sink.getvalue()) == ["Guice started, app running..."]
        assert tracer.server_bridge is not None

    def test_no_bridges_before_run(self, tracer):
        tracer.on_event(ConfiguratorsProcessedEvent())
        assert not tracer.bridges_attached


# ============================================================================
# Ordering and timing
# ============================================================================

class TestTimeline:

    def test_order_preserved(self, tracer, sink):
        tracer.on_event(ExtensionsInstalledEvent(extensions=items(1)))
        tracer.on_event(ConfiguratorsProcessedEvent(configurators=items(2)))
        tracer.on_event(ExtensionsInstalledEvent(extensions=items(1)))
        assert messages(sink.getvalue()) == [
            "1 extensions installed",
            "2 configurators processed",
            "1 extensions installed",
        ]

    def test_elapsed_reported(self, tracer, sink, fake_time):
        fake_time.advance(2.5)
        tracer.on_event(ConfiguratorsProcessedEvent())
        assert elapsed_labels(sink.getvalue()) == ["00:00:02.500"]

    def test_real_clock_non_decreasing(self):
        sink = io.StringIO()
        tracer = LifecycleTracer(sink)
        for _ in range(10):
            tracer.on_event(ConfiguratorsProcessedEvent())
        values = [to_millis(label) for label in elapsed_labels(sink.getvalue())]
        assert len(values) == 10
        assert values == sorted(values)

    def test_end_to_end(self, tracer, sink, fake_time):
        server, pipeline = FakeServer(), FakePipeline()

        fake_time.advance(0.3)
        tracer.on_event(ConfiguratorsProcessedEvent(configurators=items(3)))
        fake_time.advance(0.2)
        tracer.on_event(BundlesProcessedEvent(bundles=items(5), disabled=items(2)))
        fake_time.advance(1.0)
        tracer.on_event(ApplicationRunEvent(server=server, pipeline=pipeline))

        bridge = server.listeners[0]
        bridge.lifecycle_starting(server)
        bridge.lifecycle_started(server)
        fake_time.advance(60)
        bridge.lifecycle_stopping(server)
        fake_time.advance(0.05)
        bridge.lifecycle_stopped(server)

        output = sink.getvalue()
        assert messages(output) == [
            "3 configurators processed",
            "Configured from 5 (-2) GuiceyBundles",
            "Guice started, app running...",
            "Jetty starting...",
            "Jetty started",
            "Stopping Jetty...",
            "Jetty stopped",
        ]
        labels = elapsed_labels(output)
        assert labels == [
            "00:00:00.300",
            "00:00:00.500",
            "00:00:01.500",
            "00:00:01.500",
            "00:00:01.500",
            "00:00:00.000",
            "00:00:00.050",
        ]
        assert to_millis(labels[5]) < to_millis(labels[4])


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    def test_from_config(self, sink):
        from phasetrace.config import TraceConfig

        tracer = LifecycleTracer.from_config(TraceConfig(gap=30), sink=sink)
        tracer.on_event(ConfiguratorsProcessedEvent())
        line = sink.getvalue().strip("\n").split("\n")[1]
        assert line.index("/  ") == 30

    def test_clock_property(self, tracer, clock):
        assert tracer.clock is clock
