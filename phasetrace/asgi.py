"""
ASGI lifespan adapter.

Wraps an ASGI application and turns its lifespan exchange into web server
lifecycle notifications, which is what the server bridge listens to::

    app = LifespanTraceMiddleware(app)
    tracer.on_event(ApplicationRunEvent(server=app))

Only ``lifespan`` scopes are observed; everything else passes through.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, MutableMapping

from .bridges import ServerState

logger = logging.getLogger("phasetrace.asgi")

__all__ = ["LifespanTraceMiddleware"]

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]

_RECEIVED = {
    "lifespan.startup": ServerState.STARTING,
    "lifespan.shutdown": ServerState.STOPPING,
}

_SENT = {
    "lifespan.startup.complete": ServerState.STARTED,
    "lifespan.shutdown.complete": ServerState.STOPPED,
    "lifespan.startup.failed": ServerState.FAILURE,
    "lifespan.shutdown.failed": ServerState.FAILURE,
}

_CALLBACKS: Dict[ServerState, str] = {
    ServerState.STARTING: "lifecycle_starting",
    ServerState.STARTED: "lifecycle_started",
    ServerState.STOPPING: "lifecycle_stopping",
    ServerState.STOPPED: "lifecycle_stopped",
    ServerState.FAILURE: "lifecycle_failure",
}


class LifespanTraceMiddleware:
    """ASGI middleware acting as a server lifecycle source."""

    def __init__(self, app: Callable[[Scope, Receive, Send], Awaitable[None]]):
        self.app = app
        self.listeners: List[Any] = []
        self.state: ServerState | None = None

    def add_lifecycle_listener(self, listener: Any) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_lifecycle_listener(self, listener: Any) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "lifespan":
            await self.app(scope, receive, send)
            return

        async def traced_receive() -> Message:
            message = await receive()
            state = _RECEIVED.get(message.get("type"))
            if state is not None:
                self._notify(state)
            return message

        async def traced_send(message: Message) -> None:
            await send(message)
            state = _SENT.get(message.get("type"))
            if state is not None:
                self._notify(state, message.get("message"))

        await self.app(scope, traced_receive, traced_send)

    def _notify(self, state: ServerState, detail: Any = None) -> None:
        self.state = state
        callback = _CALLBACKS[state]
        for listener in list(self.listeners):
            method = getattr(listener, callback, None)
            if method is None:
                continue
            try:
                if state is ServerState.FAILURE:
                    method(self, RuntimeError(detail or "lifespan failed"))
                else:
                    method(self)
            except Exception as e:
                logger.error(f"Lifecycle listener error on {state.value}: {e}")
