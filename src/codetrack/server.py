"""FastAPI server: status page, SSE status stream, and activity ingestion."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Literal

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from jinja2 import Environment, PackageLoader
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from .controller import FlushOutcome, TrackingController, TrackingState
from .events import ActivityEvent
from .notify import NotifyLevel
from .sources import WorkspaceWatcher

logger = logging.getLogger(__name__)

# Seconds between keep-alive pings on idle SSE connections
PING_INTERVAL = 30

_jinja_env = Environment(
    loader=PackageLoader("codetrack", "templates"),
    autoescape=True,
)


def get_template(name: str):
    """Get a Jinja2 template by name."""
    return _jinja_env.get_template(name)


class StatusHub:
    """Fans tracker notifications and state changes out to SSE clients.

    Registered as both a UserNotifier and a controller state listener.
    """

    def __init__(self) -> None:
        self.clients: set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=100)
        self.clients.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self.clients.discard(queue)

    def broadcast(self, event: str, data: dict) -> None:
        """Send an event to all connected clients, dropping ones that fall behind."""
        message = {"event": event, "data": json.dumps(data)}
        dead_clients = []

        for queue in self.clients:
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                dead_clients.append(queue)

        for queue in dead_clients:
            self.clients.discard(queue)

    def notify(self, level: NotifyLevel, message: str) -> None:
        self.broadcast(
            "notification",
            {"level": level.value, "message": message, "at": datetime.now().isoformat()},
        )

    def on_state_change(self, state: TrackingState) -> None:
        self.broadcast(
            "status",
            {"state": state.value, "label": state.label, "tooltip": state.tooltip},
        )


class ActivityPayload(BaseModel):
    """Activity pushed by an editor integration."""

    kind: Literal["edit", "save", "create", "delete", "focus", "window"]
    path: str | None = None


def create_app(
    controller: TrackingController,
    hub: StatusHub | None = None,
    watcher: WorkspaceWatcher | None = None,
) -> FastAPI:
    """Build the FastAPI app around a tracking controller.

    Args:
        controller: Controller to start on startup and stop on shutdown.
        hub: SSE fan-out, registered as a state listener. Created if None.
        watcher: Optional workspace watcher to run alongside the server.

    Returns:
        Configured FastAPI application.
    """
    if hub is None:
        hub = StatusHub()
    controller.add_listener(hub.on_state_change)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage tracker lifecycle - start/stop timers and watcher."""
        watch_task: asyncio.Task | None = None
        controller.start()
        if watcher is not None:
            watch_task = asyncio.create_task(watcher.run())

        yield

        controller.shutdown()
        if watch_task:
            watch_task.cancel()
            try:
                await watch_task
            except asyncio.CancelledError:
                pass

    app = FastAPI(title="codetrack", lifespan=lifespan)
    app.state.controller = controller
    app.state.hub = hub

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Serve the status page."""
        template = get_template("status.html")
        html = template.render(status=controller.status())
        return HTMLResponse(content=html)

    @app.get("/status")
    async def status() -> dict:
        return controller.status()

    @app.post("/activity", status_code=202)
    async def activity(payload: ActivityPayload) -> dict:
        """Record activity reported by an editor integration."""
        event = ActivityEvent.for_path(payload.kind, payload.path)
        controller.on_activity(event)
        return {"accepted": True, "buffered": len(controller.buffer)}

    @app.post("/flush")
    async def flush() -> dict:
        """Commit buffered activity now instead of waiting for the next tick."""
        outcome = await controller.flush()
        if outcome is FlushOutcome.BUSY:
            raise HTTPException(status_code=409, detail="A commit is already in progress")
        return {"outcome": outcome.value, "key": controller.last_commit_key}

    async def event_generator(request: Request) -> AsyncGenerator[dict, None]:
        """Generate SSE events for a client."""
        queue = hub.subscribe()
        try:
            # Send current state first
            yield {"event": "status", "data": json.dumps(controller.status())}

            while True:
                if await request.is_disconnected():
                    break
                try:
                    yield await asyncio.wait_for(queue.get(), timeout=PING_INTERVAL)
                except asyncio.TimeoutError:
                    yield {"event": "ping", "data": "{}"}
        finally:
            hub.unsubscribe(queue)

    @app.get("/events")
    async def events(request: Request) -> EventSourceResponse:
        """SSE endpoint for live status updates."""
        return EventSourceResponse(event_generator(request))

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint."""
        return {
            "status": "ok",
            "tracking": controller.state.value,
            "clients": len(hub.clients),
        }

    return app
