"""REST and WebSocket endpoints for the live log view."""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Callable

from aiohttp import web
from aiohttp.web import WebSocketResponse

from .events import RESYNC, drain
from .view import event_payload

if TYPE_CHECKING:
    from ..viewer import LogViewer

logger = logging.getLogger(__name__)


async def _ws_sender(
    ws: WebSocketResponse,
    queue: asyncio.Queue,
    snapshot: Callable[[], list[dict]],
) -> None:
    """Forward EventBus events to a WebSocket client.

    On RESYNC the client gets a fresh state + log_reset. Anything still
    queued at that point is already part of the snapshot and is dropped.
    """
    try:
        while not ws.closed:
            msg = await queue.get()
            if msg["event"] == RESYNC:
                drain(queue)
                for message in snapshot():
                    await ws.send_json(message)
                continue
            await ws.send_json({"type": msg["event"], **msg["data"]})
    except (ConnectionResetError, ConnectionError, asyncio.CancelledError):
        pass


def create_api_routes(viewer: "LogViewer") -> web.RouteTableDef:
    """Create all API routes bound to the given viewer."""
    routes = web.RouteTableDef()
    dispatcher = viewer.dispatcher

    def _snapshot_messages() -> list[dict]:
        """Everything a client needs to rebuild its mirror of the view."""
        events = [event_payload(e) for e in viewer.view.events]
        return [
            {"type": "state", **dispatcher.state_payload()},
            {"type": "log_reset", "events": events},
        ]

    async def _user_action(kind: str, payload=None) -> web.Response:
        try:
            state = await dispatcher.request(kind, payload)
        except (ValueError, TypeError) as e:
            return web.json_response({"error": str(e)}, status=400)
        return web.json_response(state)

    @routes.get("/api/health")
    async def health(request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    @routes.get("/api/state")
    async def state(request: web.Request) -> web.Response:
        return web.json_response(dispatcher.state_payload())

    @routes.get("/api/logs")
    async def logs(request: web.Request) -> web.Response:
        """Full recompute of the filtered buffer, oldest first."""
        events = dispatcher.session.visible_events()
        return web.json_response({
            "events": [event_payload(e) for e in events],
            "paused": dispatcher.session.paused,
        })

    @routes.put("/api/filters")
    async def set_filters(request: web.Request) -> web.Response:
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return web.json_response({"error": "Invalid JSON body"}, status=400)
        if not isinstance(body, dict):
            return web.json_response({"error": "Expected a JSON object"}, status=400)
        return await _user_action("set_filters", body)

    @routes.post("/api/pause")
    async def pause(request: web.Request) -> web.Response:
        return await _user_action("pause")

    @routes.post("/api/resume")
    async def resume(request: web.Request) -> web.Response:
        return await _user_action("resume")

    @routes.post("/api/toggle-pause")
    async def toggle_pause(request: web.Request) -> web.Response:
        return await _user_action("toggle_pause")

    @routes.post("/api/clear")
    async def clear(request: web.Request) -> web.Response:
        return await _user_action("clear")

    @routes.get("/api/ws")
    async def websocket_handler(request: web.Request) -> WebSocketResponse:
        """WebSocket endpoint mirroring the view in real time."""
        ws = WebSocketResponse(heartbeat=30)
        await ws.prepare(request)
        logger.info("WS client connected from %s", request.remote)

        bus = viewer.event_bus
        sender: asyncio.Task | None = None
        queue: asyncio.Queue | None = None
        try:
            # Subscribe before the snapshot is taken: nothing can run between
            # the two, so no live event is missed or duplicated.
            queue = bus.subscribe()
            for message in _snapshot_messages():
                await ws.send_json(message)

            sender = asyncio.create_task(_ws_sender(ws, queue, _snapshot_messages))

            # Block until client disconnects (reads drain client msgs)
            async for _msg in ws:
                pass
        except (ConnectionResetError, ConnectionError) as e:
            logger.info("WS stream closed: %s", type(e).__name__)
        finally:
            if sender is not None:
                sender.cancel()
                try:
                    await sender
                except asyncio.CancelledError:
                    pass
            if queue is not None:
                bus.unsubscribe(queue)
            logger.info("WS client disconnected")

        return ws

    return routes
