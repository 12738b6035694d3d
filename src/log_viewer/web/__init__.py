"""Web rendering collaborator: REST API and WebSocket push of the live view."""

from .events import EventBus
from .server import WebServer
from .view import BroadcastLineView

__all__ = ["EventBus", "WebServer", "BroadcastLineView"]
