"""Web host: FastAPI routes, WebSocket feed and the service entry point"""

from .app import create_app, main, start_server
from .notify import WebNotifier
from .server import WebServer

__all__ = ["WebNotifier", "WebServer", "create_app", "main", "start_server"]
