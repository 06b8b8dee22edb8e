"""HTTP and WebSocket API over the indexed store."""

from .app_keys import STATE_KEY
from .broadcaster import Broadcaster
from .server import ApiServer, ApiServerConfig, create_app
from .state import ServerState

__all__ = [
    "ApiServer",
    "ApiServerConfig",
    "Broadcaster",
    "STATE_KEY",
    "ServerState",
    "create_app",
]
