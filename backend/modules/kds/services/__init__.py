from .kds_service import KDSService
from .kds_websocket_manager import (
    KDSWebSocketManager,
    get_kds_manager,
    kds_websocket_manager,
)

__all__ = ["KDSService", "KDSWebSocketManager", "get_kds_manager", "kds_websocket_manager"]
