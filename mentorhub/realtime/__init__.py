from .broadcaster import ConnectionManager
from .socket_handler import SessionSocket

__all__ = ["ConnectionManager", "SessionSocket"]
