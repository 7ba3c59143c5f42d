# mentorhub/api/__init__.py
# This file makes the api directory a Python package.

from . import admin
from . import auth
from . import chat
from . import rating
from . import session
from . import ws

__all__ = [
    "admin",
    "auth",
    "chat",
    "rating",
    "session",
    "ws",
]
