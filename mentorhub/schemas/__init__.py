# mentorhub/schemas/__init__.py

# User schemas
from .user import User

# Auth schemas
from .auth import Token, TokenData, LoginRequest, RegisterRequest

__all__ = [
    "User",
    "Token",
    "TokenData",
    "LoginRequest",
    "RegisterRequest",
]
