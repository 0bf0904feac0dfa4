"""Database models package."""

from lfg.models.user import User
from lfg.models.route import Route

__all__ = [
    "User",
    "Route",
]
