"""
Session Service Domain Entities

Each entity in its own file.
"""

from .user_session import UserSession

__all__ = [
    "UserSession",
]
