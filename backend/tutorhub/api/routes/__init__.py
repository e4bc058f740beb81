"""API routes package."""

from tutorhub.api.routes import admin, chat, leaderboard

__all__ = [
    "admin",
    "chat",
    "leaderboard",
]
