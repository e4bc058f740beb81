"""User schemas."""

from tutorhub.schemas.base import BaseSchema


class LeaderboardEntry(BaseSchema):
    """One row of the points leaderboard."""

    rank: int
    id: int
    name: str
    points: int
