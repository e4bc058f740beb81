"""Public points leaderboard."""

from fastapi import APIRouter
from sqlalchemy import select

from tutorhub.api.deps import DbSession
from tutorhub.config import get_settings
from tutorhub.db.models import User
from tutorhub.schemas.user import LeaderboardEntry

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])
settings = get_settings()


@router.get("", response_model=list[LeaderboardEntry])
async def leaderboard(db: DbSession) -> list[LeaderboardEntry]:
    """Top users by points awarded for graded answers."""
    result = await db.execute(
        select(User.id, User.name, User.points)
        .order_by(User.points.desc(), User.id)
        .limit(settings.leaderboard_size)
    )
    return [
        LeaderboardEntry(rank=rank, id=row.id, name=row.name, points=row.points)
        for rank, row in enumerate(result.all(), start=1)
    ]
