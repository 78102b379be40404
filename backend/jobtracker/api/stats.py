from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from jobtracker.database import get_db
from jobtracker.models import Application, User
from jobtracker.schemas import APPLICATION_STATUSES
from jobtracker.auth import get_current_user

router = APIRouter()


def _rate(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


@router.get("")
async def get_stats(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # Applications by status - single GROUP BY query
    status_query = (
        select(Application.status, func.count(Application.id))
        .where(Application.user_id == user.id)
        .group_by(Application.status)
    )
    status_result = await db.execute(status_query)
    status_counts = {row[0]: row[1] for row in status_result.all()}
    # Ensure all statuses are present with default 0
    for status in APPLICATION_STATUSES:
        status_counts.setdefault(status, 0)

    total = sum(status_counts.values())

    return {
        "total_applications": total,
        "applications_by_status": status_counts,
        "interview_rate": _rate(status_counts["interview"] + status_counts["offer"], total),
        "offer_rate": _rate(status_counts["offer"], total),
    }
