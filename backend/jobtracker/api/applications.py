import csv
import io
import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from jobtracker.database import get_db
from jobtracker.models import Application, User
from jobtracker.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationUpdate,
)
from jobtracker.auth import get_current_user
from jobtracker.services.analysis import run_match_analysis

logger = logging.getLogger(__name__)
router = APIRouter()

CSV_COLUMNS = [
    "id",
    "company",
    "position",
    "status",
    "date_applied",
    "location",
    "job_url",
    "interview_date",
    "created_at",
]


async def get_owned_application(db: AsyncSession, user: User, application_id: str) -> Application:
    result = await db.execute(
        select(Application).where(
            Application.id == application_id,
            Application.user_id == user.id,
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    return application


async def list_owned_applications(
    db: AsyncSession,
    user: User,
    status_filter: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Application]:
    query = select(Application).where(Application.user_id == user.id)

    if status_filter:
        query = query.where(Application.status == status_filter)

    if search:
        search_filter = Application.company.ilike(f"%{search}%") | Application.position.ilike(f"%{search}%")
        query = query.where(search_filter)

    query = query.order_by(Application.date_applied.desc(), Application.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("", response_model=List[ApplicationResponse])
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    applications = await list_owned_applications(db, user, status, search)
    return [ApplicationResponse.model_validate(a) for a in applications]


@router.post("", response_model=ApplicationResponse, status_code=201)
async def create_application(
    payload: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    data = payload.model_dump()
    data["date_applied"] = data["date_applied"] or date.today()

    application = Application(user_id=user.id, **data)
    db.add(application)
    await db.commit()
    await db.refresh(application)

    logger.info(f"Created application {application.id} ({application.status})")
    return ApplicationResponse.model_validate(application)


@router.get("/export.csv")
async def export_applications(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    applications = await list_owned_applications(db, user)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for application in applications:
        writer.writerow(
            ["" if getattr(application, col) is None else getattr(application, col) for col in CSV_COLUMNS]
        )

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="applications.csv"'},
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = await get_owned_application(db, user, application_id)
    return ApplicationResponse.model_validate(application)


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: str,
    update: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = await get_owned_application(db, user, application_id)

    update_data = update.model_dump(exclude_unset=True)
    for field in ("company", "position", "status", "date_applied"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")

    for field, value in update_data.items():
        setattr(application, field, value)

    await db.commit()
    await db.refresh(application)

    return ApplicationResponse.model_validate(application)


@router.delete("/{application_id}", status_code=204)
async def delete_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = await get_owned_application(db, user, application_id)
    await db.delete(application)
    await db.commit()
    return Response(status_code=204)


@router.post("/{application_id}/analyze", status_code=status.HTTP_202_ACCEPTED)
async def request_match_analysis(
    application_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Start a match analysis in the background; poll the application for the result."""
    application = await get_owned_application(db, user, application_id)
    application.match_analysis = None
    await db.commit()

    background_tasks.add_task(run_match_analysis, user.id, application_id)
    return {"message": "Match analysis started", "status": "processing"}
