import logging
import secrets
from pathlib import PurePosixPath
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, UploadFile, File, Response
from sqlalchemy.ext.asyncio import AsyncSession
from jobtracker.database import get_db
from jobtracker.models import Profile, User
from jobtracker.schemas import ProfileResponse, ProfileUpdate, SignedUrlResponse
from jobtracker.auth import get_current_user
from jobtracker.config import get_settings
from jobtracker.services.analysis import run_resume_analysis
from jobtracker.services.storage import FileStorage, get_storage

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()

RESUME_EXTENSIONS = {"pdf", "doc", "docx"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


async def get_or_create_profile(db: AsyncSession, user: User) -> Profile:
    profile = await db.get(Profile, user.id)

    if not profile:
        profile = Profile(id=user.id, full_name=user.display_name or "")
        db.add(profile)
        await db.commit()
        await db.refresh(profile)

    return profile


def _to_response(profile: Profile, user: User) -> ProfileResponse:
    response = ProfileResponse.model_validate(profile)
    response.email = user.email
    return response


def _extension(filename: str) -> str:
    return PurePosixPath(filename or "").suffix.lstrip(".").lower()


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")
    return data


@router.get("", response_model=ProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile = await get_or_create_profile(db, user)
    return _to_response(profile, user)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    update: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile = await get_or_create_profile(db, user)

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(profile, field, value if value is not None else "")

    await db.commit()
    await db.refresh(profile)
    return _to_response(profile, user)


@router.post("/avatar", response_model=ProfileResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Avatar must be an image")

    data = await _read_upload(file)
    path = f"{user.id}/{secrets.token_hex(8)}.{_extension(file.filename) or 'img'}"
    await storage.upload("avatars", path, data, upsert=True)

    profile = await get_or_create_profile(db, user)
    previous = profile.avatar_path
    profile.avatar_path = path
    await db.commit()
    await db.refresh(profile)

    if previous and previous != path:
        await storage.delete("avatars", previous)

    return _to_response(profile, user)


@router.get("/avatar-url", response_model=SignedUrlResponse)
async def avatar_url(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    profile = await get_or_create_profile(db, user)
    if not profile.avatar_path:
        raise HTTPException(status_code=404, detail="No avatar uploaded")

    ttl = settings.signed_url_ttl_seconds
    return SignedUrlResponse(
        signed_url=storage.create_signed_url("avatars", profile.avatar_path, ttl),
        expires_in=ttl,
    )


@router.post("/resume", response_model=ProfileResponse)
async def upload_resume(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    """Store the resume and start its analysis; poll GET /profile for resume_analysis."""
    extension = _extension(file.filename)
    if extension not in RESUME_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Resume must be a .pdf, .doc or .docx file")

    data = await _read_upload(file)
    path = f"{user.id}.{extension}"
    await storage.upload("resumes", path, data, upsert=True)

    profile = await get_or_create_profile(db, user)
    profile.resume_path = path
    profile.resume_analysis = None
    await db.commit()
    await db.refresh(profile)

    background_tasks.add_task(run_resume_analysis, user.id)
    logger.info(f"Resume uploaded for {user.id}, analysis queued")
    return _to_response(profile, user)


@router.get("/resume")
async def download_resume(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    profile = await get_or_create_profile(db, user)
    if not profile.resume_path:
        raise HTTPException(status_code=404, detail="No resume uploaded")

    data = await storage.download("resumes", profile.resume_path)
    filename = PurePosixPath(profile.resume_path).name
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
