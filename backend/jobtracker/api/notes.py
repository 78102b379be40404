from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from jobtracker.database import get_db
from jobtracker.models import Note, User
from jobtracker.schemas import NoteCreate, NoteResponse
from jobtracker.auth import get_current_user
from jobtracker.api.applications import get_owned_application

router = APIRouter()


@router.get("/applications/{application_id}/notes", response_model=List[NoteResponse])
async def list_notes(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await get_owned_application(db, user, application_id)
    result = await db.execute(
        select(Note)
        .where(Note.application_id == application_id)
        .order_by(Note.created_at.desc())
    )
    return [NoteResponse.model_validate(n) for n in result.scalars().all()]


@router.post("/applications/{application_id}/notes", response_model=NoteResponse, status_code=201)
async def add_note(
    application_id: str,
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await get_owned_application(db, user, application_id)
    note = Note(
        application_id=application_id,
        user_id=user.id,
        content=payload.content,
        reminder_date=payload.reminder_date,
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return NoteResponse.model_validate(note)


@router.delete("/notes/{note_id}", status_code=204)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(select(Note).where(Note.id == note_id, Note.user_id == user.id))
    note = result.scalar_one_or_none()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")

    await db.delete(note)
    await db.commit()
    return Response(status_code=204)
