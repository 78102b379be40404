"""
Background Scheduler - Reminder Checks

Periodically turns due note reminders into user notifications.

Processing Pipeline:
    1. Select notes with reminder_date <= today that have not fired yet
    2. Create one Notification per note for the note's owner
    3. Mark the note's reminder as sent so it fires exactly once
    4. Publish an INSERT change event so open notification streams update

Default Schedule: Every 60 minutes (configurable via REMINDER_INTERVAL_MINUTES)
"""

import logging
from datetime import date
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from jobtracker.database import async_session
from jobtracker.models import Note, Notification
from jobtracker.schemas import NotificationResponse
from jobtracker.services.events import change_feed
from jobtracker.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()
scheduler = AsyncIOScheduler()


def reminder_message(note: Note) -> str:
    application = note.application
    return f"Reminder: {note.content} ({application.position} at {application.company})"


async def check_reminders(session_factory=async_session, today: Optional[date] = None) -> int:
    """
    Fire every due, unsent reminder.

    Returns:
        Number of notifications created
    """
    today = today or date.today()

    async with session_factory() as db:
        result = await db.execute(
            select(Note)
            .options(selectinload(Note.application))
            .where(
                Note.reminder_date.is_not(None),
                Note.reminder_date <= today,
                Note.reminder_sent.is_(False),
            )
        )
        due_notes = result.scalars().all()

        if not due_notes:
            logger.debug("No reminders due")
            return 0

        created = []
        for note in due_notes:
            notification = Notification(user_id=note.user_id, message=reminder_message(note))
            db.add(notification)
            note.reminder_sent = True
            created.append(notification)

        await db.commit()

        for notification in created:
            await db.refresh(notification)
            record = NotificationResponse.model_validate(notification).model_dump(mode="json")
            change_feed.publish("notifications", notification.user_id, "INSERT", record)

    logger.info(f"Created {len(created)} reminder notifications")
    return len(created)


def start_scheduler():
    """Start the background scheduler"""
    scheduler.add_job(
        check_reminders,
        trigger=IntervalTrigger(minutes=settings.reminder_interval_minutes),
        id="check_reminders",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started: checking reminders every {settings.reminder_interval_minutes} minutes")


def stop_scheduler():
    """Stop the background scheduler"""
    scheduler.shutdown()
