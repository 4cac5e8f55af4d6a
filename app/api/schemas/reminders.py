"""Reminder response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class DueRemindersResponse(BaseModel):
    """Contacts due for a reminder."""

    contact_ids: list[str]


class ReminderStateResponse(BaseModel):
    """Reminder state response model."""

    model_config = ConfigDict(from_attributes=True)

    contact_id: str
    reminder_count: int
    goal_completed: bool
    last_sent_at: datetime | None = None
    next_due_at: datetime | None = None
    completed_at: datetime | None = None
