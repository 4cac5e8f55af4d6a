"""ReminderState model for onboarding reminders."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from app.persistence.database import Base


class ReminderState(Base):
    """Reminder progress for a contact that has not completed onboarding.

    When goal_completed is set, next_due_at is always NULL.
    """

    __tablename__ = "reminder_states"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(
        String(36), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    reminder_count = Column(Integer, nullable=False, default=0)
    goal_completed = Column(Boolean, nullable=False, default=False)
    last_sent_at = Column(DateTime, nullable=True)
    next_due_at = Column(DateTime, nullable=True, index=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ReminderState(contact_id={self.contact_id}, count={self.reminder_count}, "
            f"completed={self.goal_completed}, next_due_at={self.next_due_at})>"
        )
