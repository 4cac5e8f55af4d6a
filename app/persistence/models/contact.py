"""Contact model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from app.persistence.database import Base


def generate_id() -> str:
    """Generate an opaque primary key."""
    return str(uuid.uuid4())


class Contact(Base):
    """Canonical record of one real person.

    A contact is reachable by its phone, by its chat account, or both. A
    contact first seen in chat carries a placeholder phone until a web
    submission supplies the real one.
    """

    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=generate_id)
    phone = Column(String(50), nullable=False, unique=True, index=True)
    external_id = Column(String(64), nullable=True, unique=True, index=True)
    external_handle = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    locale = Column(String(8), nullable=False, default="uz")
    goal_completed = Column(Boolean, nullable=False, default=False)  # Joined the onboarding channel
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, phone={self.phone}, external_id={self.external_id})>"
