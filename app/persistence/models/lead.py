"""Lead model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship

from app.persistence.database import Base
from app.persistence.models.contact import generate_id

if TYPE_CHECKING:
    from app.persistence.models.contact import Contact


class Lead(Base):
    """One submission of the application form.

    Form fields are copied at submission time so later contact edits never
    rewrite what the prospect actually sent.
    """

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=generate_id)
    contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=False, index=True)

    # Submitted form fields
    location = Column(String(255), nullable=True)
    company_type = Column(String(255), nullable=True)
    role_in_company = Column(String(255), nullable=True)
    interests = Column(JSON, nullable=True)
    company_description = Column(Text, nullable=True)
    annual_turnover = Column(String(255), nullable=True)
    number_of_employees = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=False, index=True)  # Normalized at submission
    company_name = Column(String(255), nullable=True)

    status = Column(String(50), nullable=False, index=True)

    # Review decision, set only for ACCEPTED / REJECTED
    decided_by = Column(String(255), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    decision_reason = Column(Text, nullable=True)

    # Message posted to the review group, never cleared once set
    review_chat_id = Column(String(64), nullable=True)
    review_message_id = Column(String(64), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    contact = relationship("Contact", foreign_keys=[contact_id])

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, contact_id={self.contact_id}, phone={self.phone_number}, status={self.status})>"
