"""ContactMergeLog model for audit trail of contact merges."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String

from app.persistence.database import Base


class ContactMergeLog(Base):
    """Audit log for contact merge operations."""

    __tablename__ = "contact_merge_logs"

    id = Column(Integer, primary_key=True, index=True)
    winner_contact_id = Column(
        String(36), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # The loser row is deleted by the merge, so this is a plain reference
    loser_contact_id = Column(String(36), nullable=False, index=True)
    reason = Column(String(50), nullable=False, default="identity_conflict")
    leads_moved = Column(Integer, nullable=False, default=0)
    merged_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Backup of the loser's identity fields before merge
    # Example: {"phone": "+998901234567", "external_id": "555", "locale": "ru"}
    loser_snapshot = Column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ContactMergeLog(id={self.id}, winner={self.winner_contact_id}, loser={self.loser_contact_id}, at={self.merged_at})>"
