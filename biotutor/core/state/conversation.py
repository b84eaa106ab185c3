from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from biotutor.core.state.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationRecord(Base):
    """
    Persisted state of one conversation thread.

    Args:
        Base (declarative_base): The declarative base class for SQLAlchemy models.
    """

    __tablename__ = "conversations"
    thread_id = Column(String, primary_key=True)
    state_json = Column(Text, nullable=False)  # {conversationContext, messages, ...}
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
