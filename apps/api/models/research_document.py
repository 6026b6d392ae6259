"""ResearchDocument model for published research content."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, String, Text

from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResearchDocument(Base):
    """A research document, optionally gated behind a PIN."""

    __tablename__ = "research_documents"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    # image mirrors thumbnail for older clients
    image = Column(String, nullable=False, default="")
    thumbnail = Column(String, nullable=False, default="")
    cover_image = Column(String, nullable=False, default="")
    content = Column(Text, nullable=False)
    pin = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    @property
    def is_protected(self) -> bool:
        return bool(self.pin)
