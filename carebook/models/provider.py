import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from carebook.core.database import Base


class Provider(Base):
    """Healthcare provider owning a schedule configuration."""

    __tablename__ = "providers"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)

    # Schedule document: timezone, recurring_rules, exceptions,
    # min_notice_minutes, max_days_ahead. Replaced wholesale on update.
    schedule_config = Column(JSON, nullable=False, default=dict)

    # Bumped by every accepted booking; booking commits compare-and-swap on it
    booking_version = Column(Integer, nullable=False, default=0)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    bookings = relationship("Booking", back_populates="provider")

    @property
    def timezone(self) -> str:
        return (self.schedule_config or {}).get("timezone") or "UTC"

    def __repr__(self):
        return f"<Provider(id={self.id}, name='{self.name}', timezone='{self.timezone}')>"
