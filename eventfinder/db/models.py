from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .core import Base


class EventRecord(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(
            "mode IS NULL OR mode IN ('online', 'offline', 'hybrid')", name="ck_event_mode"
        ),
    )

    id = Column(String(64), primary_key=True)
    slug = Column(String(128), nullable=True, index=True, unique=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    # normalize_text(location), so accents/case never block a location match
    location_key = Column(String(255), nullable=False, default="", index=True)
    mode = Column(String(16), nullable=True, index=True)
    date = Column(Date, nullable=False, index=True)
    organizer = Column(String(255), nullable=False, default="")
    venue = Column(String(255), nullable=True)
    price = Column(Float, nullable=True)
    capacity = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    tags = relationship(
        "EventTagRecord",
        order_by="EventTagRecord.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class EventTagRecord(Base):
    __tablename__ = "event_tags"

    event_id = Column(
        String(64), ForeignKey("events.id", ondelete="CASCADE"), primary_key=True
    )
    position = Column(Integer, primary_key=True)
    tag = Column(String(64), nullable=False, index=True)
    tag_key = Column(String(64), nullable=False, index=True)
