"""SQLAlchemy models for call capture."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallRecord(Base):
    """A call reported by the PBX and pushed to the helpdesk."""

    __tablename__ = "calls"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    call_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    caller_phone: Mapped[str] = mapped_column(String(64))
    responder_email: Mapped[str] = mapped_column(String(255))
    # e.g. "Incoming Call", "Support Call"
    call_name: Mapped[str | None] = mapped_column(String(255), default=None)
    call_duration: Mapped[int] = mapped_column(default=0)
    source: Mapped[str] = mapped_column(String(32), default="postman")
    started_at: Mapped[datetime] = mapped_column(default=_utcnow)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)
