from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint

from ..core.security import utcnow
from ..db.session import Base


class Assignment(Base):
    """A user assigned to work a ticket."""

    __tablename__ = "assignments"
    __table_args__ = (UniqueConstraint("ticket_id", "user_id", name="uq_assignments_ticket_user"),)

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


__all__ = ["Assignment"]
