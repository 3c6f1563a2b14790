from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text

from ..core.security import utcnow
from ..db.session import Base


class Label(Base):
    __tablename__ = "labels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, unique=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


__all__ = ["Label"]
