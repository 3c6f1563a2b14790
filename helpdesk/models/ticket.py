from __future__ import annotations

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Table, Text
from sqlalchemy.orm import relationship

from ..core.choices import TicketStatus, enum_values
from ..core.security import utcnow
from ..db.session import Base

# Many-to-many between tickets and labels. The composite key makes a second
# association of the same pair impossible.
ticket_labels = Table(
    "ticket_labels",
    Base.metadata,
    Column("ticket_id", Integer, ForeignKey("tickets.id", ondelete="CASCADE"), primary_key=True),
    Column("label_id", Integer, ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True),
)


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    status = Column(
        Enum(TicketStatus, name="ticket_status", values_callable=enum_values, validate_strings=True),
        nullable=False,
        default=TicketStatus.OPEN,
    )
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    labels = relationship("Label", secondary=ticket_labels, order_by="Label.name", viewonly=True)
    assignments = relationship("Assignment", order_by="Assignment.user_id", viewonly=True)
    comments = relationship("Comment", order_by="Comment.id", viewonly=True)

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    @property
    def assignee_ids(self) -> list[int]:
        return [assignment.user_id for assignment in self.assignments]

    @property
    def description(self) -> str | None:
        # The description is stored as the ticket's first comment.
        return self.comments[0].content if self.comments else None

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} title={self.title!r} status={self.status}>"


__all__ = ["Ticket", "ticket_labels"]
