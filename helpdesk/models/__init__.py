"""Importing this package registers every table with ``Base.metadata``."""

from .assignment import Assignment
from .comment import Comment
from .label import Label
from .ticket import Ticket, ticket_labels
from .user import User, UserSession

__all__ = ["Assignment", "Comment", "Label", "Ticket", "User", "UserSession", "ticket_labels"]
