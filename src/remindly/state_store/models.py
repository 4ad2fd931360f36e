"""SQLAlchemy models for State Store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class Role(StrEnum):
    """User role enum."""

    ADMIN = "admin"
    STUDENT = "student"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Category(StrEnum):
    WORK = "work"
    PERSONAL = "personal"
    HEALTH = "health"
    FINANCE = "finance"
    ACADEMIC = "academic"
    OTHER = "other"


class ReminderStatus(StrEnum):
    """Reminder completion status.

    OVERDUE is only ever asserted by data; nothing in Remindly computes it.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class NotificationType(StrEnum):
    EMAIL = "email"
    APP = "app"
    BOTH = "both"


class TargetFilter(StrEnum):
    """How an admin chose the audience of a reminder (display only)."""

    ALL = "all"
    SPECIFIC = "specific"


class RequestStatus(StrEnum):
    """Reschedule request state. APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


DEFAULT_DURATION_MINUTES = 60


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """User model - an identity that can sign in."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    avatar: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __init__(
        self,
        name: str,
        email: str,
        role: str,
        id: str | None = None,
        password_hash: str | None = None,
        google_id: str | None = None,
        avatar: str | None = None,
        is_active: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.email = email.strip().lower()
        self.role = role
        self.password_hash = password_hash
        self.google_id = google_id
        self.avatar = avatar
        self.is_active = is_active

    @property
    def user_role(self) -> Role:
        """Get role as Role enum."""
        return Role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


class ReminderAssignment(Base):
    """Association row - a reminder assigned to one user."""

    __tablename__ = "reminder_assignments"

    reminder_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reminders.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )

    reminder: Mapped[Reminder] = relationship("Reminder", back_populates="assignments")

    def __init__(self, user_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"<ReminderAssignment(reminder_id={self.reminder_id!r}, user_id={self.user_id!r})>"


class Reminder(Base):
    """Reminder model - a personal reminder or an admin task."""

    __tablename__ = "reminders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    recurring: Mapped[bool] = mapped_column(Boolean, nullable=False)
    notification_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    created_by_role: Mapped[str] = mapped_column(String(20), nullable=False)
    target_filter: Mapped[str] = mapped_column(String(20), nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    assignments: Mapped[list[ReminderAssignment]] = relationship(
        "ReminderAssignment",
        back_populates="reminder",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    reschedule_requests: Mapped[list[RescheduleRequest]] = relationship(
        "RescheduleRequest", back_populates="reminder", cascade="all, delete-orphan"
    )

    def __init__(
        self,
        title: str,
        date: str,
        time: str,
        created_by: str,
        created_by_role: str,
        id: str | None = None,
        description: str = "",
        priority: str = Priority.MEDIUM.value,
        category: str = Category.OTHER.value,
        status: str = ReminderStatus.PENDING.value,
        recurring: bool = False,
        notification_type: str = NotificationType.APP.value,
        target_filter: str = TargetFilter.ALL.value,
        is_locked: bool = False,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        assigned_to: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.title = title
        self.description = description
        self.date = date
        self.time = time
        self.priority = priority
        self.category = category
        self.status = status
        self.recurring = recurring
        self.notification_type = notification_type
        self.created_by = created_by
        self.created_by_role = created_by_role
        self.target_filter = target_filter
        self.is_locked = is_locked
        self.duration_minutes = duration_minutes
        self.assignments = [ReminderAssignment(user_id=u) for u in (assigned_to or [])]

    @property
    def assigned_to(self) -> set[str]:
        """IDs of the users this reminder is assigned to."""
        return {a.user_id for a in self.assignments}

    @property
    def is_broadcast(self) -> bool:
        """Admin reminder with no explicit assignees applies to every student."""
        return self.created_by_role == Role.ADMIN.value and not self.assignments

    @property
    def reminder_status(self) -> ReminderStatus:
        """Get status as ReminderStatus enum."""
        return ReminderStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<Reminder(id={self.id!r}, title={self.title!r}, "
            f"date={self.date!r}, time={self.time!r})>"
        )


class RescheduleRequest(Base):
    """Reschedule request model - a student's proposal to move a locked reminder."""

    __tablename__ = "reschedule_requests"
    __table_args__ = (
        # At most one pending request per (reminder, requester)
        Index(
            "uq_pending_reschedule_request",
            "reminder_id",
            "requested_by",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    reminder_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reminders.id", ondelete="CASCADE"), nullable=False
    )
    requested_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    proposed_date: Mapped[str] = mapped_column(String(10), nullable=False)
    proposed_time: Mapped[str] = mapped_column(String(5), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    reviewed_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships, used for display fields resolved at read time
    reminder: Mapped[Reminder] = relationship(
        "Reminder", back_populates="reschedule_requests", lazy="joined"
    )
    requester: Mapped[User] = relationship("User", foreign_keys=[requested_by], lazy="joined")

    def __init__(
        self,
        reminder_id: str,
        requested_by: str,
        proposed_date: str,
        proposed_time: str,
        id: str | None = None,
        reason: str = "",
        status: str | None = None,
        reviewed_by: str | None = None,
        reviewed_at: datetime | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.reminder_id = reminder_id
        self.requested_by = requested_by
        self.proposed_date = proposed_date
        self.proposed_time = proposed_time
        self.reason = reason
        self.status = status if status is not None else RequestStatus.PENDING.value
        self.reviewed_by = reviewed_by
        self.reviewed_at = reviewed_at

    @property
    def request_status(self) -> RequestStatus:
        """Get status as RequestStatus enum."""
        return RequestStatus(self.status)

    @property
    def reminder_title(self) -> str | None:
        return self.reminder.title if self.reminder is not None else None

    @property
    def requested_by_name(self) -> str | None:
        return self.requester.name if self.requester is not None else None

    def __repr__(self) -> str:
        return (
            f"<RescheduleRequest(id={self.id!r}, reminder_id={self.reminder_id!r}, "
            f"status={self.status!r})>"
        )


@dataclass
class ReminderFilter:
    """Query filter for listing reminders.

    audience_user_id restricts the result to what that student may see: their
    own reminders, reminders assigned to them, and admin broadcasts.
    None means no audience restriction.
    """

    audience_user_id: str | None = None
    created_by_role: Role | str | None = None
    date: str | None = None
