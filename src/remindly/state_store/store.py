"""StateStore - Main API for State Store operations."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from remindly.exceptions import (
    ConflictError,
    DuplicatePendingRequestError,
    EmailAlreadyRegisteredError,
    ReminderNotFoundError,
    RescheduleAlreadyReviewedError,
    RescheduleRequestNotFoundError,
    UserNotFoundError,
)
from remindly.state_store.database import Database
from remindly.state_store.models import (
    Reminder,
    ReminderAssignment,
    ReminderFilter,
    ReminderStatus,
    RequestStatus,
    RescheduleRequest,
    Role,
    User,
)

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.orm import Session

logger = logging.getLogger("remindly.state_store")

# Columns a reminder update may touch. Status moves only through set_reminder_status.
REMINDER_PATCHABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "date",
        "time",
        "priority",
        "category",
        "recurring",
        "notification_type",
        "target_filter",
        "duration_minutes",
    }
)


class StateStore:
    """Main API for State Store operations.

    Provides CRUD operations for Users, Reminders, and Reschedule Requests.
    """

    def __init__(self, db_path: str = "remindly.db") -> None:
        """Initialize State Store with SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()
        # Serializes check-then-act sequences (first-user bootstrap, overlap
        # check + insert, pending-request check + insert) within this process.
        self.lock = threading.RLock()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- User Operations ---

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str | None = None,
        google_id: str | None = None,
        avatar: str | None = None,
    ) -> User:
        """Create a new user.

        The very first user ever created becomes an admin; everyone after
        that starts as a student. The count and the insert happen in one
        critical section so two concurrent first sign-ups cannot both be
        promoted.

        Args:
            name: Display name
            email: Email address (stored lower-cased)
            password_hash: Hashed password, None for federated-only accounts
            google_id: Federated identity subject, if any
            avatar: Avatar URL, if any

        Returns:
            Created User object

        Raises:
            EmailAlreadyRegisteredError: If the email is already taken
            ConflictError: If the federated identity is already linked
        """
        with self.lock, self._db.session_scope() as session:
            count = session.execute(select(func.count(User.id))).scalar_one()
            role = Role.ADMIN if count == 0 else Role.STUDENT
            user = User(
                name=name,
                email=email,
                role=role.value,
                password_hash=password_hash,
                google_id=google_id,
                avatar=avatar,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if "users.email" in str(e.orig):
                    raise EmailAlreadyRegisteredError(
                        f"Email '{user.email}' is already registered"
                    ) from e
                if "users.google_id" in str(e.orig):
                    raise ConflictError("Federated account is already linked") from e
                raise
            session.refresh(user)
            logger.info("Created user %s with role %s", user.id, user.role)
            return user

    def get_user(self, user_id: str) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        with self._db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")
            return user

    def find_user_by_email(self, email: str) -> User | None:
        with self._db.session_scope() as session:
            stmt = select(User).where(User.email == email.strip().lower())
            return session.execute(stmt).scalar_one_or_none()

    def find_user_by_google_id(self, google_id: str) -> User | None:
        with self._db.session_scope() as session:
            stmt = select(User).where(User.google_id == google_id)
            return session.execute(stmt).scalar_one_or_none()

    def count_users(self) -> int:
        with self._db.session_scope() as session:
            return session.execute(select(func.count(User.id))).scalar_one()

    def list_users(self, role: Role | None = None) -> list[User]:
        """List users, newest first.

        Args:
            role: Filter by role (optional)
        """
        with self._db.session_scope() as session:
            stmt = select(User)
            if role is not None:
                stmt = stmt.where(User.role == role.value)
            stmt = stmt.order_by(User.created_at.desc(), User.name)
            return list(session.execute(stmt).scalars().all())

    def update_user_role(self, user_id: str, role: Role) -> User:
        """Change a user's role.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        return self._update_user(user_id, role=role.value)

    def set_user_active(self, user_id: str, active: bool) -> User:
        """Suspend or restore a user's ability to sign in.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        return self._update_user(user_id, is_active=active)

    def link_google_account(self, user_id: str, google_id: str, avatar: str | None) -> User:
        """Attach a federated identity to an existing user.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        return self._update_user(user_id, google_id=google_id, avatar=avatar)

    def _update_user(self, user_id: str, **values: Any) -> User:
        with self._db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")
            for key, value in values.items():
                setattr(user, key, value)
            session.commit()
            session.refresh(user)
            return user

    # --- Reminder Operations ---

    def create_reminder(
        self,
        title: str,
        date: str,
        time: str,
        created_by: str,
        created_by_role: Role | str,
        assigned_to: list[str] | None = None,
        **fields: Any,
    ) -> Reminder:
        """Create a new reminder.

        Args:
            title: Reminder title
            date: ISO calendar date
            time: HH:MM, 24-hour
            created_by: ID of the creating user
            created_by_role: Role of the creating user at creation time
            assigned_to: IDs of assignees (empty for an admin broadcast)
            **fields: Remaining Reminder columns (description, priority, ...)

        Returns:
            Created Reminder object with generated ID
        """
        with self._db.session_scope() as session:
            reminder = Reminder(
                title=title,
                date=date,
                time=time,
                created_by=created_by,
                created_by_role=Role(created_by_role).value,
                assigned_to=assigned_to,
                **fields,
            )
            session.add(reminder)
            session.commit()
            session.refresh(reminder)
            return reminder

    def get_reminder(self, reminder_id: str) -> Reminder:
        """Get reminder by ID.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
        """
        with self._db.session_scope() as session:
            reminder = session.get(Reminder, reminder_id)
            if reminder is None:
                raise ReminderNotFoundError(f"Reminder with id '{reminder_id}' not found")
            return reminder

    def list_reminders(self, reminder_filter: ReminderFilter | None = None) -> list[Reminder]:
        """List reminders matching a filter.

        Args:
            reminder_filter: Audience, creator role and date restrictions (optional)

        Returns:
            List of reminders, ordered by date then time
        """
        reminder_filter = reminder_filter or ReminderFilter()
        with self._db.session_scope() as session:
            stmt = select(Reminder)

            user_id = reminder_filter.audience_user_id
            if user_id is not None:
                stmt = stmt.where(
                    or_(
                        Reminder.created_by == user_id,
                        Reminder.assignments.any(ReminderAssignment.user_id == user_id),
                        and_(
                            Reminder.created_by_role == Role.ADMIN.value,
                            ~Reminder.assignments.any(),
                        ),
                    )
                )
            if reminder_filter.created_by_role is not None:
                stmt = stmt.where(
                    Reminder.created_by_role == Role(reminder_filter.created_by_role).value
                )
            if reminder_filter.date is not None:
                stmt = stmt.where(Reminder.date == reminder_filter.date)

            stmt = stmt.order_by(Reminder.date, Reminder.time, Reminder.created_at)
            return list(session.execute(stmt).scalars().all())

    def update_reminder(
        self,
        reminder_id: str,
        assigned_to: list[str] | None = None,
        **patch: Any,
    ) -> Reminder:
        """Update reminder fields. Only provided fields are updated.

        Args:
            reminder_id: The reminder's unique ID
            assigned_to: Replacement assignee list (optional)
            **patch: Column values to set; keys must be patchable fields

        Returns:
            The updated Reminder object

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
            ValueError: If patch names a field that cannot be updated
        """
        unknown = set(patch) - REMINDER_PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update reminder fields: {sorted(unknown)}")

        with self._db.session_scope() as session:
            reminder = session.get(Reminder, reminder_id)
            if reminder is None:
                raise ReminderNotFoundError(f"Reminder with id '{reminder_id}' not found")

            for key, value in patch.items():
                setattr(reminder, key, value)
            if assigned_to is not None:
                reminder.assignments = [ReminderAssignment(user_id=u) for u in assigned_to]

            session.commit()
            session.refresh(reminder)
            return reminder

    def set_reminder_status(self, reminder_id: str, status: ReminderStatus) -> Reminder:
        """Set a reminder's completion status.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
        """
        with self._db.session_scope() as session:
            reminder = session.get(Reminder, reminder_id)
            if reminder is None:
                raise ReminderNotFoundError(f"Reminder with id '{reminder_id}' not found")
            reminder.status = ReminderStatus(status).value
            session.commit()
            session.refresh(reminder)
            return reminder

    def delete_reminder(self, reminder_id: str) -> None:
        """Delete a reminder and its reschedule requests.

        Raises:
            ReminderNotFoundError: If reminder doesn't exist
        """
        with self._db.session_scope() as session:
            reminder = session.get(Reminder, reminder_id)
            if reminder is None:
                raise ReminderNotFoundError(f"Reminder with id '{reminder_id}' not found")
            session.delete(reminder)
            session.commit()

    # --- Reschedule Request Operations ---

    def create_reschedule_request(
        self,
        reminder_id: str,
        requested_by: str,
        proposed_date: str,
        proposed_time: str,
        reason: str = "",
    ) -> RescheduleRequest:
        """Create a pending reschedule request.

        Raises:
            DuplicatePendingRequestError: If the requester already has a
                pending request for this reminder
        """
        with self._db.session_scope() as session:
            request = RescheduleRequest(
                reminder_id=reminder_id,
                requested_by=requested_by,
                proposed_date=proposed_date,
                proposed_time=proposed_time,
                reason=reason,
            )
            session.add(request)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if "UNIQUE constraint failed: reschedule_requests" in str(e.orig):
                    raise DuplicatePendingRequestError(
                        "A pending reschedule request already exists for this reminder"
                    ) from e
                raise
            return self._load_request(session, request.id)

    def get_reschedule_request(self, request_id: str) -> RescheduleRequest:
        """Get reschedule request by ID.

        Raises:
            RescheduleRequestNotFoundError: If request doesn't exist
        """
        with self._db.session_scope() as session:
            request = session.get(RescheduleRequest, request_id)
            if request is None:
                raise RescheduleRequestNotFoundError(
                    f"Reschedule request with id '{request_id}' not found"
                )
            return request

    def list_reschedule_requests(
        self,
        requested_by: str | None = None,
        reminder_id: str | None = None,
        status: RequestStatus | None = None,
    ) -> list[RescheduleRequest]:
        """List reschedule requests with optional filters.

        Returns:
            List of requests, most recent first
        """
        with self._db.session_scope() as session:
            stmt = select(RescheduleRequest)
            if requested_by is not None:
                stmt = stmt.where(RescheduleRequest.requested_by == requested_by)
            if reminder_id is not None:
                stmt = stmt.where(RescheduleRequest.reminder_id == reminder_id)
            if status is not None:
                stmt = stmt.where(RescheduleRequest.status == status.value)
            stmt = stmt.order_by(RescheduleRequest.created_at.desc())
            return list(session.execute(stmt).unique().scalars().all())

    def finalize_reschedule_request(
        self,
        request_id: str,
        decision: RequestStatus,
        reviewer_id: str,
        reviewed_at: datetime,
    ) -> RescheduleRequest:
        """Record the review of a pending request.

        On approval the target reminder's date and time move to the proposed
        slot in the same transaction. Only a still-pending request is updated.

        Raises:
            RescheduleRequestNotFoundError: If request doesn't exist
            RescheduleAlreadyReviewedError: If the request is no longer pending
        """
        with self._db.session_scope() as session:
            request = session.get(RescheduleRequest, request_id)
            if request is None:
                raise RescheduleRequestNotFoundError(
                    f"Reschedule request with id '{request_id}' not found"
                )

            result = session.execute(
                update(RescheduleRequest)
                .where(
                    RescheduleRequest.id == request_id,
                    RescheduleRequest.status == RequestStatus.PENDING.value,
                )
                .values(status=decision.value, reviewed_by=reviewer_id, reviewed_at=reviewed_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise RescheduleAlreadyReviewedError(
                    f"Reschedule request '{request_id}' was already {request.status}"
                )

            if decision == RequestStatus.APPROVED:
                session.execute(
                    update(Reminder)
                    .where(Reminder.id == request.reminder_id)
                    .values(date=request.proposed_date, time=request.proposed_time)
                    .execution_options(synchronize_session=False)
                )

            session.commit()
            return self._load_request(session, request_id)

    @staticmethod
    def _load_request(session: Session, request_id: str) -> RescheduleRequest:
        stmt = (
            select(RescheduleRequest)
            .where(RescheduleRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).unique().scalar_one()
