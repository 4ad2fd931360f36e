"""Unit tests for RescheduleWorkflow."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from remindly.exceptions import (
    DenialReason,
    DuplicatePendingRequestError,
    ForbiddenError,
    ReminderNotFoundError,
    RescheduleAlreadyReviewedError,
    RescheduleRequestNotFoundError,
    ValidationError,
)
from remindly.policy import AccessPolicy
from remindly.reschedule import RescheduleWorkflow
from remindly.scheduling import ReminderService
from remindly.state_store import Reminder, RequestStatus, StateStore, User

REVIEWED_AT = datetime(2025, 5, 20, 9, 30, tzinfo=UTC)


@pytest.fixture
def observer() -> MagicMock:
    return MagicMock()


@pytest.fixture
def workflow(store: StateStore, policy: AccessPolicy, observer: MagicMock) -> RescheduleWorkflow:
    return RescheduleWorkflow(
        store, policy=policy, events=observer, lock=store.lock, clock=lambda: REVIEWED_AT
    )


@pytest.fixture
def reminders(store: StateStore, policy: AccessPolicy) -> ReminderService:
    return ReminderService(store, policy=policy, lock=store.lock)


@pytest.fixture
def exam(reminders: ReminderService, admin: User, student: User) -> Reminder:
    """A locked task assigned to the student."""
    return reminders.create_as_admin(
        admin,
        {
            "title": "Exam",
            "date": "2025-06-01",
            "time": "10:00",
            "duration_minutes": 120,
            "priority": "high",
        },
        assigned_to=[student.id],
    )


@pytest.mark.unit
class TestSubmit:
    """Tests for submitting reschedule requests."""

    def test_submit_creates_pending_request(
        self,
        workflow: RescheduleWorkflow,
        exam: Reminder,
        student: User,
        observer: MagicMock,
    ) -> None:
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00", "  Clinic visit  ")

        assert request.status == "pending"
        assert request.reminder_id == exam.id
        assert request.requested_by == student.id
        assert request.proposed_date == "2025-06-03"
        assert request.proposed_time == "14:00"
        assert request.reason == "Clinic visit"
        assert request.reminder_title == "Exam"
        assert request.requested_by_name == "Sam Student"
        assert request.reviewed_by is None
        observer.emit_reschedule_requested.assert_called_once_with(
            request_id=request.id,
            reminder_id=exam.id,
            reminder_title="Exam",
            requested_by=student.id,
            proposed_date="2025-06-03",
            proposed_time="14:00",
            reason="Clinic visit",
        )

    def test_unlocked_reminder_rejected(
        self, workflow: RescheduleWorkflow, reminders: ReminderService, student: User
    ) -> None:
        personal = reminders.create_as_student(
            student, {"title": "Read", "date": "2025-06-01", "time": "18:00"}
        )

        with pytest.raises(ValidationError, match="Only admin reminders"):
            workflow.submit(student, personal.id, "2025-06-02", "18:00")

    def test_missing_reminder(self, workflow: RescheduleWorkflow, student: User) -> None:
        with pytest.raises(ReminderNotFoundError):
            workflow.submit(student, "nope", "2025-06-02", "18:00")

    def test_unassigned_student_forbidden(
        self, workflow: RescheduleWorkflow, exam: Reminder, other_student: User
    ) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            workflow.submit(other_student, exam.id, "2025-06-02", "10:00")
        assert exc_info.value.reason == DenialReason.NOT_ASSIGNED

    def test_authorize_submission_returns_reminder(
        self, workflow: RescheduleWorkflow, exam: Reminder, student: User, other_student: User
    ) -> None:
        assert workflow.authorize_submission(student, exam.id).id == exam.id
        with pytest.raises(ForbiddenError):
            workflow.authorize_submission(other_student, exam.id)

    def test_admin_cannot_submit(
        self, workflow: RescheduleWorkflow, exam: Reminder, admin: User
    ) -> None:
        with pytest.raises(ForbiddenError):
            workflow.submit(admin, exam.id, "2025-06-02", "10:00")

    @pytest.mark.parametrize(
        ("proposed_date", "proposed_time"),
        [("2025-02-30", "10:00"), ("06/02/2025", "10:00"), ("2025-06-02", "9am")],
    )
    def test_malformed_proposal(
        self,
        workflow: RescheduleWorkflow,
        exam: Reminder,
        student: User,
        proposed_date: str,
        proposed_time: str,
    ) -> None:
        with pytest.raises(ValidationError):
            workflow.submit(student, exam.id, proposed_date, proposed_time)

    def test_second_pending_request_conflicts(
        self, workflow: RescheduleWorkflow, exam: Reminder, student: User
    ) -> None:
        workflow.submit(student, exam.id, "2025-06-03", "14:00")

        with pytest.raises(DuplicatePendingRequestError):
            workflow.submit(student, exam.id, "2025-06-04", "14:00")

    def test_store_constraint_backs_up_the_check(
        self, store: StateStore, exam: Reminder, student: User
    ) -> None:
        """The partial unique index rejects a second pending row on its own."""
        store.create_reschedule_request(exam.id, student.id, "2025-06-03", "14:00")

        with pytest.raises(DuplicatePendingRequestError):
            store.create_reschedule_request(exam.id, student.id, "2025-06-04", "14:00")

    def test_resubmit_after_review(
        self, workflow: RescheduleWorkflow, exam: Reminder, student: User, admin: User
    ) -> None:
        first = workflow.submit(student, exam.id, "2025-06-03", "14:00")
        workflow.review(admin, first.id, "rejected")

        second = workflow.submit(student, exam.id, "2025-06-04", "09:00")

        assert second.status == "pending"
        assert second.id != first.id

    def test_broadcast_recipients_may_each_submit(
        self,
        workflow: RescheduleWorkflow,
        reminders: ReminderService,
        admin: User,
        student: User,
        other_student: User,
    ) -> None:
        broadcast = reminders.create_as_admin(
            admin, {"title": "Assembly", "date": "2025-06-05", "time": "08:00"}
        )

        workflow.submit(student, broadcast.id, "2025-06-06", "08:00")
        workflow.submit(other_student, broadcast.id, "2025-06-06", "09:00")

        assert len(workflow.list_all_requests(admin)) == 2


@pytest.mark.unit
class TestReview:
    """Tests for approving and rejecting requests."""

    def test_approve_moves_reminder(
        self,
        workflow: RescheduleWorkflow,
        store: StateStore,
        exam: Reminder,
        student: User,
        admin: User,
        observer: MagicMock,
    ) -> None:
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00")

        reviewed = workflow.review(admin, request.id, "approved")

        assert reviewed.status == "approved"
        assert reviewed.reviewed_by == admin.id
        assert reviewed.reviewed_at is not None
        moved = store.get_reminder(exam.id)
        assert (moved.date, moved.time) == ("2025-06-03", "14:00")
        assert moved.title == "Exam"
        assert moved.duration_minutes == 120
        assert moved.priority == "high"
        assert moved.assigned_to == {student.id}
        assert moved.is_locked is True
        observer.emit_reschedule_reviewed.assert_called_once_with(
            request_id=request.id,
            reminder_id=exam.id,
            reminder_title="Exam",
            requested_by=student.id,
            reviewed_by=admin.id,
            status="approved",
            proposed_date="2025-06-03",
            proposed_time="14:00",
        )

    def test_reject_leaves_reminder_untouched(
        self,
        workflow: RescheduleWorkflow,
        store: StateStore,
        exam: Reminder,
        student: User,
        admin: User,
    ) -> None:
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00")

        reviewed = workflow.review(admin, request.id, "rejected")

        assert reviewed.status == "rejected"
        unchanged = store.get_reminder(exam.id)
        assert (unchanged.date, unchanged.time) == ("2025-06-01", "10:00")
        assert unchanged.updated_at == exam.updated_at

    def test_review_twice_conflicts(
        self, workflow: RescheduleWorkflow, exam: Reminder, student: User, admin: User
    ) -> None:
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00")
        workflow.review(admin, request.id, "approved")

        with pytest.raises(RescheduleAlreadyReviewedError):
            workflow.review(admin, request.id, "rejected")

    def test_finalize_only_touches_pending_rows(
        self, store: StateStore, exam: Reminder, student: User, admin: User
    ) -> None:
        """A review that lost the race to another admin is refused by the store."""
        request = store.create_reschedule_request(exam.id, student.id, "2025-06-03", "14:00")
        store.finalize_reschedule_request(request.id, RequestStatus.REJECTED, admin.id, REVIEWED_AT)

        with pytest.raises(RescheduleAlreadyReviewedError):
            store.finalize_reschedule_request(
                request.id, RequestStatus.APPROVED, admin.id, REVIEWED_AT
            )
        assert store.get_reminder(exam.id).date == "2025-06-01"

    @pytest.mark.parametrize("decision", ["pending", "maybe", ""])
    def test_decision_must_be_terminal(
        self,
        workflow: RescheduleWorkflow,
        exam: Reminder,
        student: User,
        admin: User,
        decision: str,
    ) -> None:
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00")

        with pytest.raises(ValidationError, match="approved"):
            workflow.review(admin, request.id, decision)

    def test_student_cannot_review(
        self, workflow: RescheduleWorkflow, exam: Reminder, student: User
    ) -> None:
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00")

        with pytest.raises(ForbiddenError):
            workflow.review(student, request.id, "approved")

    def test_missing_request(self, workflow: RescheduleWorkflow, admin: User) -> None:
        with pytest.raises(RescheduleRequestNotFoundError):
            workflow.review(admin, "nope", "approved")

    def test_approval_skips_overlap_check(
        self,
        workflow: RescheduleWorkflow,
        reminders: ReminderService,
        store: StateStore,
        exam: Reminder,
        student: User,
        admin: User,
    ) -> None:
        reminders.create_as_admin(
            admin, {"title": "Viva", "date": "2025-06-03", "time": "14:00"}, [student.id]
        )
        request = workflow.submit(student, exam.id, "2025-06-03", "14:00")

        workflow.review(admin, request.id, "approved")

        assert store.get_reminder(exam.id).date == "2025-06-03"


@pytest.mark.unit
class TestListing:
    def test_my_requests_are_only_mine(
        self,
        workflow: RescheduleWorkflow,
        reminders: ReminderService,
        exam: Reminder,
        admin: User,
        student: User,
        other_student: User,
    ) -> None:
        broadcast = reminders.create_as_admin(
            admin, {"title": "Assembly", "date": "2025-06-05", "time": "08:00"}
        )
        mine = workflow.submit(student, exam.id, "2025-06-03", "14:00")
        workflow.submit(other_student, broadcast.id, "2025-06-06", "08:00")

        assert [r.id for r in workflow.list_my_requests(student)] == [mine.id]

    def test_list_all_is_admin_only(
        self, workflow: RescheduleWorkflow, exam: Reminder, student: User
    ) -> None:
        with pytest.raises(ForbiddenError):
            workflow.list_all_requests(student)

    def test_deleting_reminder_removes_its_requests(
        self,
        workflow: RescheduleWorkflow,
        reminders: ReminderService,
        exam: Reminder,
        admin: User,
        student: User,
    ) -> None:
        workflow.submit(student, exam.id, "2025-06-03", "14:00")

        reminders.delete_reminder(admin, exam.id)

        assert workflow.list_all_requests(admin) == []
