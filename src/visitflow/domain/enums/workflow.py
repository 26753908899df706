"""
Workflow state, event and option enums for the start-visit workflow.
"""

from enum import Enum


class TimeFormat(str, Enum):
    """12-hour clock period."""
    AM = "AM"
    PM = "PM"


class VisitTypeView(int, Enum):
    """Visit type list shown by the content switcher."""
    RECOMMENDED = 0
    ALL = 1


class SubmissionState(str, Enum):
    """States of the visit submission orchestrator."""

    IDLE = "idle"
    ATTRIBUTE_CHECK_FAILED = "attribute_check_failed"
    SUBMITTING = "submitting"
    VISIT_CREATED = "visit_created"
    QUEUE_ADMITTING = "queue_admitting"

    # Terminal statuses
    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_QUEUE_WARNING = "succeeded_with_queue_warning"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_in_flight(self) -> bool:
        return self in (
            SubmissionState.SUBMITTING,
            SubmissionState.VISIT_CREATED,
            SubmissionState.QUEUE_ADMITTING,
        )

    @property
    def is_success(self) -> bool:
        return self in (
            SubmissionState.SUCCEEDED,
            SubmissionState.SUCCEEDED_WITH_QUEUE_WARNING,
        )

    @property
    def is_terminal(self) -> bool:
        return self in (
            SubmissionState.ATTRIBUTE_CHECK_FAILED,
            SubmissionState.SUCCEEDED,
            SubmissionState.SUCCEEDED_WITH_QUEUE_WARNING,
            SubmissionState.FAILED,
            SubmissionState.CANCELLED,
        )


class SubmissionEvent(str, Enum):
    """Events that drive orchestrator transitions."""

    FIELD_EDITED = "field_edited"
    SUBMIT = "submit"
    VISIT_CREATION_SUCCEEDED = "visit_creation_succeeded"
    VISIT_CREATION_FAILED = "visit_creation_failed"
    VISIT_COMPLETED = "visit_completed"             # No queue admission configured
    QUEUE_ADMISSION_STARTED = "queue_admission_started"
    QUEUE_ADMISSION_SUCCEEDED = "queue_admission_succeeded"
    QUEUE_ADMISSION_FAILED = "queue_admission_failed"
    CANCEL = "cancel"


class NotificationKind(str, Enum):
    """Severity of a user-visible notification."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
