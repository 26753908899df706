"""Outcome dispatch: terminal submission states to notifications and side effects."""

from typing import Any, Callable, List

from ...core.structured_logger import get_logger
from ...domain.enums.workflow import NotificationKind, SubmissionState
from ..dto.outcome_dto import Notification, OutcomeDirective, SubmissionOutcome
from ..ports.services.notification_service import NotificationChannel

logger = get_logger("visitflow.outcome")

VISIT_STARTED_TITLE = "Visit started"
VISIT_STARTED_DESCRIPTION = "{visit_type} started successfully"
QUEUE_ADDED_DESCRIPTION = "Patient has been added to the queue successfully."
QUEUE_ERROR_TITLE = "Error adding patient to the queue"
START_VISIT_ERROR_TITLE = "Error starting visit"
MISSING_ATTRIBUTES_TITLE = "Missing required attributes"
MISSING_ATTRIBUTES_DESCRIPTION = "Please fill in all required visit attributes"


def _visit_started(outcome: SubmissionOutcome) -> Notification:
    visit_type = outcome.visit.visit_type_display if outcome.visit else ""
    return Notification(
        kind=NotificationKind.SUCCESS,
        title=VISIT_STARTED_TITLE,
        description=VISIT_STARTED_DESCRIPTION.format(visit_type=visit_type or "Visit"),
        critical=True,
    )


def dispatch_outcome(outcome: SubmissionOutcome) -> OutcomeDirective:
    """Map a terminal submission outcome to notifications and directives."""
    state = outcome.state

    if state == SubmissionState.SUCCEEDED:
        notifications: List[Notification] = [_visit_started(outcome)]
        if outcome.queue_admitted:
            notifications.append(
                Notification(
                    kind=NotificationKind.SUCCESS,
                    title=VISIT_STARTED_TITLE,
                    description=QUEUE_ADDED_DESCRIPTION,
                )
            )
        return OutcomeDirective(tuple(notifications), refresh_visit_data=True, close_surface=True)

    if state == SubmissionState.SUCCEEDED_WITH_QUEUE_WARNING:
        # The visit exists; the queue error is reported next to the success.
        return OutcomeDirective(
            (
                _visit_started(outcome),
                Notification(
                    kind=NotificationKind.ERROR,
                    title=QUEUE_ERROR_TITLE,
                    description=outcome.queue_error_message or "",
                    critical=True,
                ),
            ),
            refresh_visit_data=True,
            close_surface=True,
        )

    if state == SubmissionState.FAILED:
        return OutcomeDirective(
            (
                Notification(
                    kind=NotificationKind.ERROR,
                    title=START_VISIT_ERROR_TITLE,
                    description=outcome.error_message or "",
                    critical=True,
                ),
            )
        )

    if state == SubmissionState.ATTRIBUTE_CHECK_FAILED:
        return OutcomeDirective(
            (
                Notification(
                    kind=NotificationKind.WARNING,
                    title=MISSING_ATTRIBUTES_TITLE,
                    description=MISSING_ATTRIBUTES_DESCRIPTION,
                    inline=True,
                ),
            )
        )

    if state == SubmissionState.CANCELLED:
        # A visit created before the cancel still exists server-side
        return OutcomeDirective(refresh_visit_data=outcome.visit is not None)

    raise ValueError(f"Cannot dispatch non-terminal state: {state.value}")


def apply_directive(
    directive: OutcomeDirective,
    channel: NotificationChannel,
    refresh_visit_data: Callable[[], Any],
    close_surface: Callable[[], Any],
) -> None:
    """Deliver notifications and run each directed side effect once."""
    for notification in directive.notifications:
        channel.notify(notification)
    if directive.refresh_visit_data:
        refresh_visit_data()
    if directive.close_surface:
        close_surface()
    logger.info(
        "Submission outcome dispatched",
        notifications=[n.kind.value for n in directive.notifications],
        refresh_visit_data=directive.refresh_visit_data,
        close_surface=directive.close_surface,
    )
