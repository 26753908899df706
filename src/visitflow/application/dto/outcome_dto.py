"""Outcome DTOs: submission results, notifications and side-effect directives."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ...domain.entities.visit import CreatedVisit
from ...domain.enums.workflow import NotificationKind, SubmissionState


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one submission attempt."""

    state: SubmissionState
    visit: Optional[CreatedVisit] = None
    start_datetime: Optional[datetime] = None
    error_message: Optional[str] = None
    queue_admitted: bool = False
    queue_error_message: Optional[str] = None
    missing_attributes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Notification:
    """User-visible notification descriptor."""

    kind: NotificationKind
    title: str
    description: str = ""
    critical: bool = False
    inline: bool = False


@dataclass(frozen=True)
class OutcomeDirective:
    """Notifications plus the side effects a terminal state calls for."""

    notifications: Tuple[Notification, ...] = ()
    refresh_visit_data: bool = False
    close_surface: bool = False

    @property
    def errors(self) -> Tuple[Notification, ...]:
        return tuple(n for n in self.notifications if n.kind == NotificationKind.ERROR)
