"""Start-visit form: schema, mutable state and defaults.

The schema is validated after every field edit so the submit control can
reflect validity continuously. An invalid field only records a field-scoped
error; other fields stay editable.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from ..enums.workflow import TimeFormat, VisitTypeView
from ..errors import FormNotSubmittableError, UnknownFormFieldError
from ..value_objects.visit_time import CLOCK_TIME_PATTERN, VisitTime
from .enrollment import PatientEnrollment
from .visit_type import VisitType


class VisitFormSchema(BaseModel):
    """Validity rules for a submittable start-visit form."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    visit_date: date
    visit_time: str
    time_format: TimeFormat
    selected_location: str
    visit_type: str
    enrollment: Optional[PatientEnrollment] = None
    content_switcher_index: VisitTypeView

    @field_validator("visit_date")
    @classmethod
    def validate_visit_date(cls, v: date, info: ValidationInfo) -> date:
        """Visits cannot start in the future."""
        today = (info.context or {}).get("today") or date.today()
        if v > today:
            raise ValueError("Visit date cannot be in the future")
        return v

    @field_validator("visit_time")
    @classmethod
    def validate_visit_time(cls, v: str) -> str:
        """Validate 12-hour clock time."""
        v = (v or "").strip()
        if not CLOCK_TIME_PATTERN.match(v):
            raise ValueError("Time must be hh:mm on a 12-hour clock")
        return v

    @field_validator("selected_location", "visit_type", mode="before")
    @classmethod
    def validate_required_identifier(cls, v: Any) -> Any:
        """Required identifiers cannot be blank."""
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("Required")
        return v

    @property
    def start_datetime(self) -> datetime:
        """Visit start resolved to a 24-hour timestamp."""
        return VisitTime.parse(self.visit_time, self.time_format).combine(self.visit_date)


@dataclass
class VisitFormState:
    """Raw, in-progress user input. Values are validated, never coerced, on edit."""

    visit_date: Any = None
    visit_time: Any = ""
    time_format: Any = TimeFormat.AM
    selected_location: Any = ""
    visit_type: Any = None
    enrollment: Any = None
    content_switcher_index: Any = VisitTypeView.ALL

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


FORM_FIELDS = tuple(f.name for f in fields(VisitFormState))


def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else "__root__"
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(name, message)
    return errors


class VisitForm:
    """Mutable form with continuous ("all" mode) validation."""

    def __init__(
        self,
        state: Optional[VisitFormState] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._state = state or VisitFormState()
        self._today = today
        self.attribute_values: Dict[str, str] = {}
        self.dirty = False
        self.errors: Dict[str, str] = {}
        self.validate()

    @property
    def state(self) -> VisitFormState:
        return replace(self._state)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def get(self, name: str) -> Any:
        if name not in FORM_FIELDS:
            raise UnknownFormFieldError(name)
        return getattr(self._state, name)

    def set_value(self, name: str, value: Any) -> Dict[str, str]:
        """Apply one field edit and re-run validation."""
        if name not in FORM_FIELDS:
            raise UnknownFormFieldError(name)
        setattr(self._state, name, value)
        self.dirty = True
        return self.validate()

    def update(self, **changes: Any) -> Dict[str, str]:
        for name in changes:
            if name not in FORM_FIELDS:
                raise UnknownFormFieldError(name)
        for name, value in changes.items():
            setattr(self._state, name, value)
        if changes:
            self.dirty = True
        return self.validate()

    def set_attribute_value(self, attribute_type_uuid: str, value: Optional[str]) -> None:
        self.attribute_values[attribute_type_uuid] = value or ""
        self.dirty = True

    def validate(self) -> Dict[str, str]:
        """Validate the whole form; returns field-scoped errors."""
        try:
            self._parse()
        except ValidationError as exc:
            self.errors = _field_errors(exc)
        else:
            self.errors = {}
        return dict(self.errors)

    def validated(self) -> VisitFormSchema:
        """Parsed form data. Raises FormNotSubmittableError when invalid."""
        try:
            return self._parse()
        except ValidationError as exc:
            self.errors = _field_errors(exc)
            raise FormNotSubmittableError(self.errors) from exc

    def _parse(self) -> VisitFormSchema:
        return VisitFormSchema.model_validate(
            self._state.as_dict(), context={"today": self._today()}
        )


def build_default_form_state(
    now: datetime,
    session_location_uuid: Optional[str],
    locations: Sequence[Any],
    visit_types: Sequence[VisitType],
    enrollments: Sequence[PatientEnrollment],
    show_recommended_visit_type_tab: bool,
) -> VisitFormState:
    """Initial form values when the start-visit surface opens."""
    clock = VisitTime.from_datetime(now)
    visit_type = None
    if locations and session_location_uuid and len(visit_types) == 1:
        visit_type = visit_types[0].uuid
    return VisitFormState(
        visit_date=now.date(),
        visit_time=str(clock),
        time_format=clock.time_format,
        selected_location=session_location_uuid or "",
        visit_type=visit_type,
        enrollment=enrollments[0] if enrollments else None,
        content_switcher_index=(
            VisitTypeView.RECOMMENDED if show_recommended_visit_type_tab else VisitTypeView.ALL
        ),
    )
