"""Queue inputs entered alongside the visit form."""

from dataclasses import replace
from typing import Any, Optional

from ...application.dto.visit_dto import QueueEntryFields
from ...application.ports.services.queue_service import QueueFieldsProvider


class FormQueueFieldsProvider(QueueFieldsProvider):
    """Holds the latest queue inputs; read when the visit has been created."""

    def __init__(self) -> None:
        self._fields = QueueEntryFields()

    def update(self, **changes: Any) -> QueueEntryFields:
        self._fields = replace(self._fields, **changes)
        return self._fields

    def read_queue_fields(self) -> Optional[QueueEntryFields]:
        if self._fields.is_empty:
            return None
        return self._fields
