from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from loguru import logger

from pulmoprobe.client import PredictionResult
from pulmoprobe.encoding import build_payload, validate
from pulmoprobe.history import HistoryRecord, SubmissionCompleted, make_record_id
from pulmoprobe.schema import FormSchema


class Predictor(Protocol):
    def predict(self, payload: dict[str, Any]) -> PredictionResult: ...


class PredictionSession:
    """State of one intake form, owned by the presentation layer.

    Holds the form values, inline errors, the last result and the busy flag. A
    successful submission returns a ``SubmissionCompleted`` event for the
    history owner to consume; failures and blocked submissions return None.

    Args:
        schema: Form schema driving validation and encoding.
        id_factory: Callable producing record ids.
    """

    def __init__(self, schema: FormSchema, id_factory: Callable[[], str] = make_record_id) -> None:
        self.schema = schema
        self.id_factory = id_factory
        self.form: dict[str, str] = schema.initial_state()
        self.errors: dict[str, str] = {}
        self.result: Optional[PredictionResult] = None
        self.busy = False

    @property
    def locked(self) -> bool:
        """Whether the form controls are disabled (request in flight or result shown)."""
        return self.busy or self.result is not None

    def update_field(self, name: str, value: Any) -> None:
        """Set one form value and clear its inline error.

        Raises:
            KeyError: If the schema has no such field.
        """
        self.schema.field(name)
        if self.locked:
            return
        self.form[name] = value
        self.errors.pop(name, None)

    def submit(self, client: Predictor) -> SubmissionCompleted | None:
        """Validate, post the payload and record the outcome.

        Args:
            client: Object exposing ``predict(payload) -> PredictionResult``.

        Returns:
            The completion event on success, otherwise None.
        """
        if self.locked:
            logger.warning("Submission ignored while the form is locked")
            return None

        self.errors = validate(self.form, self.schema)
        if self.errors:
            logger.warning(f"Submission blocked by invalid fields: {sorted(self.errors)}")
            return None

        self.busy = True
        self.result = None
        try:
            payload = build_payload(self.form, self.schema)
            result = client.predict(payload)
        finally:
            self.busy = False

        self.result = result
        if not result.ok:
            return None
        record = HistoryRecord(id=self.id_factory(), inputs=self.form, output=result)
        return SubmissionCompleted(record=record)

    def reset(self) -> None:
        """Restore the initial form and clear errors and result."""
        self.form = self.schema.initial_state()
        self.errors = {}
        self.result = None
