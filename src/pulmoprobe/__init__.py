"""Lung cancer risk intake: form schema, feature encoding, prediction client and dashboard."""

from pulmoprobe.client import PredictionClient, PredictionResult
from pulmoprobe.encoding import build_payload, encode, validate
from pulmoprobe.history import HistoryRecord, PredictionHistory, SubmissionCompleted
from pulmoprobe.schema import FormSchema, SchemaError, diff_schemas, load_schema
from pulmoprobe.session import PredictionSession

__all__ = [
    "FormSchema",
    "HistoryRecord",
    "PredictionClient",
    "PredictionHistory",
    "PredictionResult",
    "PredictionSession",
    "SchemaError",
    "SubmissionCompleted",
    "build_payload",
    "diff_schemas",
    "encode",
    "load_schema",
    "validate",
]
