from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from pulmoprobe.history import HistoryRecord

HISTORY_COLUMNS = ["id", "age", "cancer_stage", "country", "risk", "confidence", "high_risk"]


@dataclass(frozen=True)
class EmptyDashboard:
    """Presentation state for a session without predictions."""

    title: str = "Your Dashboard is Ready"
    message: str = (
        "The dashboard is currently empty. Go to the homepage to make your first prediction, "
        "and the results will appear here instantly!"
    )


EMPTY = EmptyDashboard()


@dataclass(frozen=True)
class DashboardSummary:
    """Derived statistics over the prediction history."""

    total: int
    high_risk: int
    countries: int
    model_accuracy: float
    stage_counts: dict[str, int] = field(default_factory=dict)

    @property
    def low_risk(self) -> int:
        return self.total - self.high_risk

    @property
    def breakdown(self) -> list[dict[str, Any]]:
        return [
            {"name": "Low Risk", "value": self.low_risk},
            {"name": "High Risk", "value": self.high_risk},
        ]

    def stats(self) -> list[tuple[str, str]]:
        """Return (label, value) pairs for the stat cards."""
        return [
            ("Total Predictions", str(self.total)),
            ("High-Risk Cases", str(self.high_risk)),
            ("Model Accuracy", f"{self.model_accuracy}%"),
            ("Countries Analyzed", str(self.countries)),
        ]


def is_high_risk(risk: str, marker: str = "High") -> bool:
    return marker in str(risk)


def history_frame(records: Sequence[HistoryRecord], high_risk_marker: str = "High") -> pd.DataFrame:
    """Flatten history records into one row per prediction, oldest first."""
    rows = [
        {
            "id": record.id,
            "age": record.inputs.get("age"),
            "cancer_stage": record.inputs.get("cancer_stage"),
            "country": record.inputs.get("country"),
            "risk": record.output.risk,
            "confidence": record.output.confidence,
            "high_risk": is_high_risk(record.output.risk, high_risk_marker),
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def summarize(
    records: Sequence[HistoryRecord],
    high_risk_marker: str = "High",
    model_accuracy: float = 94.5,
) -> DashboardSummary | EmptyDashboard:
    """Summarize the prediction history for the dashboard.

    Args:
        records: Full history, most recent last.
        high_risk_marker: Substring identifying high-risk labels.
        model_accuracy: Static accuracy figure displayed with the stats.

    Returns:
        ``EMPTY`` when there is no history, otherwise the computed summary.
    """
    if not records:
        return EMPTY

    frame = history_frame(records, high_risk_marker)
    stage_counts = frame.groupby("cancer_stage", sort=False, dropna=False).size()
    return DashboardSummary(
        total=len(frame),
        high_risk=int(frame["high_risk"].sum()),
        countries=int(frame["country"].nunique(dropna=False)),
        model_accuracy=model_accuracy,
        stage_counts={str(stage): int(count) for stage, count in stage_counts.items()},
    )


def stage_frame(summary: DashboardSummary) -> pd.DataFrame:
    """Chart data for predictions by cancer stage."""
    return pd.DataFrame(
        {"name": list(summary.stage_counts), "count": list(summary.stage_counts.values())},
    )


def breakdown_frame(summary: DashboardSummary) -> pd.DataFrame:
    """Chart data for the low/high risk breakdown."""
    return pd.DataFrame(summary.breakdown)


def history_table(records: Sequence[HistoryRecord]) -> pd.DataFrame:
    """History table rows, newest first."""
    frame = history_frame(records)
    table = frame.iloc[::-1].reset_index(drop=True)
    table = table[["id", "age", "cancer_stage", "risk", "confidence"]].copy()
    table["confidence"] = table["confidence"].map(lambda value: f"{value}%")
    return table.rename(
        columns={
            "id": "Patient ID",
            "age": "Age",
            "cancer_stage": "Cancer Stage",
            "risk": "Prediction",
            "confidence": "Confidence",
        }
    )
