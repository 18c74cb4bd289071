from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

import requests
from loguru import logger

ERROR_RISK = "Error"
DEFAULT_API_PATH = "/predict"


@dataclass(frozen=True)
class PredictionResult:
    """Outcome of a single prediction request.

    ``risk`` and ``confidence`` are returned verbatim from the scoring service.
    Failed requests carry ``risk="Error"`` and a populated ``error``.
    """

    risk: str
    confidence: Union[float, str]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str) -> PredictionResult:
        return cls(risk=ERROR_RISK, confidence=0, error=message)

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


class PredictionError(Exception):
    """Raised internally when a prediction request cannot produce a result."""


class PredictionClient:
    """Submit payloads to a remote scoring endpoint.

    Each call is a single POST with no retry. The client keeps no state between calls.

    Args:
        endpoint: Base URL of the scoring service.
        path: Path of the prediction route.
        timeout: Seconds to wait for the service, or None to wait indefinitely.
    """

    def __init__(self, endpoint: str, path: str = DEFAULT_API_PATH, timeout: float | None = None) -> None:
        self.endpoint = endpoint
        self.path = path
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.endpoint.rstrip('/')}/{self.path.lstrip('/')}"

    def predict(self, payload: dict[str, Any]) -> PredictionResult:
        """Send the payload and surface the outcome.

        Args:
            payload: Feature vector or raw form payload.

        Returns:
            The prediction result. Transport, status and decoding failures are
            returned as an error result rather than raised.
        """
        logger.debug(f"Posting {len(payload)} features to {self.url}")
        try:
            result = self._post(payload)
        except PredictionError as exc:
            logger.error(f"Prediction failed: {exc}")
            return PredictionResult.failure(str(exc))
        logger.info(f"Prediction: risk={result.risk}, confidence={result.confidence}")
        return result

    def _post(self, payload: dict[str, Any]) -> PredictionResult:
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PredictionError(f"Could not reach the API: {exc}") from exc

        if not response.ok:
            detail = response.text
            try:
                data = response.json()
                if isinstance(data, dict):
                    detail = data.get("detail", data.get("error", detail))
            except ValueError:
                pass
            raise PredictionError(f"API error ({response.status_code}): {detail}")

        try:
            data = response.json()
        except ValueError as exc:
            raise PredictionError("The API did not return valid JSON.") from exc

        if not isinstance(data, dict) or "risk" not in data or "confidence" not in data:
            raise PredictionError(f"The API response is missing 'risk' or 'confidence': {data!r}")

        return PredictionResult(risk=data["risk"], confidence=data["confidence"], error=data.get("error"))


def predict(
    payload: dict[str, Any],
    endpoint: str,
    path: str = DEFAULT_API_PATH,
    timeout: float | None = None,
) -> PredictionResult:
    """Send one prediction request with a throwaway client."""
    return PredictionClient(endpoint, path=path, timeout=timeout).predict(payload)
