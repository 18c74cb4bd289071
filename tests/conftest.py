import pytest
from hydra import compose, initialize
from hydra.core.global_hydra import GlobalHydra

from pulmoprobe.history import HistoryRecord
from pulmoprobe.client import PredictionResult
from pulmoprobe.schema import FormSchema

DEFAULT_OVERRIDES = [
    "schema=pulmoprobe",
]

SAMPLE_FORM = {
    "age": "55",
    "bmi": "22.5",
    "cholesterol_level": "180",
    "gender": "Male",
    "country": "Sweden",
    "cancer_stage": "Stage II",
    "smoking_status": "Never Smoked",
    "treatment_type": "Surgery",
    "hypertension": "0",
    "asthma": "0",
    "cirrhosis": "0",
    "other_cancer": "0",
    "family_history": "0",
}


class FakeClient:
    """Prediction client stub that records payloads and replays a fixed result."""

    def __init__(self, result: PredictionResult | None = None) -> None:
        self.result = result or PredictionResult(risk="Low Risk", confidence=87.5)
        self.payloads: list[dict] = []

    def predict(self, payload: dict) -> PredictionResult:
        self.payloads.append(payload)
        return self.result


@pytest.fixture()
def cfg_factory():
    def _factory(extra_overrides=None):
        overrides = list(DEFAULT_OVERRIDES)
        if extra_overrides:
            overrides.extend(extra_overrides)

        if GlobalHydra.instance().is_initialized():
            GlobalHydra.instance().clear()

        with initialize(version_base=None, config_path="../src/pulmoprobe/conf"):
            return compose(config_name="config", overrides=overrides)

    return _factory


@pytest.fixture()
def cfg(cfg_factory):
    return cfg_factory()


@pytest.fixture()
def schema(cfg) -> FormSchema:
    return FormSchema.from_config(cfg.schema)


@pytest.fixture()
def local_schema(cfg_factory) -> FormSchema:
    return FormSchema.from_config(cfg_factory(["schema=pulmoprobe_local"]).schema)


@pytest.fixture()
def sample_form() -> dict[str, str]:
    return dict(SAMPLE_FORM)


@pytest.fixture()
def make_record():
    def _factory(record_id="P000001", risk="Low Risk", confidence=80.0, **inputs):
        form = dict(SAMPLE_FORM)
        form.update(inputs)
        return HistoryRecord(id=record_id, inputs=form, output=PredictionResult(risk=risk, confidence=confidence))

    return _factory


@pytest.fixture()
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def failing_client() -> FakeClient:
    return FakeClient(PredictionResult.failure("Could not reach the API: connection refused"))
