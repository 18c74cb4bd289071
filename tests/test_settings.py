import pytest

import pulmoprobe
from pulmoprobe.schema import load_schema
from pulmoprobe.settings import CONFIG_DIR, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CONFIG_DIR", "MODEL_ACCURACY", "SCHEMA_VARIANT", "API_URL"):
        monkeypatch.delenv(f"PULMOPROBE_{name}", raising=False)


def test_default_config_dir_ships_inside_the_package():
    settings = Settings()

    assert settings.config_dir == CONFIG_DIR
    assert CONFIG_DIR.parent.samefile(next(iter(pulmoprobe.__path__)))
    assert (settings.config_dir / "config.yaml").is_file()


def test_default_config_dir_loads_default_variant():
    settings = Settings()
    schema = load_schema(settings.schema_variant, settings.config_dir)
    assert schema.name == "pulmoprobe"


def test_model_accuracy_default():
    assert Settings().model_accuracy == 94.5


def test_model_accuracy_from_environment(monkeypatch):
    monkeypatch.setenv("PULMOPROBE_MODEL_ACCURACY", "91.25")
    assert Settings().model_accuracy == 91.25
