from pathlib import Path

_TEST_ROOT = Path(__file__).parent  # root of test folder
_PROJECT_ROOT = _TEST_ROOT.parent  # root of project
_CONFIG_PATH = _PROJECT_ROOT / "src" / "pulmoprobe" / "conf"  # hydra config folder
_SCHEMA_VARIANTS = sorted(path.stem for path in (_CONFIG_PATH / "schema").glob("*.yaml"))
