from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra
from hydra.errors import HydraException
from loguru import logger
from omegaconf import DictConfig, OmegaConf

PAYLOAD_FORMATS = ("one_hot", "raw")
FLAG_VALUES = ("0", "1")


class SchemaError(ValueError):
    """Raised when a form schema configuration is malformed."""


@dataclass(frozen=True)
class NumericField:
    """Configuration for a numeric input field.

    The valid range is inclusive on both ends.
    """

    name: str
    label: str
    section: str
    min_value: float
    max_value: float
    step: float
    error: str

    kind = "numeric"

    def contains(self, value: float) -> bool:
        """Return whether ``value`` lies inside the valid range."""
        return self.min_value <= value <= self.max_value


@dataclass(frozen=True)
class CategoricalField:
    """Configuration for a categorical input field with a fixed enumeration."""

    name: str
    label: str
    section: str
    options: tuple[str, ...]

    kind = "categorical"

    def feature_key(self, option: str) -> str:
        """Return the indicator key emitted for ``option``."""
        return f"{self.name}_{option}"

    def feature_keys(self) -> list[str]:
        return [self.feature_key(option) for option in self.options]


@dataclass(frozen=True)
class FlagField:
    """Configuration for a yes/no comorbidity field, held as "0" or "1"."""

    name: str
    label: str
    section: str

    kind = "flag"


Field = Union[NumericField, CategoricalField, FlagField]


@dataclass(frozen=True)
class SchemaDifference:
    """A single difference between two schema variants."""

    subject: str
    left: Any
    right: Any

    def __str__(self) -> str:
        return f"{self.subject}: {self.left!r} != {self.right!r}"


@dataclass(frozen=True)
class FormSchema:
    """Statically declared description of the intake form and the model payload.

    Args:
        name: Variant name, matching the Hydra config file name.
        endpoint: Base URL of the scoring service used by this variant.
        payload_format: Either ``"one_hot"`` or ``"raw"``.
        high_risk_marker: Substring that marks a risk label as high risk.
        fields: Field descriptors in form order.
    """

    name: str
    endpoint: str
    payload_format: str
    high_risk_marker: str
    fields: tuple[Field, ...]

    @classmethod
    def from_config(cls, cfg: DictConfig | dict[str, Any]) -> FormSchema:
        """Build a schema from a composed Hydra config node.

        Args:
            cfg: The ``schema`` node of the composed config, or an equivalent dict.

        Returns:
            Validated form schema.

        Raises:
            SchemaError: If the configuration is malformed.
        """
        data = OmegaConf.to_container(cfg, resolve=True) if isinstance(cfg, DictConfig) else dict(cfg)
        for key in ("name", "endpoint", "fields"):
            if not data.get(key):
                raise SchemaError(f"Schema is missing required key '{key}'.")

        payload_format = data.get("payload_format", "one_hot")
        if payload_format not in PAYLOAD_FORMATS:
            raise SchemaError(
                f"Unsupported payload format '{payload_format}'. Expected one of {list(PAYLOAD_FORMATS)}."
            )

        fields = tuple(_build_field(entry) for entry in data["fields"])
        names = [field.name for field in fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise SchemaError(f"Duplicate field names in schema '{data['name']}': {duplicates}")

        return cls(
            name=str(data["name"]),
            endpoint=str(data["endpoint"]),
            payload_format=payload_format,
            high_risk_marker=str(data.get("high_risk_marker", "High")),
            fields=fields,
        )

    def field(self, name: str) -> Field:
        for field in self.fields:
            if field.name == name:
                return field
        raise KeyError(f"Unknown field '{name}' in schema '{self.name}'.")

    @property
    def numeric_fields(self) -> list[NumericField]:
        return [field for field in self.fields if isinstance(field, NumericField)]

    @property
    def categorical_fields(self) -> list[CategoricalField]:
        return [field for field in self.fields if isinstance(field, CategoricalField)]

    @property
    def flag_fields(self) -> list[FlagField]:
        return [field for field in self.fields if isinstance(field, FlagField)]

    @property
    def sections(self) -> dict[str, list[Field]]:
        """Fields grouped by section, in first-seen section order."""
        grouped: dict[str, list[Field]] = {}
        for field in self.fields:
            grouped.setdefault(field.section, []).append(field)
        return grouped

    def feature_keys(self) -> list[str]:
        """Return the ordered key set of the one-hot feature vector."""
        keys: list[str] = []
        for field in self.fields:
            if isinstance(field, CategoricalField):
                keys.extend(field.feature_keys())
            else:
                keys.append(field.name)
        return keys

    def initial_state(self) -> dict[str, str]:
        """Return a fresh form: empty numerics, first option selected, flags off."""
        state: dict[str, str] = {}
        for field in self.fields:
            if isinstance(field, NumericField):
                state[field.name] = ""
            elif isinstance(field, CategoricalField):
                state[field.name] = field.options[0]
            else:
                state[field.name] = FLAG_VALUES[0]
        return state


def _build_field(entry: dict[str, Any]) -> Field:
    name = entry.get("name")
    if not name:
        raise SchemaError(f"Field entry without a name: {entry}")
    kind = entry.get("kind")
    label = str(entry.get("label", name))
    section = str(entry.get("section", "General"))

    if kind == "numeric":
        try:
            min_value = float(entry["min_value"])
            max_value = float(entry["max_value"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SchemaError(f"Numeric field '{name}' needs numeric min_value and max_value.") from exc
        if min_value > max_value:
            raise SchemaError(f"Numeric field '{name}' has min_value {min_value} above max_value {max_value}.")
        return NumericField(
            name=name,
            label=label,
            section=section,
            min_value=min_value,
            max_value=max_value,
            step=float(entry.get("step", 1)),
            error=str(entry.get("error", f"Invalid {label}.")),
        )
    if kind == "categorical":
        options = tuple(str(option) for option in entry.get("options") or [])
        if not options:
            raise SchemaError(f"Categorical field '{name}' needs at least one option.")
        if len(set(options)) != len(options):
            raise SchemaError(f"Categorical field '{name}' lists an option more than once.")
        return CategoricalField(name=name, label=label, section=section, options=options)
    if kind == "flag":
        return FlagField(name=name, label=label, section=section)
    raise SchemaError(f"Field '{name}' has unknown kind '{kind}'.")


def load_schema(variant: str, config_dir: Path | str, overrides: list[str] | None = None) -> FormSchema:
    """Compose the Hydra config for a schema variant and build the schema.

    Args:
        variant: Name of a file in the ``schema`` config group.
        config_dir: Directory holding ``config.yaml``.
        overrides: Extra Hydra overrides.

    Returns:
        The composed form schema.

    Raises:
        SchemaError: If the variant or config directory cannot be composed, or the schema is malformed.
    """
    config_path = Path(config_dir).resolve()
    if GlobalHydra.instance().is_initialized():
        GlobalHydra.instance().clear()

    try:
        with initialize_config_dir(version_base=None, config_dir=str(config_path)):
            cfg = compose(config_name="config", overrides=[f"schema={variant}", *(overrides or [])])
    except HydraException as exc:
        logger.error(f"Could not compose schema '{variant}' from {config_path}: {exc}")
        raise SchemaError(f"Could not load schema '{variant}' from {config_path}: {exc}") from exc

    schema = FormSchema.from_config(cfg.schema)
    logger.info(f"Loaded schema '{schema.name}' with {len(schema.fields)} fields from {config_path}")
    return schema


def diff_schemas(left: FormSchema, right: FormSchema) -> list[SchemaDifference]:
    """List every difference between two schema variants.

    Neither side is treated as authoritative; the result only names what differs.
    """
    differences: list[SchemaDifference] = []
    for attribute in ("endpoint", "payload_format", "high_risk_marker"):
        left_value = getattr(left, attribute)
        right_value = getattr(right, attribute)
        if left_value != right_value:
            differences.append(SchemaDifference(attribute, left_value, right_value))

    left_fields = {field.name: field for field in left.fields}
    right_fields = {field.name: field for field in right.fields}

    for name in left_fields.keys() - right_fields.keys():
        differences.append(SchemaDifference(f"field {name}", left_fields[name].kind, None))
    for name in right_fields.keys() - left_fields.keys():
        differences.append(SchemaDifference(f"field {name}", None, right_fields[name].kind))

    for name in [field.name for field in left.fields if field.name in right_fields]:
        a, b = left_fields[name], right_fields[name]
        if a.kind != b.kind:
            differences.append(SchemaDifference(f"{name}.kind", a.kind, b.kind))
            continue
        if isinstance(a, NumericField) and isinstance(b, NumericField):
            if (a.min_value, a.max_value) != (b.min_value, b.max_value):
                differences.append(
                    SchemaDifference(f"{name}.range", (a.min_value, a.max_value), (b.min_value, b.max_value))
                )
        elif isinstance(a, CategoricalField) and isinstance(b, CategoricalField):
            removed = [option for option in a.options if option not in b.options]
            added = [option for option in b.options if option not in a.options]
            if removed or added:
                differences.append(SchemaDifference(f"{name}.options", removed, added))
            elif a.options != b.options:
                differences.append(SchemaDifference(f"{name}.order", list(a.options), list(b.options)))

    # Sets above iterate in arbitrary order.
    return sorted(differences, key=lambda difference: difference.subject)
