from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Union

from pulmoprobe.schema import FLAG_VALUES, CategoricalField, FlagField, FormSchema, NumericField

FeatureVector = dict[str, Union[float, int]]


def parse_number(value: Any) -> float | None:
    """Parse a form value into a float.

    Args:
        value: Raw form value, usually the string typed by the user.

    Returns:
        The parsed number, or None when the value is blank or not numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _flag_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value).strip()


def validate(form: Mapping[str, Any], schema: FormSchema) -> dict[str, str]:
    """Check a form against the schema.

    Args:
        form: Current form values keyed by field name.
        schema: Form schema.

    Returns:
        Mapping of field name -> error message. Empty when the form may be submitted.
    """
    errors: dict[str, str] = {}
    for field in schema.fields:
        value = form.get(field.name)
        if isinstance(field, NumericField):
            number = parse_number(value)
            if number is None or not field.contains(number):
                errors[field.name] = field.error
        elif isinstance(field, CategoricalField):
            if value not in field.options:
                errors[field.name] = f"Select a valid {field.label.lower()}."
        elif _flag_text(value) not in FLAG_VALUES:
            errors[field.name] = "Select yes or no."
    return errors


def encode(form: Mapping[str, Any], schema: FormSchema) -> FeatureVector:
    """Encode a validated form into the one-hot feature vector.

    Numeric fields are passed through as floats, flags as 0/1 integers, and each
    categorical field expands into one indicator per option. A blank or unknown
    selection leaves every indicator of that field at 0.

    Args:
        form: Form values keyed by field name. Numeric fields must already be valid.
        schema: Form schema.

    Returns:
        Feature vector whose keys are exactly ``schema.feature_keys()``.

    Raises:
        ValueError: If a numeric or flag value cannot be parsed.
    """
    vector: FeatureVector = {}
    for field in schema.fields:
        value = form.get(field.name)
        if isinstance(field, NumericField):
            number = parse_number(value)
            if number is None:
                raise ValueError(f"Field '{field.name}' is not a number: {value!r}")
            vector[field.name] = number
        elif isinstance(field, CategoricalField):
            for option in field.options:
                vector[field.feature_key(option)] = 1 if value == option else 0
        else:
            vector[field.name] = _encode_flag(field, value)
    return vector


def _encode_flag(field: FlagField, value: Any) -> int:
    text = _flag_text(value)
    if text not in FLAG_VALUES:
        raise ValueError(f"Field '{field.name}' must be 0 or 1, got {value!r}")
    return int(text)


def hot_count(vector: Mapping[str, float | int], schema: FormSchema, name: str) -> int:
    """Count the indicator entries set for a categorical field.

    Returns 1 for a valid selection and 0 when the field was not encodable.
    """
    field = schema.field(name)
    if not isinstance(field, CategoricalField):
        raise ValueError(f"Field '{name}' is not categorical.")
    return sum(1 for key in field.feature_keys() if vector.get(key) == 1)


def build_raw_payload(form: Mapping[str, Any], schema: FormSchema) -> dict[str, Any]:
    """Build the untransformed payload: form values with numbers and flags parsed."""
    payload: dict[str, Any] = {}
    for field in schema.fields:
        value = form.get(field.name)
        if isinstance(field, NumericField):
            payload[field.name] = parse_number(value)
        elif isinstance(field, FlagField):
            payload[field.name] = _encode_flag(field, value)
        else:
            payload[field.name] = value
    return payload


def build_payload(form: Mapping[str, Any], schema: FormSchema) -> dict[str, Any]:
    """Build the request body in the format the schema variant expects."""
    if schema.payload_format == "raw":
        return build_raw_payload(form, schema)
    return encode(form, schema)
