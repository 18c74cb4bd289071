import pytest

from pulmoprobe.encoding import (
    build_payload,
    build_raw_payload,
    encode,
    hot_count,
    parse_number,
    validate,
)


def test_worked_example(schema, sample_form):
    vector = encode(sample_form, schema)

    assert vector["gender_Male"] == 1
    assert vector["gender_Female"] == 0
    assert vector["country_Sweden"] == 1
    assert all(value == 0 for key, value in vector.items() if key.startswith("country_") and key != "country_Sweden")
    assert vector["cancer_stage_Stage II"] == 1
    assert all(
        value == 0 for key, value in vector.items() if key.startswith("cancer_stage_") and key != "cancer_stage_Stage II"
    )
    assert vector["age"] == 55.0
    assert vector["bmi"] == 22.5
    assert vector["cholesterol_level"] == 180.0
    assert vector["hypertension"] == 0


def test_key_set_matches_model_schema(schema, sample_form):
    vector = encode(sample_form, schema)
    assert list(vector) == schema.feature_keys()


def test_encoding_is_deterministic(schema, sample_form):
    assert encode(sample_form, schema) == encode(dict(sample_form), schema)


def test_every_option_sets_exactly_one_indicator(schema, sample_form):
    for field in schema.categorical_fields:
        for option in field.options:
            form = dict(sample_form, **{field.name: option})
            vector = encode(form, schema)
            assert hot_count(vector, schema, field.name) == 1
            assert vector[field.feature_key(option)] == 1


@pytest.mark.parametrize("value", ["", "Stage V"])
def test_unset_or_unknown_category_is_all_zero(schema, sample_form, value):
    form = dict(sample_form, cancer_stage=value)
    vector = encode(form, schema)
    assert hot_count(vector, schema, "cancer_stage") == 0
    assert "cancer_stage" in validate(form, schema)


@pytest.mark.parametrize(
    ("name", "text"),
    [("age", "18"), ("age", "100"), ("bmi", "10"), ("bmi", "59.9"), ("cholesterol_level", "400"), ("age", " 42 ")],
)
def test_numeric_passthrough(schema, sample_form, name, text):
    form = dict(sample_form, **{name: text})
    assert validate(form, schema) == {}
    assert encode(form, schema)[name] == float(text)


def test_flags_pass_through_as_integers(schema, sample_form):
    form = dict(sample_form, asthma="1", cirrhosis=True)
    vector = encode(form, schema)
    assert vector["asthma"] == 1
    assert vector["cirrhosis"] == 1
    assert isinstance(vector["asthma"], int)


def test_valid_form_has_no_errors(schema, sample_form):
    assert validate(sample_form, schema) == {}


@pytest.mark.parametrize(
    ("name", "text", "message"),
    [
        ("age", "17", "Invalid age."),
        ("age", "101", "Invalid age."),
        ("age", "", "Invalid age."),
        ("age", "abc", "Invalid age."),
        ("bmi", "9.9", "Invalid BMI."),
        ("bmi", "60.5", "Invalid BMI."),
        ("cholesterol_level", "99", "Invalid level."),
        ("cholesterol_level", "401", "Invalid level."),
        ("cholesterol_level", "nan", "Invalid level."),
    ],
)
def test_out_of_range_numeric_is_rejected(schema, sample_form, name, text, message):
    errors = validate(dict(sample_form, **{name: text}), schema)
    assert errors == {name: message}


def test_invalid_flag_is_rejected(schema, sample_form):
    errors = validate(dict(sample_form, asthma="maybe"), schema)
    assert errors == {"asthma": "Select yes or no."}


def test_encode_rejects_unparsed_numbers(schema, sample_form):
    with pytest.raises(ValueError, match="age"):
        encode(dict(sample_form, age=""), schema)


def test_hot_count_requires_categorical(schema, sample_form):
    with pytest.raises(ValueError):
        hot_count(encode(sample_form, schema), schema, "age")


@pytest.mark.parametrize(("value", "expected"), [("3.5", 3.5), (7, 7.0), ("", None), ("1e", None), (None, None)])
def test_parse_number(value, expected):
    assert parse_number(value) == expected


def test_raw_payload_keeps_categories(schema, sample_form):
    payload = build_raw_payload(sample_form, schema)
    assert payload["gender"] == "Male"
    assert payload["cancer_stage"] == "Stage II"
    assert payload["age"] == 55.0
    assert payload["family_history"] == 0


def test_build_payload_follows_variant(schema, local_schema, sample_form):
    assert "gender_Male" in build_payload(sample_form, schema)
    assert build_payload(sample_form, local_schema)["gender"] == "Male"
