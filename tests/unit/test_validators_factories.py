from __future__ import annotations

import pytest

from compliance_import.services.validators import (
    ValidatorSpecError,
    build_validator,
    enum_validator,
    range_validator,
    required_validator,
)


def test_required_validator():
    v = required_validator("Title")

    assert v("  ") == "Title is required"
    assert v("x") is None


def test_enum_validator_case_insensitive_and_blank_passes():
    v = enum_validator(["Low", "Moderate", "High"], "Impact Level")

    assert v("HIGH") is None
    assert v("") is None
    assert v("severe") == 'Invalid Impact Level: "severe". Allowed: low, moderate, high'


@pytest.mark.parametrize("value", ["1", "5", "3.5", " 2"])
def test_range_validator_accepts_in_range(value):
    assert range_validator(1, 5, "Likelihood")(value) is None


@pytest.mark.parametrize("value", ["0", "6", "abc", "-1"])
def test_range_validator_rejects(value):
    assert range_validator(1, 5, "Likelihood")(value) == "Likelihood must be 1-5"


def test_range_validator_blank_passes():
    assert range_validator(1, 5, "Likelihood")("") is None


def test_build_validator_types():
    assert build_validator({"type": "required"}, "Name")("") == "Name is required"
    assert build_validator({"type": "enum", "allowed": ["a"]}, "Kind")("b") is not None
    assert build_validator({"type": "range", "min": 1, "max": 3}, "Score")("4") == "Score must be 1-3"


def test_build_validator_label_override():
    v = build_validator({"type": "required", "label": "Control"}, "Control ID")

    assert v("") == "Control is required"


@pytest.mark.parametrize(
    "spec",
    [
        {"type": "enum"},
        {"type": "range", "min": 1},
        {"type": "regex"},
    ],
)
def test_build_validator_invalid_spec(spec):
    with pytest.raises(ValidatorSpecError):
        build_validator(spec, "Field")
