from __future__ import annotations

import pytest

from compliance_import.models import ExpectedColumn
from compliance_import.services.reconciler import StructuralError, reconcile, require_columns


def test_case_and_whitespace_insensitive_match(systems_schema):
    mapping = reconcile(["  system name ", "ACRONYM", "status"], systems_schema)

    assert [m.field_key for m in mapping.matched] == ["name", "acronym", "status"]
    assert mapping.matched[0].csv_header == "  system name "
    assert mapping.missing == []
    assert mapping.unmatched == []
    assert mapping.is_complete


def test_matched_in_schema_order_not_header_order(systems_schema):
    mapping = reconcile(["Status", "System Name"], systems_schema)

    assert mapping.field_keys() == ["name", "status"]
    assert mapping.matched[0].header_index == 1


def test_alias_match():
    schema = [ExpectedColumn("Weakness", "weakness_name", required=True, aliases=("Weakness Name",))]

    mapping = reconcile(["weakness name"], schema)

    assert mapping.matched[0].field_key == "weakness_name"
    assert mapping.matched[0].canonical_name == "Weakness"


def test_missing_required_and_unmatched(systems_schema):
    mapping = reconcile(["Acronym", "Owner"], systems_schema)

    assert mapping.missing == ["System Name"]
    assert mapping.unmatched == ["Owner"]
    assert not mapping.is_complete


def test_optional_column_absent_is_not_missing(systems_schema):
    mapping = reconcile(["System Name"], systems_schema)

    assert mapping.missing == []
    assert mapping.field_keys() == ["name"]


def test_each_header_binds_at_most_one_field():
    schema = [
        ExpectedColumn("Name", "name"),
        ExpectedColumn("Title", "title", aliases=("Name",)),
    ]

    mapping = reconcile(["Name"], schema)

    assert mapping.field_keys() == ["name"]


def test_duplicate_headers_first_wins_rest_unmatched(systems_schema, caplog):
    with caplog.at_level("WARNING"):
        mapping = reconcile(["System Name", "system name", "Status"], systems_schema)

    assert mapping.matched[0].header_index == 0
    assert mapping.unmatched == ["system name"]
    assert mapping.duplicates == ["system name"]
    assert "duplicate CSV headers" in caplog.text


def test_empty_header_cells_not_treated_as_duplicates(systems_schema):
    mapping = reconcile(["System Name", "", ""], systems_schema)

    assert mapping.duplicates == []
    assert mapping.unmatched == ["", ""]


def test_empty_header_reports_all_required_missing(systems_schema):
    mapping = reconcile([], systems_schema)

    assert mapping.missing == ["System Name"]


def test_reconcile_is_deterministic(systems_schema):
    header = ["status", "System Name", "extra"]

    assert reconcile(header, systems_schema) == reconcile(header, systems_schema)


def test_require_columns_raises_structural_error(systems_schema):
    mapping = reconcile(["Acronym"], systems_schema)

    with pytest.raises(StructuralError, match="System Name") as exc:
        require_columns(mapping)
    assert exc.value.missing == ["System Name"]
    assert exc.value.unmatched == []


def test_require_columns_passes_complete_mapping(systems_schema):
    mapping = reconcile(["System Name"], systems_schema)

    assert require_columns(mapping) is mapping
