from __future__ import annotations

from compliance_import.models import ExpectedColumn, RowError, ValidatedRow
from compliance_import.parsing.tokenizer import tokenize
from compliance_import.services.reconciler import reconcile
from compliance_import.services.validator import ExtraFieldPolicy, validate_records, validate_row
from compliance_import.services.validators import enum_validator


def _prepare(text: str, schema):
    tokenized = tokenize(text)
    return tokenized.records, reconcile(tokenized.header, schema)


def test_valid_row_keyed_by_field_key(systems_schema):
    records, mapping = _prepare("System Name,Acronym,Status\n Alpha , ALP ,active\n", systems_schema)

    result = validate_row(records[0], mapping, {})

    assert isinstance(result, ValidatedRow)
    assert result.row_index == 1
    assert result.data == {"name": "Alpha", "acronym": "ALP", "status": "active"}


def test_required_blank_value_rejected_with_canonical_name(systems_schema):
    records, mapping = _prepare("system name,Status\n  ,active\n", systems_schema)

    result = validate_row(records[0], mapping, {})

    assert isinstance(result, RowError)
    assert result.messages == ["System Name is required"]


def test_validator_message_prefixed_with_csv_header(systems_schema):
    records, mapping = _prepare("System Name,STATUS\nA,retired\n", systems_schema)
    validators = {"status": enum_validator(["active", "inactive"], "Status")}

    result = validate_row(records[0], mapping, validators)

    assert isinstance(result, RowError)
    assert result.messages == ['STATUS: Invalid Status: "retired". Allowed: active, inactive']


def test_all_messages_collected(systems_schema):
    records, mapping = _prepare("System Name,Status\n,retired\n", systems_schema)
    validators = {"status": enum_validator(["active"], "Status")}

    result = validate_row(records[0], mapping, validators)

    assert len(result.messages) == 2
    assert result.error == 'System Name is required; Status: Invalid Status: "retired". Allowed: active'


def test_registered_validator_takes_precedence_over_required():
    schema = [ExpectedColumn("Title", "title", required=True)]
    records, mapping = _prepare("Title,Other\n,x\n", schema)

    def custom(value: str) -> str | None:
        return "title must be given" if not value else None

    result = validate_row(records[0], mapping, {"title": custom})

    # required メッセージは重複して出さない
    assert isinstance(result, RowError)
    assert result.messages == ["Title: title must be given"]


def test_validator_passing_blank_required_value_still_required():
    schema = [ExpectedColumn("Title", "title", required=True)]
    records, mapping = _prepare("Title,Other\n,x\n", schema)

    result = validate_row(records[0], mapping, {"title": lambda v: None})

    assert isinstance(result, RowError)
    assert result.messages == ["Title is required"]


def test_unmatched_columns_not_in_output(systems_schema):
    records, mapping = _prepare("System Name,Owner\nA,bob\n", systems_schema)

    result = validate_row(records[0], mapping, {})

    assert result.data == {"name": "A"}


def test_validate_row_is_pure(systems_schema):
    records, mapping = _prepare("System Name,Status\nA,bogus\n", systems_schema)
    validators = {"status": enum_validator(["active"], "Status")}

    first = validate_row(records[0], mapping, validators)
    second = validate_row(records[0], mapping, validators)

    assert first == second
    assert records[0].values == {"System Name": "A", "Status": "bogus"}


def test_extra_values_dropped_by_default(systems_schema):
    records, mapping = _prepare("System Name\nA,surplus\n", systems_schema)

    assert isinstance(validate_row(records[0], mapping, {}), ValidatedRow)


def test_extra_values_rejected_with_reject_policy(systems_schema):
    records, mapping = _prepare("System Name\nA,surplus,more\n", systems_schema)

    result = validate_row(records[0], mapping, {}, extra_fields=ExtraFieldPolicy.REJECT)

    assert isinstance(result, RowError)
    assert result.messages == ["row has 3 values but the header has 1 columns"]


def test_blank_extra_values_ignored_with_reject_policy(systems_schema):
    records, mapping = _prepare("System Name\nA,,\n", systems_schema)

    result = validate_row(records[0], mapping, {}, extra_fields=ExtraFieldPolicy.REJECT)

    assert isinstance(result, ValidatedRow)


def test_validate_records_partitions_in_order(systems_schema):
    records, mapping = _prepare("System Name,Acronym\nA,x\n,y\nB,z\n", systems_schema)

    valid, errors = validate_records(records, mapping, {})

    assert [r.row_index for r in valid] == [1, 3]
    assert [e.row_index for e in errors] == [2]
