from __future__ import annotations

import pytest

from compliance_import.parsing.tokenizer import BOM, split_logical_lines, tokenize


def test_tokenize_basic_header_and_rows():
    result = tokenize("Name,Status\nAlpha,active\nBeta,inactive\n")

    assert result.header == ["Name", "Status"]
    assert len(result) == 2
    assert result.records[0].row_index == 1
    assert result.records[0].values == {"Name": "Alpha", "Status": "active"}
    assert result.records[1].values == {"Name": "Beta", "Status": "inactive"}


def test_quoted_comma_stays_in_one_field():
    result = tokenize('Name,Note\nA,"x, y"\n')

    assert result.records[0].values["Note"] == "x, y"


def test_quoted_newline_spans_physical_lines():
    result = tokenize('Name,Description\nA,"line1\nline2"\nB,plain\n')

    assert len(result.records) == 2
    assert result.records[0].values["Description"] == "line1\nline2"
    assert result.records[1].row_index == 2
    assert result.records[1].values["Name"] == "B"


def test_escaped_quotes_inside_quoted_field():
    result = tokenize('Name,Quote\nA,"He said ""hi"""\n')

    assert result.records[0].values["Quote"] == 'He said "hi"'


def test_crlf_and_bare_cr_line_endings():
    crlf = tokenize("Name,Status\r\nA,active\r\nB,inactive\r\n")
    bare_cr = tokenize("Name,Status\rA,active\rB,inactive")

    assert [r.values for r in crlf.records] == [r.values for r in bare_cr.records]
    assert crlf.records[1].values == {"Name": "B", "Status": "inactive"}


def test_leading_bom_is_stripped_from_first_header():
    result = tokenize(BOM + "System Name,Status\nA,active\n")

    assert result.header[0] == "System Name"


def test_blank_lines_skipped_and_not_counted():
    result = tokenize("Name\nA\n\n   \nB\n\n")

    assert [r.row_index for r in result.records] == [1, 2]
    assert [r.values["Name"] for r in result.records] == ["A", "B"]


def test_values_and_headers_are_trimmed():
    result = tokenize("  Name , Status \n  Alpha  ,  active \n")

    assert result.header == ["Name", "Status"]
    assert result.records[0].values == {"Name": "Alpha", "Status": "active"}


def test_short_row_padded_with_empty_strings():
    result = tokenize("A,B,C\n1\n")

    assert result.records[0].values == {"A": "1", "B": "", "C": ""}
    assert result.records[0].fields == ("1", "", "")


def test_extra_values_kept_separately():
    result = tokenize("A,B\n1,2,3,4\n")

    record = result.records[0]
    assert record.values == {"A": "1", "B": "2"}
    assert record.extra_values == ("3", "4")
    assert record.has_extra_values


def test_duplicate_header_first_occurrence_wins_in_values():
    result = tokenize("Name,Name\nfirst,second\n")

    assert result.records[0].values == {"Name": "first"}
    assert result.records[0].value_at(1) == "second"


@pytest.mark.parametrize("raw", [None, "", BOM, "\n\n", "  \r\n "])
def test_empty_input_yields_empty_result(raw):
    result = tokenize(raw)

    assert result.header == []
    assert result.records == []


def test_header_only_file_has_no_records():
    result = tokenize("Name,Status\n")

    assert result.header == ["Name", "Status"]
    assert result.records == []


def test_unterminated_quote_terminates_and_swallows_rest(caplog):
    with caplog.at_level("WARNING"):
        result = tokenize('Name,Note\nA,"open\nB,closed\n')

    assert len(result.records) == 1
    assert result.records[0].values["Note"] == "open\nB,closed"
    assert "unterminated" in caplog.text


def test_last_line_without_newline():
    assert split_logical_lines("a,b\n1,2") == [["a", "b"], ["1", "2"]]


def test_split_keeps_raw_untrimmed_fields():
    assert split_logical_lines(' a , "b" \n') == [[" a ", " b "]]
