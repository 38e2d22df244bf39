from __future__ import annotations

import json
import re
from pathlib import Path

from compliance_import.cli import main as cli_main

"""Output contracts: single SUMMARY line format and error log JSON Lines schema."""

SUMMARY_RE = re.compile(
    r"^SUMMARY entity=(?P<entity>\w+) rows=(?P<rows>\d+) committed=(?P<committed>\d+) "
    r"validation_rejected=(?P<validation>\d+) server_rejected=(?P<server>\d+) elapsed_sec=[0-9.]+$"
)
ERROR_LOG_KEYS = {"timestamp", "file", "entity", "row", "error_type", "message"}


def test_single_summary_line(write_config, write_csv, capsys):
    path = write_csv("s.csv", "System Name,Status\nA,active\nB,unknown\nC,inactive\n")

    cli_main(["systems", str(path), "--dry-run"])

    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_RE.match(lines[0])
    assert m is not None, lines[0]
    assert m.group("entity") == "systems"
    rows, committed = int(m.group("rows")), int(m.group("committed"))
    validation, server = int(m.group("validation")), int(m.group("server"))
    assert (rows, committed, validation, server) == (3, 2, 1, 0)
    assert committed + validation + server == rows


def test_every_output_line_is_labeled(write_config, write_csv, capsys):
    path = write_csv("s.csv", "System Name,Status\nA,active\nB,unknown\n")

    cli_main(["systems", str(path), "--dry-run"])

    for line in capsys.readouterr().out.splitlines():
        assert line.split(" ", 1)[0] in {"INFO", "WARN", "ERROR", "SUMMARY"}, line


def test_error_log_schema(write_config, write_csv, temp_workdir: Path):
    path = write_csv("s.csv", "System Name,Status\n,active\nB,unknown\n")

    cli_main(["systems", str(path), "--dry-run"])

    log_files = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(log_files) == 1
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", log_files[0].name)
    entries = [json.loads(line) for line in log_files[0].read_text(encoding="utf-8").splitlines()]
    assert [e["row"] for e in entries] == [1, 2]
    for entry in entries:
        assert set(entry) == ERROR_LOG_KEYS
        assert entry["file"] == "s.csv"
        assert entry["entity"] == "systems"
        assert entry["error_type"] == "VALIDATION_ERROR"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z", entry["timestamp"])


def test_no_error_log_when_everything_commits(write_config, write_csv, temp_workdir: Path):
    path = write_csv("s.csv", "System Name\nA\n")

    cli_main(["systems", str(path), "--dry-run"])

    assert list((temp_workdir / "logs").glob("errors-*.log")) == []
