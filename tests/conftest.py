# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from compliance_import.logging.init import reset_logging
from compliance_import.models import ExpectedColumn


@pytest.fixture(autouse=True)
def _clean_logging():
    # setup_logging() binds sys.stdout at first call; capsys needs a fresh handler
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """api:
  base_url: http://console.test
  timeout_seconds: 5
preview_sample_size: 3
entities:
  systems:
    label: Systems
    endpoint: /api/systems/import
    max_rows: 200
    columns:
      - {name: System Name, field: name, required: true}
      - {name: Acronym, field: acronym}
      - {name: Impact Level, field: impact_level}
      - {name: Status, field: status}
    validators:
      impact_level: {type: enum, allowed: [low, moderate, high]}
      status: {type: enum, allowed: [active, inactive]}
  risks:
    label: Risks
    endpoint: /api/risks/import
    extra_fields: reject
    columns:
      - {name: Title, field: title, required: true}
      - {name: Likelihood, field: likelihood}
    validators:
      likelihood: {type: range, min: 1, max: 5}
  poams:
    label: POA&Ms
    endpoint: /api/poams/import
    row_transform: collect_milestones
    columns:
      - {name: Weakness, field: weakness_name, required: true, aliases: [Weakness Name]}
      - {name: Milestone 1, field: milestone_1}
      - {name: Milestone 1 Date, field: milestone_1_date}
  implementations:
    label: Control Implementations
    endpoint: /api/implementations/import
    max_rows: 2
    required_context: [system_id, framework_id]
    columns:
      - {name: Control ID, field: control_id, required: true}
      - {name: Status, field: status}
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, content: str) -> Path:
        f = temp_workdir / "data" / name
        # newline="" で改行コードをそのまま保持
        with f.open("w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        return f

    return _write


@pytest.fixture()
def systems_schema() -> tuple[ExpectedColumn, ...]:
    return (
        ExpectedColumn("System Name", "name", required=True),
        ExpectedColumn("Acronym", "acronym"),
        ExpectedColumn("Status", "status"),
    )
