#!/usr/bin/env python3
"""Dataset generation script for import performance testing.

Generates a synthetic CSV upload for one entity of the import catalog
(config/import.yml). Values deliberately include the awkward parts of real
spreadsheet exports:
- Quoted fields with embedded commas, newlines and doubled quotes
- Header names in mixed case with stray whitespace
- A configurable share of invalid rows (blank required values, bad enum values)

The output can be fed straight to ``python -m compliance_import.cli ENTITY FILE --dry-run``.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

from compliance_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from compliance_import.models import EntityImportConfig, ImportConfig


def _value_for(field_key: str, allowed: list[str] | None, j: int, rng: np.random.Generator) -> str:
    if allowed:
        return str(rng.choice(allowed))
    if field_key.endswith("_date"):
        return str(pd.Timestamp("2025-01-01") + pd.Timedelta(days=int(rng.integers(0, 365))))[:10]
    if j % 5 == 0:
        return f'Line one, "quoted"\nline two for row {j + 1}'
    return f"{field_key.replace('_', ' ').title()} {j + 1}"


def generate_rows(
    entity: EntityImportConfig,
    choices: dict[str, list[str]],
    rows: int,
    invalid_ratio: float = 0.05,
    seed: int = 42,
) -> pd.DataFrame:
    """Build a DataFrame with messy header names and a share of invalid rows.

    Args:
        entity: Catalog entry to generate data for
        choices: Enum choices per field (see enum_choices)
        rows: Number of data rows
        invalid_ratio: Share of rows made invalid on purpose (0.0 - 1.0)
        seed: Random seed for reproducible data
    """
    rng = np.random.default_rng(seed)
    data: dict[str, list[str]] = {}
    for col in entity.schema:
        allowed = choices.get(col.field_key)
        data[col.field_key] = [_value_for(col.field_key, allowed, j, rng) for j in range(rows)]

    invalid = rng.random(rows) < invalid_ratio
    required = [c.field_key for c in entity.schema if c.required]
    for j in np.flatnonzero(invalid):
        if required and j % 2 == 0:
            data[required[0]][j] = "  "
        elif choices:
            data[next(iter(choices))][j] = "not-a-choice"

    df = pd.DataFrame(data)
    # ヘッダは大文字小文字・前後空白を崩して出力する
    df.columns = [
        f" {c.canonical_name.upper()} " if i % 2 else c.canonical_name.lower()
        for i, c in enumerate(entity.schema)
    ]
    return df


def enum_choices(cfg: ImportConfig, key: str) -> dict[str, list[str]]:
    """Enum choices per field, taken from the raw catalog declaration."""
    raw = (cfg.raw or {}).get("entities", {}).get(key, {})
    return {
        field_key: [str(a) for a in spec["allowed"]]
        for field_key, spec in (raw.get("validators") or {}).items()
        if spec.get("type") == "enum"
    }


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic CSV upload for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 200 risks (one request worth of rows)
  %(prog)s risks data/risks.csv --rows 200

  # Large file for tokenizer throughput checks, 10%% invalid rows
  %(prog)s systems data/systems.csv --rows 50000 --invalid-ratio 0.1
        """,
    )
    parser.add_argument("entity", help="Entity key from the import catalog")
    parser.add_argument("output", type=Path, help="Output CSV file path")
    parser.add_argument("--rows", type=int, default=200, help="Number of data rows (default: 200)")
    parser.add_argument("--invalid-ratio", type=float, default=0.05, help="Share of invalid rows (default: 0.05)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.invalid_ratio <= 1.0:
        print("Error: --invalid-ratio must be between 0 and 1", file=sys.stderr)
        return 1

    try:
        cfg = load_config(args.config)
        entity = cfg.entity(args.entity)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyError:
        print(f"Error: unknown entity '{args.entity}'", file=sys.stderr)
        return 1

    df = generate_rows(entity, enum_choices(cfg, entity.key), args.rows, args.invalid_ratio, args.seed)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.output, index=False, encoding="utf-8-sig", lineterminator="\r\n")

    print(f"Created CSV file: {args.output}")
    print(f"  Entity: {entity.label} ({entity.key})")
    print(f"  Rows: {args.rows:,}")
    print(f"  Columns: {len(df.columns)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
