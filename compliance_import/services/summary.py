from __future__ import annotations

from ..models.import_result import ImportResult
from ..models.row_outcome import RowFate

"""Summary line rendering for the bulk CSV importer.

Format:
SUMMARY entity={entity} rows={n} committed={c} validation_rejected={v}
server_rejected={s} elapsed_sec={t}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(entity: str, result: ImportResult) -> str:
    """Render the SUMMARY line for one import.

    Examples:
        >>> from compliance_import.models import Committed, ImportResult
        >>> result = ImportResult(
        ...     success_count=2, failed_count=0, per_row_errors=[],
        ...     outcomes=[Committed(1), Committed(2)], elapsed_seconds=0.5,
        ... )
        >>> render_summary_line("systems", result)
        'SUMMARY entity=systems rows=2 committed=2 validation_rejected=0 server_rejected=0 elapsed_sec=0.5'
    """
    return (
        f"SUMMARY entity={entity} "
        f"rows={result.total_rows} "
        f"committed={result.success_count} "
        f"validation_rejected={result.count(RowFate.VALIDATION_REJECTED)} "
        f"server_rejected={result.count(RowFate.SERVER_REJECTED)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
