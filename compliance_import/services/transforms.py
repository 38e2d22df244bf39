from __future__ import annotations

from collections.abc import Callable
from typing import Any

"""Named payload transforms applied to validated rows just before commit.

Entity catalogs refer to these by name (``row_transform: collect_milestones``).
Transforms return a new dict; validated row data is never mutated.
"""

__all__ = [
    "RowTransform",
    "ROW_TRANSFORMS",
    "collect_milestones",
    "get_row_transform",
]

RowTransform = Callable[[dict[str, Any]], dict[str, Any]]

MILESTONE_SLOTS = 3


def collect_milestones(row: dict[str, Any]) -> dict[str, Any]:
    """Fold milestone_N / milestone_N_date columns into a ``milestones`` list."""
    milestones: list[dict[str, Any]] = []
    for i in range(1, MILESTONE_SLOTS + 1):
        title = row.get(f"milestone_{i}")
        date = row.get(f"milestone_{i}_date")
        if title and str(title).strip():
            milestones.append(
                {"title": str(title).strip(), "target_date": date or None, "status": "pending"}
            )
    return {**row, "milestones": milestones}


ROW_TRANSFORMS: dict[str, RowTransform] = {
    "collect_milestones": collect_milestones,
}


def get_row_transform(name: str | None) -> RowTransform | None:
    """Look up a registered transform; None passes rows through unchanged.

    Raises:
        KeyError: if the name is not registered
    """
    if name is None:
        return None
    return ROW_TRANSFORMS[name]
