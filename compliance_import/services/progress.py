from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

Shows row validation progress for large uploads. In non-TTY environments
(CI, piped output) the bar is disabled to avoid control sequence spam.
"""

__all__ = [
    "RowProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class RowProgressTracker:
    """Progress tracker using tqdm for row validation.

    A disabled tracker (non-TTY or enabled=False) only counts rows.
    """

    def __init__(self, total_rows: int, *, description: str = "Validating rows", enabled: bool = True) -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.rejected = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, valid: bool = True) -> None:
        """Record one validated row."""
        self.processed += 1
        if not valid:
            self.rejected += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if not valid:
                self.pbar.set_postfix(rejected=self.rejected)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
