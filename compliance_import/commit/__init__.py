"""Batch commit collaborators (HTTP endpoint / dry run)."""

from .client import (
    BatchCommitter,
    CommitError,
    CommitMetrics,
    CommitResponse,
    DryRunCommitter,
    HttpBatchCommitter,
    ServerRowError,
    parse_commit_response,
)

__all__ = [
    "BatchCommitter",
    "CommitError",
    "CommitMetrics",
    "CommitResponse",
    "DryRunCommitter",
    "HttpBatchCommitter",
    "ServerRowError",
    "parse_commit_response",
]
