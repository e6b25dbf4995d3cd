"""Error kinds surfaced by the talent engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from talent_engine.cv_import.merge import CommitReport


class TalentEngineError(Exception):
    """Base class for all engine errors."""


class InputError(TalentEngineError, ValueError):
    """Malformed caller input. Raised before any fetch; never retried."""


class CollaboratorError(TalentEngineError):
    """A store or parser call failed.

    Distinct from "no data": an empty result set is returned normally,
    never raised. The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}" if message else f"{operation} failed")


class SearchCancelled(TalentEngineError):
    """The caller cancelled the request or its deadline expired."""


class PartialCommitError(TalentEngineError):
    """One or more entity kinds failed to commit during a CV merge.

    Kinds listed in ``report.committed`` are already persisted.
    """

    def __init__(self, report: CommitReport):
        self.report = report
        failed = ", ".join(sorted(report.failed))
        super().__init__(f"CV import failed for: {failed}")
