"""Lint report models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(Enum):
    """ESLint severity levels."""

    WARNING = 1
    ERROR = 2


@dataclass
class LintMessage:
    """A single problem reported for a file."""

    severity: Severity
    message: str
    line: int | None = None
    rule_id: str | None = None

    @classmethod
    def from_eslint(cls, raw: dict[str, Any]) -> "LintMessage":
        # Fatal parse errors carry severity 2 and no ruleId
        severity = Severity.ERROR if raw.get("severity") == 2 else Severity.WARNING
        return cls(
            severity=severity,
            message=raw.get("message", ""),
            line=raw.get("line"),
            rule_id=raw.get("ruleId"),
        )


@dataclass
class FileResult:
    """Lint results for one file."""

    file_path: str
    messages: list[LintMessage] = field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0

    @property
    def has_problems(self) -> bool:
        """Check if the file has any errors or warnings."""
        return self.error_count != 0 or self.warning_count != 0

    @classmethod
    def from_eslint(cls, raw: dict[str, Any]) -> "FileResult":
        return cls(
            file_path=raw["filePath"],
            messages=[LintMessage.from_eslint(m) for m in raw.get("messages", [])],
            error_count=raw.get("errorCount", 0),
            warning_count=raw.get("warningCount", 0),
        )


@dataclass
class LintReport:
    """Complete report for one lint run."""

    results: list[FileResult] = field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0

    @property
    def problem_count(self) -> int:
        """Total number of errors and warnings."""
        return self.error_count + self.warning_count

    @property
    def files_with_problems(self) -> list[FileResult]:
        return [r for r in self.results if r.has_problems]

    @classmethod
    def from_results(cls, results: list[FileResult]) -> "LintReport":
        """Build a report whose totals are the sums of the per-file counts."""
        return cls(
            results=results,
            error_count=sum(r.error_count for r in results),
            warning_count=sum(r.warning_count for r in results),
        )
