"""Core models for the lineup linting engine.

``LintReport.to_dict()`` is the JSON contract consumed by the CLI and by
anything scripting against ``lineup lint --json``; its field names are fixed.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal

Severity = Literal["error", "warning", "info"]

SEVERITIES: tuple[Severity, ...] = ("error", "warning", "info")


@dataclass(frozen=True, slots=True)
class LintResult:
    """A single finding produced by a rule check."""

    rule_id: str
    check_id: str
    severity: Severity
    message: str
    path: str
    line: int | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase field names of the report format."""
        return {
            "ruleId": self.rule_id,
            "checkId": self.check_id,
            "severity": self.severity,
            "message": self.message,
            "path": self.path,
            "line": self.line,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True, slots=True)
class CheckEntry:
    """One independently reportable assertion of a rule."""

    id: str
    description: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "description": self.description}


@dataclass(frozen=True, slots=True)
class FixEntry:
    """One repair a rule can apply, and the check ids it resolves."""

    id: str
    description: str
    resolves: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "description": self.description, "resolves": list(self.resolves)}


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Static metadata describing a rule, used for listing."""

    id: str
    name: str
    description: str
    default_severity: Severity
    can_fix: bool
    checks: tuple[CheckEntry, ...] = ()
    fixes: tuple[FixEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase field names."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "defaultSeverity": self.default_severity,
            "canFix": self.can_fix,
            "checks": [c.to_dict() for c in self.checks],
            "fixes": [f.to_dict() for f in self.fixes],
        }


class LintReport:
    """Aggregated findings from running rules against one or more repositories.

    Severity counts are always derived from ``results``. ``fixed_count`` is
    independent: it counts repairs applied during a fix run, and a repaired
    finding does not appear in ``results`` at all.
    """

    __slots__ = ("_results", "_fixed_count")

    def __init__(self, results: Iterable[LintResult] = (), fixed_count: int = 0) -> None:
        """Initialize a report, optionally pre-populated."""
        self._results: list[LintResult] = list(results)
        self._fixed_count = fixed_count

    def add(self, result: LintResult) -> None:
        """Append a finding."""
        self._results.append(result)

    def extend(self, results: Iterable[LintResult]) -> None:
        """Append findings in order."""
        self._results.extend(results)

    def add_fixed(self, count: int) -> None:
        """Record ``count`` repairs applied during this run."""
        if count < 0:
            raise ValueError(f"fixed count cannot be negative (got {count})")
        self._fixed_count += count

    @property
    def results(self) -> tuple[LintResult, ...]:
        """All findings, in engine order."""
        return tuple(self._results)

    @property
    def fixed_count(self) -> int:
        """Number of repairs applied in this run."""
        return self._fixed_count

    @property
    def errors(self) -> list[LintResult]:
        """Findings with severity 'error'."""
        return [r for r in self._results if r.severity == "error"]

    @property
    def warnings(self) -> list[LintResult]:
        """Findings with severity 'warning'."""
        return [r for r in self._results if r.severity == "warning"]

    @property
    def info(self) -> list[LintResult]:
        """Findings with severity 'info'."""
        return [r for r in self._results if r.severity == "info"]

    @property
    def error_count(self) -> int:
        return sum(1 for r in self._results if r.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self._results if r.severity == "warning")

    @property
    def info_count(self) -> int:
        return sum(1 for r in self._results if r.severity == "info")

    @property
    def is_clean(self) -> bool:
        """True if no findings were produced."""
        return len(self._results) == 0

    @property
    def has_errors(self) -> bool:
        """True if any error-level findings exist."""
        return any(r.severity == "error" for r in self._results)

    def for_rule(self, rule_id: str) -> list[LintResult]:
        """Findings produced by one rule."""
        return [r for r in self._results if r.rule_id == rule_id]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report JSON shape."""
        return {
            "results": [r.to_dict() for r in self._results],
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "infoCount": self.info_count,
            "fixedCount": self.fixed_count,
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __len__(self) -> int:
        return len(self._results)

    def __repr__(self) -> str:
        return (
            f"LintReport(errors={self.error_count}, warnings={self.warning_count}, "
            f"info={self.info_count}, fixed={self.fixed_count})"
        )
