"""Rule contract for lineup.

A rule owns one configuration artifact of a repository. ``check`` is
read-only and reports findings; ``fix`` performs the minimal mutation that
resolves them and returns how many facets it repaired. Both receive a
:class:`RuleContext` bound to a single repository root.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, ClassVar

from lineup.kernel.exceptions import (
    FixNotSupportedError,
    ParseError,
    PartialFixError,
    ValidationError,
)
from lineup.kernel.linting.models import CheckEntry, FixEntry, LintResult, RuleInfo, Severity
from lineup.kernel.logging import get_logger

logger = get_logger(__name__)

# A facet fixer returns how many repairs it made; True counts as one
FacetFix = Callable[[], int]


@dataclass(frozen=True, slots=True)
class RuleContext:
    """Per-repository state handed to ``check`` and ``fix``."""

    root: Path
    options: Mapping[str, Any] = field(default_factory=dict)
    severity: Severity = "error"

    def path(self, *parts: str) -> Path:
        """Build a path beneath the repository root.

        Raises
        ------
        ValidationError
            If a part is absolute or climbs out of the root with ``..``
        """
        for part in parts:
            pure = PurePath(part)
            if pure.is_absolute() or ".." in pure.parts:
                raise ValidationError("path", "must stay inside the repository root", part)
        return self.root.joinpath(*parts)

    def option(self, name: str, default: Any) -> Any:
        """Rule option ``name`` from configuration, or ``default``."""
        return self.options.get(name, default)


class Rule(ABC):
    """Base class for built-in rules.

    Subclasses set the class attributes and implement :meth:`check`; fixable
    rules declare ``fixes`` and override :meth:`fix`.
    """

    rule_id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str]
    default_severity: ClassVar[Severity]
    checks: ClassVar[tuple[CheckEntry, ...]] = ()
    fixes: ClassVar[tuple[FixEntry, ...]] = ()

    @abstractmethod
    def check(self, context: RuleContext) -> list[LintResult]:
        """Report findings for one repository without touching the filesystem."""

    def can_fix(self) -> bool:
        return bool(self.fixes)

    def fix(self, context: RuleContext) -> int:
        """Repair what can be repaired safely and return the number of facets fixed.

        Raises
        ------
        FixNotSupportedError
            If the rule is check-only
        PartialFixError
            If some facets were fixed and others failed
        """
        raise FixNotSupportedError(self.rule_id)

    def info(self) -> RuleInfo:
        return RuleInfo(
            id=self.rule_id,
            name=self.name,
            description=self.description,
            default_severity=self.default_severity,
            can_fix=self.can_fix(),
            checks=self.checks,
            fixes=self.fixes,
        )

    def result(
        self,
        context: RuleContext,
        check_id: str,
        message: str,
        path: Path,
        *,
        severity: Severity | None = None,
        line: int | None = None,
        suggestion: str | None = None,
    ) -> LintResult:
        """Build a finding, defaulting to the context's effective severity."""
        return LintResult(
            rule_id=self.rule_id,
            check_id=check_id,
            severity=severity or context.severity,
            message=message,
            path=str(path),
            line=line,
            suggestion=suggestion,
        )

    def apply_facets(self, context: RuleContext, facets: Iterable[FacetFix]) -> int:
        """Run independent facet fixers in order and total the repairs they report.

        A facet raising :class:`ParseError` found a file it cannot interpret;
        it is skipped and the residual check reports the file. ``OSError``
        from a facet does not stop the remaining facets.

        Raises
        ------
        PartialFixError
            If at least one facet failed with ``OSError``
        """
        fixed = 0
        failures: list[Exception] = []
        for facet in facets:
            try:
                fixed += int(facet())
            except ParseError as e:
                logger.debug(
                    "{rule}: leaving {path} untouched ({reason})",
                    rule=self.rule_id,
                    path=e.path,
                    reason=e.reason,
                )
            except OSError as e:
                logger.warning(
                    "{rule}: fix failed in {root}: {error}",
                    rule=self.rule_id,
                    root=context.root,
                    error=e,
                )
                failures.append(e)

        if failures:
            raise PartialFixError(self.rule_id, fixed, failures)
        return fixed

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rule_id={self.rule_id!r})"
