"""Rule execution engine.

Discovers repositories under a root path and runs every enabled rule
against each of them, in check or fix mode, merging the findings into one
:class:`LintReport`.

Repositories are processed concurrently on a thread pool; rules inside a
repository always run sequentially in registry order because several of
them rewrite the same manifest.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from lineup.kernel.config.models import LineupConfig
from lineup.kernel.exceptions import FixNotSupportedError, PartialFixError
from lineup.kernel.linting.models import LintReport, LintResult, RuleInfo
from lineup.kernel.linting.registry import RuleRegistry, default_registry
from lineup.kernel.linting.rules import Rule, RuleContext
from lineup.kernel.locator import DEFAULT_EXCLUDED_DIRS, RepositoryLocator
from lineup.kernel.logging import get_logger

logger = get_logger(__name__)

Mode = Literal["check", "fix"]

ENGINE_RULE_ID = "lineup-engine"


@dataclass(slots=True)
class _RepositoryOutcome:
    results: list[LintResult] = field(default_factory=list)
    fixed: int = 0


class Engine:
    """Runs the rule set over every repository found under a root path.

    Examples
    --------
    >>> engine = Engine()
    >>> [info.id for info in engine.list_rules()]
    ['claude-settings-hooks', 'husky-init', 'cspell-config', 'pnpm-usage']
    """

    def __init__(
        self,
        config: LineupConfig | None = None,
        registry: RuleRegistry | None = None,
        locator: RepositoryLocator | None = None,
    ) -> None:
        self.config = config or LineupConfig()
        self.registry = registry if registry is not None else default_registry()
        self.locator = locator or RepositoryLocator(
            excluded=DEFAULT_EXCLUDED_DIRS | frozenset(self.config.exclude)
        )

    def list_rules(self) -> list[RuleInfo]:
        """Metadata of every registered rule; touches no files."""
        return self.registry.infos()

    def lint(self, path: str | Path) -> LintReport:
        """Check every repository under ``path`` without changing anything."""
        return self.run(path, mode="check")

    def fix_run(self, path: str | Path) -> LintReport:
        """Fix every repository under ``path`` and report residual findings."""
        return self.run(path, mode="fix")

    def run(self, path: str | Path, mode: Mode = "check") -> LintReport:
        """Run all enabled rules over the repositories under ``path``.

        Raises
        ------
        NotFoundError
            If ``path`` does not exist or is not a directory
        ValueError
            If ``mode`` is not "check" or "fix"
        """
        if mode not in ("check", "fix"):
            raise ValueError(f"mode must be 'check' or 'fix', got {mode!r}")

        report = LintReport()

        def record_unreadable(directory: Path, exc: OSError) -> None:
            report.add(
                LintResult(
                    rule_id=ENGINE_RULE_ID,
                    check_id="directory-unreadable",
                    severity="warning",
                    message=f"Cannot read directory: {exc.strerror or exc}",
                    path=str(directory),
                )
            )

        repositories = list(self.locator.locate(path, on_error=record_unreadable))
        logger.debug(
            "Found {count} repositories under {root}", count=len(repositories), root=path
        )
        if not repositories:
            return report

        rules = [rule for rule in self.registry if self.config.rule(rule.rule_id).enabled]
        max_workers = min(self.config.max_workers or os.cpu_count() or 1, len(repositories))

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lineup") as pool:
            outcomes = pool.map(
                lambda repo: self._run_repository(repo, rules, mode), repositories
            )
            for outcome in outcomes:
                report.extend(outcome.results)
                report.add_fixed(outcome.fixed)

        if mode == "fix":
            logger.info(
                "Applied {fixed} fix(es) under {root}", fixed=report.fixed_count, root=path
            )
        return report

    def _context(self, rule: Rule, repository: Path) -> RuleContext:
        rule_config = self.config.rule(rule.rule_id)
        return RuleContext(
            root=repository,
            options=rule_config.options,
            severity=rule_config.severity or rule.default_severity,
        )

    def _run_repository(
        self, repository: Path, rules: list[Rule], mode: Mode
    ) -> _RepositoryOutcome:
        outcome = _RepositoryOutcome()
        for rule in rules:
            context = self._context(rule, repository)
            if mode == "fix" and rule.can_fix():
                self._fix(rule, context, outcome)
            try:
                outcome.results.extend(rule.check(context))
            except Exception as e:
                logger.opt(exception=e).error(
                    "Rule {rule} failed to check {repo}", rule=rule.rule_id, repo=repository
                )
                outcome.results.append(self._failure(rule, repository, "check", e))
        return outcome

    def _fix(self, rule: Rule, context: RuleContext, outcome: _RepositoryOutcome) -> None:
        try:
            fixed = rule.fix(context)
        except FixNotSupportedError:
            return
        except PartialFixError as e:
            outcome.fixed += e.fixed
            outcome.results.append(
                LintResult(
                    rule_id=rule.rule_id,
                    check_id="fix-failed",
                    severity="error",
                    message=str(e),
                    path=str(context.root),
                )
            )
            return
        except Exception as e:
            logger.opt(exception=e).error(
                "Rule {rule} failed to fix {repo}", rule=rule.rule_id, repo=context.root
            )
            outcome.results.append(self._failure(rule, context.root, "fix", e))
            return

        if fixed:
            logger.info(
                "{rule}: fixed {count} issue(s) in {repo}",
                rule=rule.rule_id,
                count=fixed,
                repo=context.root,
            )
        outcome.fixed += fixed

    @staticmethod
    def _failure(rule: Rule, repository: Path, stage: str, exc: Exception) -> LintResult:
        return LintResult(
            rule_id=rule.rule_id,
            check_id="rule-failed",
            severity="error",
            message=f"Rule '{rule.rule_id}' failed during {stage} at {repository}: "
            f"{type(exc).__name__}: {exc}",
            path=str(repository),
        )
