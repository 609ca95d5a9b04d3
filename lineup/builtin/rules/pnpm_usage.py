"""pnpm-usage: package-manager consistency in JavaScript repositories.

Command detection and rewriting share :func:`command_pattern`, so a rewrite
only ever touches text that detection reported.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from lineup.kernel.exceptions import ParseError
from lineup.kernel.linting.models import CheckEntry, FixEntry, LintResult
from lineup.kernel.linting.rules import Rule, RuleContext
from lineup.kernel.utils.files import error_reason, load_json_object, read_text, write_json

PREFERRED = "pnpm"
OTHER_MANAGERS = ("npm", "yarn")
DEFAULT_PACKAGE_MANAGER = "pnpm@9.0.0"

LOCK_FILES = {
    "yarn": ("yarn.lock", "yarn-lock-exists"),
    "npm": ("package-lock.json", "package-lock-exists"),
}


@lru_cache(maxsize=8)
def command_pattern(name: str) -> re.Pattern[str]:
    """Match ``name`` as a standalone command token.

    The name must not touch a word character or one of ``@ . / -`` on either
    side, so ``pnpm`` never matches ``npm`` and ``npm-run-all`` is not ``npm``.

    Examples
    --------
    >>> bool(command_pattern("npm").search("pnpm install"))
    False
    >>> bool(command_pattern("npm").search("cd web && npm run build"))
    True
    """
    return re.compile(rf"(?<![\w@./-]){re.escape(name)}(?![\w@./-])")


def uses_command(script: str, name: str) -> bool:
    return command_pattern(name).search(script) is not None


def rewrite_command(script: str, name: str, replacement: str = PREFERRED) -> str:
    return command_pattern(name).sub(replacement, script)


def _is_pnpm(package_manager: Any) -> bool:
    return isinstance(package_manager, str) and package_manager.startswith("pnpm@")


class PnpmUsageRule(Rule):
    """Ensures JavaScript repositories use pnpm rather than npm or yarn."""

    rule_id = "pnpm-usage"
    name = "Pnpm Usage Validation"
    description = "Ensures projects use pnpm instead of npm or yarn for package management"
    default_severity = "error"
    checks = (
        CheckEntry("yarn-lock-exists", "Detect yarn.lock lock files"),
        CheckEntry("package-lock-exists", "Detect package-lock.json lock files"),
        CheckEntry("package-json-valid", "Verify package.json is a readable JSON object"),
        CheckEntry("package-manager-field", "Verify packageManager field specifies pnpm"),
        CheckEntry("pnpm-setup", "Verify pnpm is set up via packageManager or pnpm-lock.yaml"),
        CheckEntry("scripts-use-npm", "Detect npm commands in package.json scripts"),
        CheckEntry("scripts-use-yarn", "Detect yarn commands in package.json scripts"),
        CheckEntry("engines-npm", "Detect engines.npm in package.json"),
        CheckEntry("engines-yarn", "Detect engines.yarn in package.json"),
    )
    fixes = (
        FixEntry(
            "update-package-manager",
            "Set packageManager to a pnpm version",
            ("package-manager-field",),
        ),
        FixEntry(
            "rewrite-script-commands",
            "Replace npm and yarn command tokens in scripts with pnpm",
            ("scripts-use-npm", "scripts-use-yarn"),
        ),
    )

    def check(self, context: RuleContext) -> list[LintResult]:
        manifest = context.path("package.json")
        if not manifest.is_file():
            return []

        results: list[LintResult] = []
        for manager, (lock_name, check_id) in LOCK_FILES.items():
            lock = context.path(lock_name)
            if lock.is_file():
                results.append(
                    self.result(
                        context,
                        check_id,
                        f"Found {lock_name} - project appears to use {manager} instead of pnpm",
                        lock,
                        suggestion=f"Remove {lock_name} and use 'pnpm install' to generate "
                        "pnpm-lock.yaml",
                    )
                )

        try:
            data = load_json_object(manifest)
        except (ParseError, OSError) as e:
            results.append(
                self.result(
                    context,
                    "package-json-valid",
                    f"Invalid package.json: {error_reason(e)}",
                    manifest,
                    severity="error",
                    line=getattr(e, "line", None),
                    suggestion="Fix JSON syntax errors",
                )
            )
            return results

        results.extend(self._check_package_manager(context, data))
        results.extend(self._check_scripts(context, data))
        results.extend(self._check_engines(context, data))
        return results

    def _check_package_manager(
        self, context: RuleContext, data: dict[str, Any]
    ) -> list[LintResult]:
        manifest = context.path("package.json")
        if "packageManager" in data:
            package_manager = data["packageManager"]
            if _is_pnpm(package_manager):
                return []
            return [
                self.result(
                    context,
                    "package-manager-field",
                    f"packageManager is set to '{package_manager}' instead of pnpm",
                    manifest,
                    suggestion="Change packageManager to 'pnpm@<version>' (e.g., 'pnpm@9.0.0')",
                )
            ]
        if context.path("pnpm-lock.yaml").is_file():
            return []
        return [
            self.result(
                context,
                "pnpm-setup",
                "No packageManager field and no pnpm-lock.yaml found",
                manifest,
                severity="warning",
                suggestion="Add 'packageManager' field with pnpm version or run 'pnpm install'",
            )
        ]

    def _check_scripts(self, context: RuleContext, data: dict[str, Any]) -> list[LintResult]:
        scripts = data.get("scripts")
        if not isinstance(scripts, dict):
            return []

        manifest = context.path("package.json")
        results = []
        for script_name, command in scripts.items():
            if not isinstance(command, str):
                continue
            for manager in OTHER_MANAGERS:
                if uses_command(command, manager):
                    results.append(
                        self.result(
                            context,
                            f"scripts-use-{manager}",
                            f"Script '{script_name}' uses {manager} command - consider using pnpm",
                            manifest,
                            severity="warning",
                            suggestion=f"Replace '{manager}' with 'pnpm' in script commands",
                        )
                    )
        return results

    def _check_engines(self, context: RuleContext, data: dict[str, Any]) -> list[LintResult]:
        engines = data.get("engines")
        if not isinstance(engines, dict):
            return []
        return [
            self.result(
                context,
                f"engines-{manager}",
                f"engines.{manager} field found - suggests {manager} dependency",
                context.path("package.json"),
                severity="warning",
                suggestion=f"Consider removing engines.{manager} and adding engines.pnpm instead",
            )
            for manager in OTHER_MANAGERS
            if manager in engines
        ]

    def fix(self, context: RuleContext) -> int:
        if not context.path("package.json").is_file():
            return 0
        return self.apply_facets(
            context,
            [
                lambda: self._update_package_manager(context),
                lambda: self._rewrite_scripts(context),
            ],
        )

    def _update_package_manager(self, context: RuleContext) -> bool:
        manifest = context.path("package.json")
        original = read_text(manifest)
        data = load_json_object(manifest)
        if "packageManager" not in data or _is_pnpm(data["packageManager"]):
            return False
        data["packageManager"] = str(context.option("package_manager", DEFAULT_PACKAGE_MANAGER))
        write_json(manifest, data, original=original)
        return True

    def _rewrite_scripts(self, context: RuleContext) -> int:
        manifest = context.path("package.json")
        original = read_text(manifest)
        data = load_json_object(manifest)
        scripts = data.get("scripts")
        if not isinstance(scripts, dict):
            return 0

        rewritten = 0
        for script_name, command in scripts.items():
            if not isinstance(command, str):
                continue
            for manager in OTHER_MANAGERS:
                if uses_command(command, manager):
                    command = rewrite_command(command, manager)
                    rewritten += 1
            scripts[script_name] = command

        if rewritten:
            write_json(manifest, data, original=original)
        return rewritten
