"""cspell-config: spell checking wired into JavaScript repositories.

Three facets are checked and fixed independently: a cspell configuration
file, the ``cspell`` dependency in ``package.json`` and a cspell invocation
in ``.husky/pre-commit``.
"""

from __future__ import annotations

import re
from typing import Any

from lineup.kernel.exceptions import ParseError
from lineup.kernel.linting.models import CheckEntry, FixEntry, LintResult
from lineup.kernel.linting.rules import Rule, RuleContext
from lineup.kernel.utils.files import (
    atomic_write,
    detect_newline,
    dump_json,
    error_reason,
    load_json_object,
    read_text,
    write_json,
)

CONFIG_FILE_NAMES = (
    "cspell.json",
    ".cspell.json",
    "cspell.yaml",
    "cspell.yml",
    "cspell.config.js",
    "cspell.config.cjs",
)
DEFAULT_VERSION = "^8.0.0"
DEFAULT_COMMAND = 'pnpm exec cspell --no-progress "**/*.{ts,tsx,js,jsx,md,json}"'
HOOK_MODE = 0o755

# cspell or cspell-cli as a command token, or a "spell" script run by a package manager
_CSPELL_INVOCATION_RE = re.compile(
    r"(?<![\w-])cspell(?:-cli)?(?![\w-])|\b(?:pnpm(?: run)?|npm run|yarn(?: run)?) spell\b"
)

DEFAULT_CONFIG: dict[str, Any] = {
    "$schema": "https://raw.githubusercontent.com/streetsidesoftware/cspell/main/cspell.schema.json",  # noqa: E501
    "version": "0.2",
    "language": "en",
    "words": [],
    "ignorePaths": [
        "node_modules",
        "pnpm-lock.yaml",
        "package-lock.json",
        "yarn.lock",
        "dist",
        "build",
        "coverage",
        ".git",
    ],
}


def invokes_cspell(script: str) -> bool:
    """True when a hook script already runs cspell, whatever flags it passes."""
    return _CSPELL_INVOCATION_RE.search(script) is not None


def has_cspell_dependency(manifest: dict[str, Any]) -> bool:
    for section in ("devDependencies", "dependencies"):
        deps = manifest.get(section)
        if isinstance(deps, dict) and "cspell" in deps:
            return True
    return False


class CspellConfigRule(Rule):
    """Ensures JavaScript repositories have cspell configured, installed and hooked."""

    rule_id = "cspell-config"
    name = "CSpell Configuration"
    description = (
        "Ensures projects have cspell configured for spell checking with appropriate "
        "dependencies and pre-commit hooks"
    )
    default_severity = "warning"
    checks = (
        CheckEntry("cspell-json-exists", "Verify a cspell configuration file exists"),
        CheckEntry("cspell-dependency", "Verify cspell is declared in package.json"),
        CheckEntry(
            "cspell-pre-commit-hook", "Verify the Husky pre-commit hook runs cspell"
        ),
        CheckEntry("package-json-valid", "Verify package.json is a readable JSON object"),
    )
    fixes = (
        FixEntry(
            "create-cspell-json",
            "Create a default cspell.json when no configuration exists",
            ("cspell-json-exists",),
        ),
        FixEntry(
            "add-cspell-dependency",
            "Add cspell to devDependencies in package.json",
            ("cspell-dependency",),
        ),
        FixEntry(
            "add-cspell-pre-commit",
            "Add a cspell invocation to .husky/pre-commit",
            ("cspell-pre-commit-hook",),
        ),
    )

    def check(self, context: RuleContext) -> list[LintResult]:
        manifest = context.path("package.json")
        if not manifest.is_file():
            return []

        results: list[LintResult] = []
        if not self._has_config(context):
            results.append(
                self.result(
                    context,
                    "cspell-json-exists",
                    "Missing cspell configuration file (cspell.json, cspell.yaml, or "
                    "cspell.config.js)",
                    context.root,
                    suggestion="Create a cspell.json file to configure spell checking",
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
        else:
            if not has_cspell_dependency(data):
                results.append(
                    self.result(
                        context,
                        "cspell-dependency",
                        "Missing cspell in devDependencies",
                        manifest,
                        suggestion="Add 'cspell' to devDependencies in package.json",
                    )
                )

        results.extend(self._check_hook(context))
        return results

    def _has_config(self, context: RuleContext) -> bool:
        return any(context.path(name).is_file() for name in CONFIG_FILE_NAMES)

    def _check_hook(self, context: RuleContext) -> list[LintResult]:
        husky_dir = context.path(".husky")
        if not husky_dir.is_dir():
            return []

        hook = husky_dir / "pre-commit"
        if not hook.is_file():
            return [
                self.result(
                    context,
                    "cspell-pre-commit-hook",
                    "Husky is configured but no pre-commit hook exists for cspell",
                    husky_dir,
                    severity="warning",
                    suggestion="Create .husky/pre-commit with cspell check command",
                )
            ]

        try:
            script = read_text(hook)
        except (ParseError, OSError) as e:
            return [
                self.result(
                    context,
                    "cspell-pre-commit-hook",
                    f"Cannot read pre-commit hook: {error_reason(e)}",
                    hook,
                    severity="error",
                )
            ]
        if invokes_cspell(script):
            return []
        return [
            self.result(
                context,
                "cspell-pre-commit-hook",
                "Pre-commit hook exists but does not include cspell check",
                hook,
                severity="warning",
                suggestion="Add 'pnpm exec cspell --no-progress' or similar to pre-commit hook",
            )
        ]

    def fix(self, context: RuleContext) -> int:
        if not context.path("package.json").is_file():
            return 0
        return self.apply_facets(
            context,
            [
                lambda: self._create_config(context),
                lambda: self._add_dependency(context),
                lambda: self._add_pre_commit(context),
            ],
        )

    def _create_config(self, context: RuleContext) -> bool:
        if self._has_config(context):
            return False
        atomic_write(context.path("cspell.json"), dump_json(DEFAULT_CONFIG))
        return True

    def _add_dependency(self, context: RuleContext) -> bool:
        manifest = context.path("package.json")
        original = read_text(manifest)
        data = load_json_object(manifest)
        if has_cspell_dependency(data):
            return False

        dev_deps = data.setdefault("devDependencies", {})
        if not isinstance(dev_deps, dict):
            raise ParseError(manifest, "'devDependencies' is not an object")
        dev_deps["cspell"] = str(context.option("version", DEFAULT_VERSION))
        write_json(manifest, data, original=original)
        return True

    def _add_pre_commit(self, context: RuleContext) -> bool:
        husky_dir = context.path(".husky")
        if not husky_dir.is_dir():
            return False

        command = str(context.option("command", DEFAULT_COMMAND))
        hook = husky_dir / "pre-commit"
        if hook.is_file():
            script = read_text(hook)
            if invokes_cspell(script):
                return False
            nl = detect_newline(script)
            atomic_write(hook, f"{script.rstrip()}{nl}{nl}# Spell check{nl}{command}{nl}")
        else:
            atomic_write(
                hook, f"#!/usr/bin/env sh\n\n# Spell check\n{command}\n", mode=HOOK_MODE
            )
        return True
