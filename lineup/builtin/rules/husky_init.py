"""husky-init: pre-commit hook scaffolding for JavaScript and Rust repositories.

The ecosystem is picked from the root manifests: ``package.json`` means
Husky, a lone ``Cargo.toml`` means husky-rs, and a repository with neither
is outside this rule. Each ecosystem is a :class:`HuskyStrategy`.
"""

from __future__ import annotations

import re
import tomllib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from lineup.kernel.exceptions import ParseError
from lineup.kernel.linting.models import CheckEntry, FixEntry, LintResult
from lineup.kernel.linting.rules import FacetFix, Rule, RuleContext
from lineup.kernel.utils.files import (
    atomic_write,
    detect_newline,
    error_reason,
    load_json_object,
    read_text,
    write_json,
)

HUSKY_DIR = ".husky"
GIT_HOOK_NAMES = frozenset({"pre-commit", "commit-msg", "pre-push", "post-merge", "post-checkout"})
HOOK_MODE = 0o755
SHEBANG = "#!/usr/bin/env sh"

_DEV_DEPENDENCIES_HEADER_RE = re.compile(
    r"^\[dev-dependencies\][ \t]*(#[^\r\n]*)?\r?$", re.MULTILINE
)


def has_git_hooks(husky_dir: Path) -> bool:
    """True when ``husky_dir`` holds at least one common git hook script."""
    try:
        return any(child.name in GIT_HOOK_NAMES for child in husky_dir.iterdir())
    except OSError:
        return False


def insert_dev_dependency(text: str, name: str, version: str) -> str:
    """Add ``name = "version"`` under ``[dev-dependencies]`` by text insertion.

    The table is appended when absent; nothing else in the file moves, and the
    new lines use the file's own line ending.
    """
    nl = detect_newline(text)
    entry = f'{name} = "{version}"{nl}'
    header = _DEV_DEPENDENCIES_HEADER_RE.search(text)
    if header is None:
        body = text.rstrip("\r\n")
        separator = nl * 2 if body else ""
        return f"{body}{separator}[dev-dependencies]{nl}{entry}"

    insert_at = header.end()
    if insert_at < len(text) and text[insert_at] == "\n":
        insert_at += 1
        return text[:insert_at] + entry + text[insert_at:]
    # header on the last line without a newline
    return text[:insert_at] + nl + entry


class HuskyStrategy(ABC):
    """Checks and facet fixers for one package ecosystem."""

    tool: ClassVar[str]
    test_command: ClassVar[str]

    def __init__(self, rule: Rule) -> None:
        self.rule = rule

    def check(self, context: RuleContext) -> list[LintResult]:
        husky_dir = context.path(HUSKY_DIR)
        results: list[LintResult] = []
        if not husky_dir.is_dir():
            results.append(
                self.rule.result(
                    context,
                    "husky-dir-exists",
                    f"Missing .husky directory - {self.tool} is not initialized",
                    context.root,
                    suggestion=f"Run 'lineup lint --fix' to scaffold {self.tool}",
                )
            )

        results.extend(self.check_manifest(context))

        if husky_dir.is_dir() and not has_git_hooks(husky_dir):
            results.append(
                self.rule.result(
                    context,
                    "git-hooks-present",
                    "No git hooks found in .husky directory",
                    husky_dir,
                    severity="info",
                    suggestion=f"Add a .husky/pre-commit script running '{self.test_command}'",
                )
            )
        return results

    def facets(self, context: RuleContext) -> list[FacetFix]:
        return [
            lambda: self.create_husky_dir(context),
            lambda: self.create_pre_commit_hook(context),
            lambda: self.fix_manifest(context),
        ]

    def create_husky_dir(self, context: RuleContext) -> bool:
        husky_dir = context.path(HUSKY_DIR)
        if husky_dir.is_dir():
            return False
        husky_dir.mkdir()
        return True

    def create_pre_commit_hook(self, context: RuleContext) -> bool:
        husky_dir = context.path(HUSKY_DIR)
        if not husky_dir.is_dir() or has_git_hooks(husky_dir):
            return False
        commands = self.pre_commit_commands(context)
        body = "\n".join(commands) if commands else "# Add pre-commit checks here"
        atomic_write(husky_dir / "pre-commit", f"{SHEBANG}\n\n{body}\n", mode=HOOK_MODE)
        return True

    @abstractmethod
    def check_manifest(self, context: RuleContext) -> list[LintResult]: ...

    @abstractmethod
    def fix_manifest(self, context: RuleContext) -> bool: ...

    @abstractmethod
    def pre_commit_commands(self, context: RuleContext) -> list[str]: ...


class JavaScriptHusky(HuskyStrategy):
    tool = "Husky"
    test_command = "pnpm test"

    def check_manifest(self, context: RuleContext) -> list[LintResult]:
        manifest = context.path("package.json")
        try:
            data = load_json_object(manifest)
        except (ParseError, OSError) as e:
            return [
                self.rule.result(
                    context,
                    "package-json-valid",
                    f"Invalid package.json: {error_reason(e)}",
                    manifest,
                    severity="error",
                    line=getattr(e, "line", None),
                    suggestion="Fix package.json; it is not changed automatically",
                )
            ]

        scripts = data.get("scripts", {})
        prepare = scripts.get("prepare") if isinstance(scripts, dict) else None
        if isinstance(prepare, str) and "husky" in prepare:
            return []
        return [
            self.rule.result(
                context,
                "prepare-script",
                "Missing 'prepare' script with Husky in package.json",
                manifest,
                suggestion="Add '\"prepare\": \"husky\"' to scripts in package.json",
            )
        ]

    def fix_manifest(self, context: RuleContext) -> bool:
        manifest = context.path("package.json")
        original = read_text(manifest)
        data = load_json_object(manifest)
        scripts = data.setdefault("scripts", {})
        if not isinstance(scripts, dict):
            raise ParseError(manifest, "'scripts' is not an object")

        prepare = scripts.get("prepare")
        if isinstance(prepare, str) and "husky" in prepare:
            return False
        if isinstance(prepare, str) and prepare.strip():
            scripts["prepare"] = f"{prepare} && husky"
        else:
            scripts["prepare"] = "husky"
        write_json(manifest, data, original=original)
        return True

    def pre_commit_commands(self, context: RuleContext) -> list[str]:
        data = load_json_object(context.path("package.json"))
        scripts = data.get("scripts")
        if isinstance(scripts, dict) and "test" in scripts:
            return [self.test_command]
        return []


class RustHusky(HuskyStrategy):
    tool = "husky-rs"
    test_command = "cargo test"

    def _load_manifest(self, manifest: Path) -> tuple[str, dict]:
        text = read_text(manifest)
        try:
            return text, tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ParseError(manifest, str(e)) from e

    def check_manifest(self, context: RuleContext) -> list[LintResult]:
        manifest = context.path("Cargo.toml")
        try:
            _, data = self._load_manifest(manifest)
        except (ParseError, OSError) as e:
            return [
                self.rule.result(
                    context,
                    "cargo-toml-valid",
                    f"Invalid Cargo.toml: {error_reason(e)}",
                    manifest,
                    severity="error",
                    suggestion="Fix Cargo.toml; it is not changed automatically",
                )
            ]

        dev_deps = data.get("dev-dependencies", {})
        if isinstance(dev_deps, dict) and "husky-rs" in dev_deps:
            return []
        return [
            self.rule.result(
                context,
                "husky-rs-dependency",
                "Missing husky-rs in dev-dependencies",
                manifest,
                suggestion="Add 'husky-rs = \"<version>\"' to [dev-dependencies] in Cargo.toml",
            )
        ]

    def fix_manifest(self, context: RuleContext) -> bool:
        manifest = context.path("Cargo.toml")
        text, data = self._load_manifest(manifest)
        dev_deps = data.get("dev-dependencies", {})
        if isinstance(dev_deps, dict) and "husky-rs" in dev_deps:
            return False

        version = str(context.option("husky_rs_version", "0.1"))
        updated = insert_dev_dependency(text, "husky-rs", version)
        try:
            tomllib.loads(updated)
        except tomllib.TOMLDecodeError as e:
            # e.g. dev-dependencies declared with dotted keys
            raise ParseError(manifest, f"cannot insert husky-rs safely: {e}") from e
        atomic_write(manifest, updated)
        return True

    def pre_commit_commands(self, context: RuleContext) -> list[str]:
        return [self.test_command]


class HuskyInitRule(Rule):
    """Ensures repositories have Husky (JavaScript) or husky-rs (Rust) scaffolding."""

    rule_id = "husky-init"
    name = "Husky Initialization"
    description = (
        "Ensures git repositories have Husky (JS) or husky-rs (Rust) initialized for git hooks"
    )
    default_severity = "warning"
    checks = (
        CheckEntry("husky-dir-exists", "Verify .husky directory exists"),
        CheckEntry("package-json-valid", "Verify package.json is a readable JSON object"),
        CheckEntry("prepare-script", "Verify package.json has a prepare script running husky"),
        CheckEntry("cargo-toml-valid", "Verify Cargo.toml is valid TOML"),
        CheckEntry("husky-rs-dependency", "Verify husky-rs is declared in [dev-dependencies]"),
        CheckEntry("git-hooks-present", "Verify .husky contains at least one git hook"),
    )
    fixes = (
        FixEntry("create-husky-dir", "Create the .husky directory", ("husky-dir-exists",)),
        FixEntry(
            "add-prepare-script", "Add 'husky' to the prepare script", ("prepare-script",)
        ),
        FixEntry(
            "add-husky-rs-dependency",
            "Add husky-rs to [dev-dependencies] in Cargo.toml",
            ("husky-rs-dependency",),
        ),
        FixEntry(
            "create-pre-commit-hook",
            "Create an executable .husky/pre-commit running the test suite",
            ("git-hooks-present",),
        ),
    )

    def strategy(self, context: RuleContext) -> HuskyStrategy | None:
        """Strategy for the repository's ecosystem, or None when it has no manifest."""
        if context.path("package.json").is_file():
            return JavaScriptHusky(self)
        if context.path("Cargo.toml").is_file():
            return RustHusky(self)
        return None

    def check(self, context: RuleContext) -> list[LintResult]:
        strategy = self.strategy(context)
        if strategy is None:
            return []
        return strategy.check(context)

    def fix(self, context: RuleContext) -> int:
        strategy = self.strategy(context)
        if strategy is None:
            return 0
        return self.apply_facets(context, strategy.facets(context))
