"""claude-settings-hooks: required PreToolUse hooks in ``.claude/settings.json``.

The fixer merges the required Bash guard into whatever the user already
has. Existing ``PreToolUse`` entries are read through typed models only to
find their matchers; the entries themselves are written back exactly as they
were loaded.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from lineup.kernel.exceptions import ParseError
from lineup.kernel.linting.models import CheckEntry, FixEntry, LintResult
from lineup.kernel.linting.rules import Rule, RuleContext
from lineup.kernel.utils.files import (
    atomic_write,
    dump_json,
    error_reason,
    load_json_object,
    read_text,
    write_json,
)

SETTINGS_DIR = ".claude"
SETTINGS_FILE = "settings.json"
HOOK_EVENT = "PreToolUse"
BASH_MATCHER = "Bash"

NO_VERIFY_GUARD = (
    "INPUT=$(cat); if echo \"$INPUT\" | grep -q 'git push' && "
    "echo \"$INPUT\" | grep -qE -- '--no-verify|-n[^a-z]'; "
    "then echo 'BLOCKED: --no-verify is not allowed on git push' >&2; exit 2; fi"
)


def matcher_covers(matcher: str | None, tool: str) -> bool:
    """True when ``matcher`` is ``tool`` or one of its ``|`` alternatives is."""
    if matcher is None:
        return False
    return any(alt.strip() == tool for alt in matcher.split("|"))


class HookCommand(BaseModel):
    """One command inside a matcher group."""

    model_config = ConfigDict(extra="allow")

    type: str = "command"
    command: str | None = None


class HookMatcherGroup(BaseModel):
    """A ``PreToolUse`` entry: a tool matcher and the hooks it triggers."""

    model_config = ConfigDict(extra="allow")

    matcher: str | None = None
    hooks: list[HookCommand] = Field(default_factory=list)

    def covers(self, tool: str) -> bool:
        return matcher_covers(self.matcher, tool)


REQUIRED_GROUP = HookMatcherGroup(
    matcher=BASH_MATCHER, hooks=[HookCommand(type="command", command=NO_VERIFY_GUARD)]
)


def default_settings() -> dict[str, Any]:
    return {"hooks": {HOOK_EVENT: [REQUIRED_GROUP.model_dump(exclude_none=True)]}}


def parse_groups(entries: list[Any]) -> list[HookMatcherGroup]:
    """Typed view of ``PreToolUse`` entries; entries of another shape are ignored."""
    groups = []
    for entry in entries:
        try:
            groups.append(HookMatcherGroup.model_validate(entry))
        except PydanticValidationError:
            continue
    return groups


def merge_required_hook(settings: dict[str, Any]) -> bool:
    """Add ``hooks.PreToolUse`` and the Bash guard to ``settings`` in place.

    Returns True when ``settings`` changed. Unrelated keys and existing
    entries are left as they are.

    Raises
    ------
    ValueError
        If ``hooks`` or ``hooks.PreToolUse`` exists with the wrong type
    """
    changed = False
    hooks = settings.get("hooks")
    if hooks is None:
        hooks = settings["hooks"] = {}
        changed = True
    elif not isinstance(hooks, dict):
        raise ValueError("'hooks' is not an object")

    entries = hooks.get(HOOK_EVENT)
    if entries is None:
        entries = hooks[HOOK_EVENT] = []
        changed = True
    elif not isinstance(entries, list):
        raise ValueError(f"'hooks.{HOOK_EVENT}' is not an array")

    # any Bash group counts, whatever its commands
    if not any(group.covers(BASH_MATCHER) for group in parse_groups(entries)):
        entries.append(REQUIRED_GROUP.model_dump(exclude_none=True))
        changed = True
    return changed


class ClaudeSettingsRule(Rule):
    """Ensures every repository blocks ``git push --no-verify`` from the assistant."""

    rule_id = "claude-settings-hooks"
    name = "Claude Settings Hooks"
    description = (
        "Ensures all git repositories have .claude/settings.json with required hooks configuration"
    )
    default_severity = "error"
    checks = (
        CheckEntry("claude-dir-exists", "Verify .claude directory exists in git repositories"),
        CheckEntry(
            "settings-file-exists", "Verify settings.json file exists in .claude directory"
        ),
        CheckEntry("settings-json-valid", "Verify settings.json is a readable JSON object"),
        CheckEntry(
            "hooks-object-exists", "Verify 'hooks' configuration object exists in settings.json"
        ),
        CheckEntry("pre-tool-use-exists", "Verify PreToolUse hook array is configured"),
        CheckEntry(
            "bash-matcher-exists",
            "Verify Bash matcher hook is present to prevent dangerous commands",
        ),
    )
    fixes = (
        FixEntry(
            "create-settings",
            "Create .claude/settings.json with the default hooks configuration",
            ("claude-dir-exists", "settings-file-exists"),
        ),
        FixEntry(
            "merge-hooks",
            "Merge the required Bash hook into an existing settings.json",
            ("hooks-object-exists", "pre-tool-use-exists", "bash-matcher-exists"),
        ),
    )

    def check(self, context: RuleContext) -> list[LintResult]:
        claude_dir = context.path(SETTINGS_DIR)
        settings_path = context.path(SETTINGS_DIR, SETTINGS_FILE)

        if not claude_dir.is_dir():
            return [
                self.result(
                    context,
                    "claude-dir-exists",
                    "Missing .claude directory in git repository",
                    context.root,
                    suggestion="Create .claude/settings.json with required hooks configuration",
                )
            ]
        if not settings_path.is_file():
            return [
                self.result(
                    context,
                    "settings-file-exists",
                    "Missing settings.json in .claude directory",
                    claude_dir,
                    suggestion="Create settings.json with required hooks configuration",
                )
            ]
        return self._check_content(context, settings_path)

    def _check_content(self, context: RuleContext, path: Path) -> list[LintResult]:
        try:
            settings = load_json_object(path)
        except ParseError as e:
            return [
                self.result(
                    context,
                    "settings-json-valid",
                    f"Invalid JSON: {e.reason}",
                    path,
                    severity="error",
                    line=e.line,
                    suggestion="Fix JSON syntax errors",
                )
            ]
        except OSError as e:
            return [
                self.result(
                    context,
                    "settings-json-valid",
                    f"Cannot read file: {error_reason(e)}",
                    path,
                    severity="error",
                )
            ]

        hooks = settings.get("hooks")
        if hooks is None:
            return [
                self.result(
                    context,
                    "hooks-object-exists",
                    "Missing 'hooks' configuration object",
                    path,
                    severity="error",
                    suggestion="Add 'hooks' object with required hook configurations",
                )
            ]
        if not isinstance(hooks, dict):
            return [
                self.result(
                    context,
                    "hooks-object-exists",
                    "'hooks' must be an object",
                    path,
                    severity="error",
                    suggestion="Replace 'hooks' with an object; it is not changed automatically",
                )
            ]

        entries = hooks.get(HOOK_EVENT)
        if entries is None:
            return [
                self.result(
                    context,
                    "pre-tool-use-exists",
                    "Missing PreToolUse hook configuration",
                    path,
                    severity="warning",
                    suggestion="Add PreToolUse hooks to validate tool usage",
                )
            ]
        if not isinstance(entries, list):
            return [
                self.result(
                    context,
                    "pre-tool-use-exists",
                    "'hooks.PreToolUse' must be an array",
                    path,
                    severity="error",
                    suggestion="Replace 'hooks.PreToolUse' with an array of matcher entries",
                )
            ]

        if not any(group.covers(BASH_MATCHER) for group in parse_groups(entries)):
            return [
                self.result(
                    context,
                    "bash-matcher-exists",
                    "PreToolUse hooks missing Bash matcher",
                    path,
                    severity="warning",
                    suggestion="Add a Bash matcher hook to prevent dangerous commands",
                )
            ]
        return []

    def fix(self, context: RuleContext) -> int:
        return self.apply_facets(context, [lambda: self._fix_settings(context)])

    def _fix_settings(self, context: RuleContext) -> bool:
        settings_path = context.path(SETTINGS_DIR, SETTINGS_FILE)
        if not settings_path.exists():
            atomic_write(settings_path, dump_json(default_settings()))
            return True

        original = read_text(settings_path)
        settings = load_json_object(settings_path)
        try:
            changed = merge_required_hook(settings)
        except ValueError as e:
            raise ParseError(settings_path, str(e)) from e
        if changed:
            write_json(settings_path, settings, original=original)
        return changed
