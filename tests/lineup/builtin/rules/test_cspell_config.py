"""Tests for the cspell-config rule."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from lineup.builtin.rules.cspell_config import (
    DEFAULT_COMMAND,
    CspellConfigRule,
    has_cspell_dependency,
    invokes_cspell,
)
from lineup.kernel.linting.rules import RuleContext


@pytest.fixture
def rule() -> CspellConfigRule:
    return CspellConfigRule()


def _ctx(repo: Path, **options: str) -> RuleContext:
    return RuleContext(root=repo, options=options, severity="warning")


def _manifest(repo: Path) -> dict:
    return json.loads((repo / "package.json").read_text())


class TestInvokesCspell:
    @pytest.mark.parametrize(
        "script",
        [
            "pnpm exec cspell --no-progress .",
            "npx cspell lint '**/*.md'",
            "cspell",
            "npx cspell-cli lint .",
            "pnpm spell",
            "pnpm run spell",
            "npm run spell",
            "yarn spell",
        ],
    )
    def test_detected(self, script: str) -> None:
        assert invokes_cspell(script)

    @pytest.mark.parametrize(
        "script",
        ["pnpm test", "eslint --fix", "cspell-cli-wrapper", "run-cspell", "pnpm spelling"],
    )
    def test_not_detected(self, script: str) -> None:
        assert not invokes_cspell(script)


class TestHasDependency:
    def test_either_section(self) -> None:
        assert has_cspell_dependency({"devDependencies": {"cspell": "^8"}})
        assert has_cspell_dependency({"dependencies": {"cspell": "^8"}})
        assert not has_cspell_dependency({"devDependencies": {"@cspell/dict-en": "1"}})
        assert not has_cspell_dependency({"devDependencies": ["cspell"]})


class TestCheck:
    def test_not_a_javascript_repository(self, rule, make_repo) -> None:
        repo = make_repo(files={"Cargo.toml": "[package]\n"})
        assert rule.check(_ctx(repo)) == []

    def test_everything_missing(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {"name": "web"}})
        findings = rule.check(_ctx(repo))
        assert [f.check_id for f in findings] == ["cspell-json-exists", "cspell-dependency"]
        assert findings[0].path == str(repo)

    @pytest.mark.parametrize("config_name", ["cspell.json", ".cspell.json", "cspell.config.cjs"])
    def test_any_config_name_counts(self, rule, make_repo, config_name: str) -> None:
        repo = make_repo(
            files={"package.json": {"devDependencies": {"cspell": "^8"}}, config_name: "{}"}
        )
        assert rule.check(_ctx(repo)) == []

    def test_husky_without_pre_commit(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {}, "cspell.json": "{}"})
        (repo / ".husky").mkdir()
        ids = [f.check_id for f in rule.check(_ctx(repo))]
        assert ids == ["cspell-dependency", "cspell-pre-commit-hook"]

    def test_pre_commit_without_cspell(self, rule, make_repo) -> None:
        repo = make_repo(
            files={
                "package.json": {"devDependencies": {"cspell": "^8"}},
                "cspell.json": "{}",
                ".husky/pre-commit": "pnpm test\n",
            }
        )
        (finding,) = rule.check(_ctx(repo))
        assert finding.message == "Pre-commit hook exists but does not include cspell check"
        assert finding.path == str(repo / ".husky" / "pre-commit")

    def test_invalid_package_json_is_an_error(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": "[", "cspell.json": "{}"})
        (finding,) = rule.check(_ctx(repo))
        assert finding.check_id == "package-json-valid"
        assert finding.severity == "error"


class TestFix:
    def test_fixes_all_facets(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {"name": "web"}})
        (repo / ".husky").mkdir()
        assert rule.fix(_ctx(repo)) == 3

        config = json.loads((repo / "cspell.json").read_text())
        assert config["version"] == "0.2"
        assert _manifest(repo)["devDependencies"] == {"cspell": "^8.0.0"}
        hook = repo / ".husky" / "pre-commit"
        assert hook.read_text() == f"#!/usr/bin/env sh\n\n# Spell check\n{DEFAULT_COMMAND}\n"
        assert stat.S_IMODE(hook.stat().st_mode) == 0o755
        assert rule.check(_ctx(repo)) == []

    def test_existing_config_is_never_overwritten(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {}, "cspell.yaml": "words: [lineup]\n"})
        rule.fix(_ctx(repo))
        assert not (repo / "cspell.json").exists()
        assert (repo / "cspell.yaml").read_text() == "words: [lineup]\n"

    def test_appends_to_existing_hook(self, rule, make_repo) -> None:
        repo = make_repo(
            files={
                "package.json": {"devDependencies": {"cspell": "^8"}},
                "cspell.json": "{}",
                ".husky/pre-commit": "#!/usr/bin/env sh\npnpm test\n",
            }
        )
        assert rule.fix(_ctx(repo, command="pnpm cspell .")) == 1
        assert (repo / ".husky" / "pre-commit").read_text() == (
            "#!/usr/bin/env sh\npnpm test\n\n# Spell check\npnpm cspell .\n"
        )

    def test_hook_with_other_flags_is_left_alone(self, rule, make_repo) -> None:
        hook_text = "#!/usr/bin/env sh\nnpx cspell --gitignore --cache .\n"
        repo = make_repo(
            files={
                "package.json": {"devDependencies": {"cspell": "^8"}},
                "cspell.json": "{}",
                ".husky/pre-commit": hook_text,
            }
        )
        assert rule.fix(_ctx(repo)) == 0
        assert (repo / ".husky" / "pre-commit").read_text() == hook_text

    def test_cspell_cli_hook_is_left_alone(self, rule, make_repo) -> None:
        hook_text = "#!/usr/bin/env sh\nnpx cspell-cli lint .\n"
        repo = make_repo(files={"package.json": {}, ".husky/pre-commit": hook_text})

        assert "cspell-pre-commit-hook" not in [f.check_id for f in rule.check(_ctx(repo))]
        rule.fix(_ctx(repo))
        rule.fix(_ctx(repo))
        assert (repo / ".husky" / "pre-commit").read_text() == hook_text

    def test_append_keeps_crlf_line_endings(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {"devDependencies": {"cspell": "^8"}}})
        (repo / "cspell.json").write_text("{}")
        hook = repo / ".husky" / "pre-commit"
        hook.parent.mkdir()
        hook.write_bytes(b"#!/usr/bin/env sh\r\npnpm test\r\n")

        assert rule.fix(_ctx(repo, command="pnpm cspell .")) == 1
        assert hook.read_bytes() == (
            b"#!/usr/bin/env sh\r\npnpm test\r\n\r\n# Spell check\r\npnpm cspell .\r\n"
        )

    def test_no_husky_means_no_hook(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {}})
        assert rule.fix(_ctx(repo)) == 2
        assert not (repo / ".husky").exists()

    def test_version_option(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {"devDependencies": {"typescript": "^5"}}})
        rule.fix(_ctx(repo, version="^9.0.0"))
        assert _manifest(repo)["devDependencies"] == {"typescript": "^5", "cspell": "^9.0.0"}

    def test_invalid_manifest_is_left_untouched(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": "{ broken"})
        assert rule.fix(_ctx(repo)) == 1
        assert (repo / "package.json").read_text() == "{ broken"

    def test_second_fix_is_a_no_op(self, rule, make_repo) -> None:
        repo = make_repo(files={"package.json": {}})
        (repo / ".husky").mkdir()
        rule.fix(_ctx(repo))
        assert rule.fix(_ctx(repo)) == 0
