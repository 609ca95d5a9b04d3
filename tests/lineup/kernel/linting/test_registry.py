"""Tests for lineup.kernel.linting.registry."""

from __future__ import annotations

import pytest

from lineup.kernel.exceptions import NotFoundError, ValidationError
from lineup.kernel.linting.models import LintResult
from lineup.kernel.linting.registry import RuleRegistry, default_registry
from lineup.kernel.linting.rules import Rule, RuleContext


def _rule(rule_id: str) -> Rule:
    class _Stub(Rule):
        name = "Stub"
        description = "stub"
        default_severity = "info"

        def check(self, context: RuleContext) -> list[LintResult]:
            return []

    _Stub.rule_id = rule_id
    return _Stub()


class TestRuleRegistry:
    def test_registration_order_is_kept(self) -> None:
        registry = RuleRegistry([_rule("b-rule"), _rule("a-rule"), _rule("c-rule")])
        assert registry.ids() == ["b-rule", "a-rule", "c-rule"]
        assert [r.rule_id for r in registry] == ["b-rule", "a-rule", "c-rule"]
        assert len(registry) == 3

    def test_duplicate_id_rejected(self) -> None:
        registry = RuleRegistry([_rule("dup")])
        with pytest.raises(ValidationError, match="already registered"):
            registry.register(_rule("dup"))

    @pytest.mark.parametrize("bad_id", ["Bad", "snake_case", "-leading", "trailing-", ""])
    def test_non_kebab_case_rejected(self, bad_id: str) -> None:
        with pytest.raises(ValidationError, match="kebab-case"):
            RuleRegistry().register(_rule(bad_id))

    def test_get_unknown_rule(self) -> None:
        registry = RuleRegistry([_rule("known")])
        with pytest.raises(NotFoundError, match="Available: known"):
            registry.get("unknown")

    def test_contains(self) -> None:
        registry = RuleRegistry([_rule("known")])
        assert "known" in registry
        assert "unknown" not in registry

    def test_infos(self) -> None:
        registry = RuleRegistry([_rule("one")])
        (info,) = registry.infos()
        assert info.id == "one"
        assert info.can_fix is False


class TestDefaultRegistry:
    def test_builtin_rules_in_execution_order(self) -> None:
        assert default_registry().ids() == [
            "claude-settings-hooks",
            "husky-init",
            "cspell-config",
            "pnpm-usage",
        ]

    def test_every_builtin_rule_can_fix(self) -> None:
        assert all(rule.can_fix() for rule in default_registry())

    def test_fix_entries_resolve_declared_checks(self) -> None:
        for rule in default_registry():
            check_ids = {c.id for c in rule.checks}
            for fix in rule.fixes:
                assert set(fix.resolves) <= check_ids, (rule.rule_id, fix.id)

    def test_fresh_instances_per_call(self) -> None:
        first, second = default_registry(), default_registry()
        assert first.get("husky-init") is not second.get("husky-init")
