"""Ordered registry of lint rules.

Registration order is execution order: the engine runs rules within a
repository in the order they were registered here.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from lineup.kernel.exceptions import NotFoundError, ValidationError
from lineup.kernel.linting.models import RuleInfo
from lineup.kernel.linting.rules import Rule

_KEBAB_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")


class RuleRegistry:
    """Holds the rule set in a stable order."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: dict[str, Rule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        """Append a rule.

        Raises
        ------
        ValidationError
            If the id is not kebab-case or is already registered
        """
        if not _KEBAB_CASE_RE.match(rule.rule_id):
            raise ValidationError("rule_id", "must be kebab-case", rule.rule_id)
        if rule.rule_id in self._rules:
            raise ValidationError("rule_id", "is already registered", rule.rule_id)
        self._rules[rule.rule_id] = rule

    def get(self, rule_id: str) -> Rule:
        """Look up a rule by id.

        Raises
        ------
        NotFoundError
            If no rule has this id
        """
        try:
            return self._rules[rule_id]
        except KeyError:
            raise NotFoundError("rule", rule_id, list(self._rules)) from None

    def all(self) -> list[Rule]:
        return list(self._rules.values())

    def ids(self) -> list[str]:
        return list(self._rules)

    def infos(self) -> list[RuleInfo]:
        """Metadata of every rule, in registration order."""
        return [rule.info() for rule in self._rules.values()]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules


def default_registry() -> RuleRegistry:
    """Registry holding the built-in rules."""
    from lineup.builtin.rules import BUILTIN_RULES

    return RuleRegistry(rule_cls() for rule_cls in BUILTIN_RULES)
