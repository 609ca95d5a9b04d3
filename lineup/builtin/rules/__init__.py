"""Built-in repository hygiene rules.

``BUILTIN_RULES`` is the closed rule set; its order is the order in which
the engine runs rules inside each repository.
"""

from lineup.builtin.rules.claude_settings import ClaudeSettingsRule
from lineup.builtin.rules.cspell_config import CspellConfigRule
from lineup.builtin.rules.husky_init import HuskyInitRule
from lineup.builtin.rules.pnpm_usage import PnpmUsageRule

BUILTIN_RULES = (
    ClaudeSettingsRule,
    HuskyInitRule,
    CspellConfigRule,
    PnpmUsageRule,
)

__all__ = [
    "BUILTIN_RULES",
    "ClaudeSettingsRule",
    "CspellConfigRule",
    "HuskyInitRule",
    "PnpmUsageRule",
]
