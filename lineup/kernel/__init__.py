"""lineup kernel.

Public API of the engine. The CLI and library callers import from here
rather than from kernel submodules.
"""

# ============================================================================
# Engine
# ============================================================================
from lineup.kernel.engine import ENGINE_RULE_ID, Engine

# ============================================================================
# Exceptions
# ============================================================================
from lineup.kernel.exceptions import (
    ConfigurationError,
    FixNotSupportedError,
    LineupError,
    NotFoundError,
    ParseError,
    PartialFixError,
    ValidationError,
)

# ============================================================================
# Linting
# ============================================================================
from lineup.kernel.linting.models import (
    SEVERITIES,
    CheckEntry,
    FixEntry,
    LintReport,
    LintResult,
    RuleInfo,
    Severity,
)
from lineup.kernel.linting.registry import RuleRegistry, default_registry
from lineup.kernel.linting.rules import Rule, RuleContext

# ============================================================================
# Discovery
# ============================================================================
from lineup.kernel.locator import DEFAULT_EXCLUDED_DIRS, RepositoryLocator, find_repositories

__all__ = [
    "DEFAULT_EXCLUDED_DIRS",
    "ENGINE_RULE_ID",
    "SEVERITIES",
    "CheckEntry",
    "ConfigurationError",
    "Engine",
    "FixEntry",
    "FixNotSupportedError",
    "LineupError",
    "LintReport",
    "LintResult",
    "NotFoundError",
    "ParseError",
    "PartialFixError",
    "RepositoryLocator",
    "Rule",
    "RuleContext",
    "RuleInfo",
    "RuleRegistry",
    "Severity",
    "ValidationError",
    "default_registry",
    "find_repositories",
]
