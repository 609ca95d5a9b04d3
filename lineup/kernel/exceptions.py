"""Core exception hierarchy for lineup.

All lineup exceptions inherit from LineupError so callers can catch every
engine failure with a single ``except`` clause. Unreadable directories use
the built-in ``PermissionError`` and are never raised out of a run.
"""

from __future__ import annotations

from pathlib import Path

# ============================================================================
# Base Exception
# ============================================================================


class LineupError(Exception):
    """Base exception for all lineup errors."""

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(LineupError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("rules.pnpm-usage", "severity must be error, warning or info")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the configuration section that is invalid
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(LineupError):
    """Raised when a value fails validation.

    Examples
    --------
    Example usage::

        raise ValidationError("rule_id", "must be kebab-case", value="Bad_Id")
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Resource Errors
# ============================================================================


class NotFoundError(LineupError):
    """Raised when a required resource does not exist.

    A missing root path is the only error that aborts a whole run.

    Examples
    --------
    Example usage::

        raise NotFoundError("path", "/work/repos")
        raise NotFoundError("rule", "no-such-rule", ["claude-settings-hooks", "husky-init"])
    """

    def __init__(
        self, resource_type: str, resource_id: str, available: list[str] | None = None
    ) -> None:
        """Initialize not found error.

        Args
        ----
            resource_type: Type of resource (e.g., "path", "rule")
            resource_id: Identifier of the missing resource
            available: List of available resources (optional)
        """
        msg = f"{resource_type.title()} '{resource_id}' not found"
        if available:
            msg += f". Available: {', '.join(available[:5])}"
            if len(available) > 5:
                msg += f" ... and {len(available) - 5} more"
        super().__init__(msg)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.available = available


class ParseError(LineupError):
    """Raised when an existing configuration file cannot be interpreted safely.

    Fixers never rewrite a file that raised this; the rule's check reports
    the problem as a residual finding instead.
    """

    def __init__(self, path: str | Path, reason: str, line: int | None = None) -> None:
        self.path = str(path)
        self.reason = reason
        self.line = line
        location = f"{self.path}:{line}" if line else self.path
        super().__init__(f"Cannot parse {location}: {reason}")


# ============================================================================
# Fix Errors
# ============================================================================


class FixNotSupportedError(LineupError):
    """Raised by rules that have no fixer; the engine treats the rule as check-only."""

    def __init__(self, rule_id: str) -> None:
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}' does not support fixing")


class PartialFixError(LineupError):
    """Raised when some facets of a rule were fixed and others failed.

    Attributes
    ----------
    rule_id : str
        Rule whose fix was incomplete.
    fixed : int
        Number of facets that were fixed before or after the failures.
    failures : list[Exception]
        The errors raised by the facets that could not be fixed.
    """

    def __init__(self, rule_id: str, fixed: int, failures: list[Exception]) -> None:
        self.rule_id = rule_id
        self.fixed = fixed
        self.failures = failures
        reasons = "; ".join(str(f) for f in failures)
        super().__init__(
            f"Rule '{rule_id}' fixed {fixed} facet(s), {len(failures)} failed: {reasons}"
        )
