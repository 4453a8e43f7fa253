"""Structural checks for cron expressions and job commands.

Neither check raises: both return a ValidationResult the caller can show
next to the input. Field values are not range-checked.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from cron.fields import FIELD_NAMES, MACRO_SIGIL

logger = logging.getLogger(__name__)

# Substring denylist. Advisory only: it has no notion of quoting, so both
# false positives ("git add") and misses are expected.
DANGEROUS_PATTERNS = ("rm -rf", "mkfs", "> /", "dd")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def validate_expression(raw: str) -> ValidationResult:
    """Check that an expression is a macro or has exactly 5 fields.

    Fields are split on single spaces, so '0  9 * * *' (two spaces) has
    six fields and is rejected.
    """
    if not raw.strip():
        return ValidationResult(False, "expression must not be empty")

    text = raw.strip()
    if text.startswith(MACRO_SIGIL) and len(text.split()) == 1:
        return ValidationResult(True)

    if len(raw.split(" ")) != len(FIELD_NAMES):
        return ValidationResult(False, f"expression must have exactly {len(FIELD_NAMES)} fields")

    return ValidationResult(True)


def validate_command(
    command: str,
    blocked_patterns: Iterable[str] = DANGEROUS_PATTERNS,
) -> ValidationResult:
    """Scan a shell command for known-dangerous substrings.

    Args:
        command: The command a job would run.
        blocked_patterns: Substrings that reject the command.

    Returns:
        An invalid result naming the first matching pattern, or a valid one.
    """
    if not command.strip():
        return ValidationResult(False, "command must not be empty")

    for pattern in blocked_patterns:
        if pattern and pattern in command:
            logger.warning("Command %r matches blocked pattern %r", command, pattern)
            return ValidationResult(
                False, f"potentially dangerous command detected: '{pattern}'"
            )

    return ValidationResult(True)
