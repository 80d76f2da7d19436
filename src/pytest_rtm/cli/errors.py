"""Exit codes and error formatting for the pytest-rtm command line."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError

EXIT_SUCCESS = 0
EXIT_INVALID = 1  # Content failed validation
EXIT_MISSING = 2  # Input file does not exist


def format_validation_error(err: ValidationError) -> str:
    """Format a pydantic ValidationError as one line per failing field.

    Example:
        >>> format_validation_error(err)
        "  - summary.totalRequirements: Field required"
    """
    lines = []
    for detail in err.errors():
        loc = ".".join(str(part) for part in detail["loc"])
        lines.append(f"  - {loc}: {detail['msg']}")
    return "\n".join(lines)
