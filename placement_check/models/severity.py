"""Severity levels attached to triggered rules."""

from enum import IntEnum


class Severity(IntEnum):
    """Ordered verdict level. Higher values are worse."""

    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def level(self) -> str:
        """Display class used by popups and reports."""
        if self >= Severity.HIGH:
            return "error"
        if self >= Severity.MEDIUM:
            return "warning"
        if self >= Severity.LOW:
            return "info"
        return "none"
