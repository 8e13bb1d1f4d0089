"""
Error handling for HeapUseWatcher.

Every failure the watcher can report is a setup failure: bad arguments,
no recognizable oldest-generation region, or an unusable report file.
Each exception carries a diagnostic with enough detail to fix the setup.

Author: xwest
"""

from typing import Optional, List, Sequence
from dataclasses import dataclass


@dataclass
class Diagnostic:
    """Diagnostic attached to a HeapUseWatcher error."""
    message: str
    severity: str = "error"
    help_text: Optional[str] = None
    details: Optional[List[str]] = None

    def __str__(self) -> str:
        result = self.message
        if self.details:
            result += "".join(f"{detail}\n" for detail in self.details)
        if self.help_text:
            result += f"\n{self.help_text}"
        return result


class HeapWatcherError(Exception):
    """
    Base exception for HeapUseWatcher.

    Raised directly when the watcher is embedded in a host application and
    its setup fails, so the host can decide what to do with the message.
    """

    def __init__(self, message: str, help_text: Optional[str] = None,
                 details: Optional[List[str]] = None):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            help_text=help_text,
            details=details
        )

    def __str__(self) -> str:
        return str(self.diagnostic)


class ConfigurationError(HeapWatcherError):
    """Malformed watcher arguments (unknown flag, missing or bad value)."""

    def __init__(self, message: str, args: Sequence[str] = ()):
        self.arguments = list(args)
        super().__init__(message)


class RegionResolutionError(HeapWatcherError):
    """
    No recognized oldest-generation region was found.

    The message lists every region name that was available, one per line.
    """

    def __init__(self, available_names: Sequence[str]):
        self.available_names = list(available_names)
        super().__init__(
            "No recognized OldGen pool name found. Pool names found include:\n",
            details=self.available_names
        )


class OutputTargetError(HeapWatcherError):
    """The requested report file could not be opened."""

    def __init__(self, path: str, reason: Optional[Exception] = None):
        self.path = path
        self.reason = reason
        message = f"Failed to open log file: {path}"
        if reason is not None:
            message += f" ({reason})"
        super().__init__(message)
