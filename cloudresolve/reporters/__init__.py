"""Output sinks for CloudResolve."""

from .base import BaseReporter
from .console_reporter import ConsoleReporter
from .json_reporter import JSONReporter

__all__ = [
    "BaseReporter",
    "ConsoleReporter",
    "JSONReporter",
]
