"""
CloudResolve - Cloud Infrastructure Attribution
===============================================

Resolve domains through a pool of nameservers and tell which of the
resulting addresses sit inside a cloud provider's published IP ranges.
"""

from .classifier import CloudClassifier
from .orchestrator import BatchOrchestrator
from .resolver import Resolver, resolve

__version__ = "1.0.0"
__author__ = "Security Team"

__all__ = [
    "CloudClassifier",
    "BatchOrchestrator",
    "Resolver",
    "resolve",
]
