"""Core modules for CloudResolve."""

from .config import Config
from .logger import setup_logger, get_logger
from .models import (
    BatchItem,
    BatchSummary,
    ClassificationResult,
    LookupState,
    NameLookupRequest,
    NameLookupResult,
    ProviderRange,
)
from .errors import (
    Cancelled,
    CloudResolveError,
    ConfigurationError,
    ErrorCodes,
    ErrorResponse,
    InvalidAddress,
    ResolutionFailure,
    format_error,
)
from .inputs import read_list, read_nameservers

__all__ = [
    "Config",
    "setup_logger",
    "get_logger",
    "BatchItem",
    "BatchSummary",
    "ClassificationResult",
    "LookupState",
    "NameLookupRequest",
    "NameLookupResult",
    "ProviderRange",
    "Cancelled",
    "CloudResolveError",
    "ConfigurationError",
    "ErrorCodes",
    "ErrorResponse",
    "InvalidAddress",
    "ResolutionFailure",
    "format_error",
    "read_list",
    "read_nameservers",
]
