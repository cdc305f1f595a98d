"""Error codes and exceptions for CloudResolve."""

from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any
from datetime import datetime


class ErrorCategory(Enum):
    """Error categories for classification."""
    VALIDATION = "VALID"
    SCAN = "SCAN"
    NETWORK = "NET"
    CONFIGURATION = "CONFIG"


@dataclass
class ErrorResponse:
    """Structured error response."""
    code: str
    message: str
    category: ErrorCategory
    details: Optional[str] = None
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ErrorCodes:
    """Centralized error codes for the application."""

    # Validation Errors (VALID-001 to VALID-099)
    VALID_INVALID_ADDRESS = ErrorResponse(
        code="VALID-001",
        message="Invalid IP address",
        category=ErrorCategory.VALIDATION
    )

    # Scan Errors (SCAN-001 to SCAN-099)
    SCAN_CANCELLED = ErrorResponse(
        code="SCAN-001",
        message="Lookup cancelled",
        category=ErrorCategory.SCAN
    )

    # Network Errors (NET-001 to NET-099)
    NET_DNS_RESOLUTION_FAILED = ErrorResponse(
        code="NET-001",
        message="DNS resolution failed",
        category=ErrorCategory.NETWORK
    )
    NET_TIMEOUT = ErrorResponse(
        code="NET-002",
        message="DNS query timed out",
        category=ErrorCategory.NETWORK
    )
    NET_NXDOMAIN = ErrorResponse(
        code="NET-003",
        message="Domain does not exist",
        category=ErrorCategory.NETWORK
    )
    NET_NO_ANSWER = ErrorResponse(
        code="NET-004",
        message="Nameserver returned no addresses",
        category=ErrorCategory.NETWORK
    )
    NET_BAD_NAMESERVER = ErrorResponse(
        code="NET-005",
        message="Nameserver could not be used",
        category=ErrorCategory.NETWORK
    )
    NET_FEED_FETCH_FAILED = ErrorResponse(
        code="NET-006",
        message="Failed to fetch provider IP ranges",
        category=ErrorCategory.NETWORK
    )

    # Configuration Errors (CONFIG-001 to CONFIG-099)
    CONFIG_INVALID = ErrorResponse(
        code="CONFIG-001",
        message="Invalid configuration",
        category=ErrorCategory.CONFIGURATION
    )
    CONFIG_MISSING = ErrorResponse(
        code="CONFIG-002",
        message="Required configuration is missing",
        category=ErrorCategory.CONFIGURATION
    )
    CONFIG_NO_NAMESERVERS = ErrorResponse(
        code="CONFIG-003",
        message="Nameserver list is empty",
        category=ErrorCategory.CONFIGURATION
    )
    CONFIG_INVALID_CIDR = ErrorResponse(
        code="CONFIG-004",
        message="Malformed CIDR in provider ranges",
        category=ErrorCategory.CONFIGURATION
    )
    CONFIG_INVALID_FEED = ErrorResponse(
        code="CONFIG-005",
        message="Provider feed could not be parsed",
        category=ErrorCategory.CONFIGURATION
    )
    CONFIG_FILE_NOT_FOUND = ErrorResponse(
        code="CONFIG-006",
        message="File not found",
        category=ErrorCategory.CONFIGURATION
    )

    @classmethod
    def with_details(cls, error: ErrorResponse, details: str) -> ErrorResponse:
        """Create a copy of an error with additional details."""
        return ErrorResponse(
            code=error.code,
            message=error.message,
            category=error.category,
            details=details
        )


def format_error(error: ErrorResponse) -> str:
    """Format error for display."""
    if error.details:
        return f"[{error.code}] {error.message}: {error.details}"
    return f"[{error.code}] {error.message}"


class CloudResolveError(Exception):
    """Base exception carrying a structured ErrorResponse."""

    default_error: ErrorResponse = ErrorCodes.CONFIG_INVALID

    def __init__(self, details: Optional[str] = None, error: Optional[ErrorResponse] = None):
        base = error or self.default_error
        self.error = ErrorCodes.with_details(base, details) if details else base
        super().__init__(format_error(self.error))

    @property
    def code(self) -> str:
        return self.error.code


class InvalidAddress(CloudResolveError, ValueError):
    """An address handed to the classifier could not be parsed."""

    default_error = ErrorCodes.VALID_INVALID_ADDRESS

    def __init__(self, address: Any):
        self.address = address
        super().__init__(f"{address!r} is not a valid IPv4 or IPv6 address")


class ConfigurationError(CloudResolveError):
    """Startup input is unusable: empty nameservers, bad CIDR, unreadable files."""

    default_error = ErrorCodes.CONFIG_INVALID


class ResolutionFailure(CloudResolveError):
    """A single domain could not be resolved against its nameserver."""

    default_error = ErrorCodes.NET_DNS_RESOLUTION_FAILED

    REASON_ERRORS = {
        "timeout": ErrorCodes.NET_TIMEOUT,
        "nxdomain": ErrorCodes.NET_NXDOMAIN,
        "no_answer": ErrorCodes.NET_NO_ANSWER,
        "no_nameservers": ErrorCodes.NET_DNS_RESOLUTION_FAILED,
        "bad_nameserver": ErrorCodes.NET_BAD_NAMESERVER,
        "error": ErrorCodes.NET_DNS_RESOLUTION_FAILED,
    }

    def __init__(self, domain: str, nameserver: str, reason: str = "error", details: Optional[str] = None):
        self.domain = domain
        self.nameserver = nameserver
        self.reason = reason
        super().__init__(
            details or f"{domain} via {nameserver}",
            error=self.REASON_ERRORS.get(reason, self.default_error),
        )

    @property
    def is_timeout(self) -> bool:
        return self.reason == "timeout"

    def to_dict(self) -> Dict[str, Any]:
        data = self.error.to_dict()
        data["reason"] = self.reason
        data["nameserver"] = self.nameserver
        return data


class Cancelled(ResolutionFailure):
    """A lookup was abandoned because the batch was cancelled."""

    default_error = ErrorCodes.SCAN_CANCELLED
    REASON_ERRORS = {"cancelled": ErrorCodes.SCAN_CANCELLED}

    def __init__(self, domain: str, nameserver: str):
        super().__init__(domain, nameserver, reason="cancelled")
