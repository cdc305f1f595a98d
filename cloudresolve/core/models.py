"""Lookup and classification data structures for CloudResolve."""

import ipaddress
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .errors import ConfigurationError, ErrorCodes, ResolutionFailure

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class LookupState(Enum):
    """Lifecycle of a single domain lookup."""
    PENDING = "pending"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (LookupState.RESOLVED, LookupState.FAILED, LookupState.CANCELLED)


@dataclass(frozen=True)
class NameLookupRequest:
    """One domain pinned to one nameserver."""
    domain: str
    nameserver: str

    def __post_init__(self):
        if not self.domain:
            raise ValueError("domain must not be empty")
        if not self.nameserver:
            raise ValueError("nameserver must not be empty")


@dataclass
class NameLookupResult:
    """Outcome of resolving one domain."""
    domain: str
    nameserver: str
    addresses: List[str] = field(default_factory=list)
    error: Optional[ResolutionFailure] = None
    state: LookupState = LookupState.RESOLVED
    duration_seconds: Optional[float] = None

    @classmethod
    def failed(
        cls,
        request: NameLookupRequest,
        error: ResolutionFailure,
        duration_seconds: Optional[float] = None,
    ) -> "NameLookupResult":
        """Build a result for a lookup that produced no addresses."""
        state = LookupState.CANCELLED if error.reason == "cancelled" else LookupState.FAILED
        return cls(
            domain=request.domain,
            nameserver=request.nameserver,
            addresses=[],
            error=error,
            state=state,
            duration_seconds=duration_seconds,
        )

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "nameserver": self.nameserver,
            "addresses": list(self.addresses),
            "state": self.state.value,
            "error": self.error.to_dict() if self.error else None,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class ProviderRange:
    """A provider's published networks, parsed and validated at load time."""
    provider: str
    cidrs: Tuple[IPNetwork, ...]

    @classmethod
    def from_strings(cls, provider: str, cidrs: Iterable[str]) -> "ProviderRange":
        """
        Parse CIDR strings into networks.

        Host bits set in an entry (``10.1.2.3/8``) are tolerated and masked
        off, matching how providers occasionally publish ranges. Every
        entry needs an explicit prefix length; a bare address is rejected.

        Raises:
            ConfigurationError: If the provider name is empty or any entry
                is not a valid IPv4/IPv6 network.
        """
        if not provider:
            raise ConfigurationError("provider name must not be empty")

        networks = []
        for cidr in cidrs:
            text = str(cidr).strip() if cidr is not None else ""
            if "/" not in text:
                raise ConfigurationError(
                    f"{provider}: {cidr!r} has no prefix length",
                    error=ErrorCodes.CONFIG_INVALID_CIDR,
                )
            try:
                networks.append(ipaddress.ip_network(text, strict=False))
            except ValueError as e:
                raise ConfigurationError(
                    f"{provider}: {cidr!r} ({e})",
                    error=ErrorCodes.CONFIG_INVALID_CIDR,
                ) from e
        return cls(provider=provider, cidrs=tuple(networks))

    def contains(self, address: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]) -> bool:
        # Mixed-family comparisons are False, never an error.
        return any(address in network for network in self.cidrs)

    def to_strings(self) -> List[str]:
        return [str(network) for network in self.cidrs]


@dataclass(frozen=True)
class ClassificationResult:
    """Whether an address sits inside a cloud provider's ranges."""
    address: str
    is_cloud: bool
    provider: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "is_cloud": self.is_cloud,
            "provider": self.provider,
        }


@dataclass
class BatchItem:
    """A completed lookup together with the classification of each address."""
    lookup: NameLookupResult
    classifications: List[ClassificationResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def domain(self) -> str:
        return self.lookup.domain

    def rows(self) -> List[Tuple[str, str, str, bool, Optional[str]]]:
        """Flatten to (domain, nameserver, address, is_cloud, provider) tuples."""
        return [
            (self.lookup.domain, self.lookup.nameserver, c.address, c.is_cloud, c.provider)
            for c in self.classifications
        ]

    def to_dict(self) -> Dict[str, Any]:
        data = self.lookup.to_dict()
        data["classifications"] = [c.to_dict() for c in self.classifications]
        data["errors"] = list(self.errors)
        return data


@dataclass
class BatchSummary:
    """Aggregate counts for a finished batch."""
    domains: int = 0
    resolved: int = 0
    failed: int = 0
    cancelled: int = 0
    addresses: int = 0
    cloud_addresses: int = 0
    providers: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_items(cls, items: Iterable[BatchItem]) -> "BatchSummary":
        summary = cls()
        providers: Counter = Counter()
        for item in items:
            summary.domains += 1
            state = item.lookup.state
            if state == LookupState.RESOLVED:
                summary.resolved += 1
            elif state == LookupState.CANCELLED:
                summary.cancelled += 1
            else:
                summary.failed += 1
            for classification in item.classifications:
                summary.addresses += 1
                if classification.is_cloud:
                    summary.cloud_addresses += 1
                    providers[classification.provider] += 1
        summary.providers = dict(providers)
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domains": self.domains,
            "resolved": self.resolved,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "addresses": self.addresses,
            "cloud_addresses": self.cloud_addresses,
            "providers": dict(self.providers),
        }
