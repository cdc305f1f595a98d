"""Cloud provider IP-range classifier."""

import ipaddress
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .core.errors import InvalidAddress
from .core.models import ClassificationResult, ProviderRange

Address = Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_address(address: Address) -> Union[ipaddress.IPv4Address, ipaddress.IPv6Address]:
    """
    Parse an address, raising InvalidAddress instead of ValueError.

    IPv6 zone identifiers (``fe80::1%eth0``) are rejected, as are
    addresses with surrounding whitespace.
    """
    if isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return address
    if not isinstance(address, str) or not address or address != address.strip():
        raise InvalidAddress(address)
    if "%" in address:
        raise InvalidAddress(address)
    try:
        return ipaddress.ip_address(address)
    except ValueError:
        raise InvalidAddress(address) from None


class CloudClassifier:
    """
    Answer whether an address falls inside a provider's published ranges.

    The range table is fixed at construction and never written afterwards,
    so a single instance can be shared by any number of threads.

    Matching is a linear scan over providers in load order; the first
    provider with a containing network wins.
    """

    def __init__(self, ranges: Iterable[ProviderRange] = ()):
        self._ranges: Tuple[ProviderRange, ...] = tuple(ranges)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[str]]) -> "CloudClassifier":
        """
        Build a classifier from a provider -> CIDR strings mapping.

        Raises:
            ConfigurationError: If any CIDR is malformed.
        """
        return cls(ProviderRange.from_strings(name, cidrs) for name, cidrs in mapping.items())

    @property
    def ranges(self) -> Tuple[ProviderRange, ...]:
        return self._ranges

    @property
    def providers(self) -> List[str]:
        """Provider names in load order, without repeats."""
        seen: List[str] = []
        for provider_range in self._ranges:
            if provider_range.provider not in seen:
                seen.append(provider_range.provider)
        return seen

    def __len__(self) -> int:
        return sum(len(r.cidrs) for r in self._ranges)

    def match(self, address: Address) -> Optional[str]:
        """Return the first provider containing ``address``, or None."""
        ip = parse_address(address)
        for provider_range in self._ranges:
            if provider_range.contains(ip):
                return provider_range.provider
        return None

    def classify(self, address: Address) -> ClassificationResult:
        """
        Classify a single address.

        Args:
            address: IPv4/IPv6 address as text or an ipaddress object

        Returns:
            ClassificationResult with the first matching provider

        Raises:
            InvalidAddress: If the address cannot be parsed
        """
        provider = self.match(address)
        return ClassificationResult(
            address=str(address),
            is_cloud=provider is not None,
            provider=provider,
        )

    def is_cloud_ip(self, address: Address) -> Tuple[bool, Optional[str]]:
        """Return ``(is_cloud, provider)`` for an address."""
        result = self.classify(address)
        return result.is_cloud, result.provider

    def to_mapping(self) -> dict:
        """Provider -> CIDR strings, merging ranges that share a provider."""
        mapping: dict = {}
        for provider_range in self._ranges:
            mapping.setdefault(provider_range.provider, []).extend(provider_range.to_strings())
        return mapping

    def __repr__(self) -> str:
        return f"<CloudClassifier(providers={len(self.providers)}, networks={len(self)})>"
