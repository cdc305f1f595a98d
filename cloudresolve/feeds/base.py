"""Base class for provider IP-range feed formats."""

import json
from abc import ABC, abstractmethod
from typing import Any, List, Tuple

from ..core.errors import ConfigurationError, ErrorCodes

# (provider, cidr)
RangePair = Tuple[str, str]


class FeedFormat(ABC):
    """One published IP-range document shape."""

    # Format identifier used in configuration
    name: str = "base"

    # Description of the document shape
    description: str = "Base feed format"

    @abstractmethod
    def parse(self, raw: bytes, provider: str) -> List[RangePair]:
        """
        Parse a raw feed document.

        Args:
            raw: Response body as downloaded
            provider: Provider name to attach to every range

        Returns:
            List of (provider, cidr) pairs in document order

        Raises:
            ConfigurationError: If the document does not have this shape
        """
        pass

    def invalid(self, provider: str, reason: str) -> ConfigurationError:
        return ConfigurationError(
            f"{provider} ({self.name} feed): {reason}",
            error=ErrorCodes.CONFIG_INVALID_FEED,
        )

    def load_json(self, raw: bytes, provider: str) -> Any:
        """Decode a JSON body, tolerating a UTF-8 byte order mark."""
        try:
            return json.loads(raw.decode("utf-8-sig"))
        except (UnicodeDecodeError, ValueError) as e:
            raise self.invalid(provider, f"not valid JSON: {e}") from e

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name!r})>"
