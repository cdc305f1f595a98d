"""Google Cloud cloud.json feed."""

from typing import List

from .base import FeedFormat, RangePair


class GoogleFeed(FeedFormat):
    """Prefix entries carrying either ``ipv4Prefix`` or ``ipv6Prefix``."""

    name = "google"
    description = "Google goog.json / cloud.json"

    def parse(self, raw: bytes, provider: str) -> List[RangePair]:
        data = self.load_json(raw, provider)
        if not isinstance(data, dict) or not isinstance(data.get("prefixes"), list):
            raise self.invalid(provider, "missing 'prefixes'")

        pairs: List[RangePair] = []
        for entry in data["prefixes"]:
            if not isinstance(entry, dict):
                raise self.invalid(provider, "prefix entry is not an object")
            prefix = entry.get("ipv4Prefix") or entry.get("ipv6Prefix")
            if not prefix:
                raise self.invalid(provider, "prefix entry without ipv4Prefix/ipv6Prefix")
            pairs.append((provider, prefix))
        return pairs
