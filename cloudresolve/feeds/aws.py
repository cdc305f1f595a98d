"""AWS ip-ranges.json feed."""

from typing import List

from .base import FeedFormat, RangePair


class AWSFeed(FeedFormat):
    """
    Prefix-list document published by AWS.

    Shape::

        {"prefixes": [{"ip_prefix": "3.5.140.0/22", ...}],
         "ipv6_prefixes": [{"ipv6_prefix": "2600:1f14::/35", ...}]}
    """

    name = "aws"
    description = "AWS prefixes / ipv6_prefixes JSON"

    def parse(self, raw: bytes, provider: str) -> List[RangePair]:
        data = self.load_json(raw, provider)
        if not isinstance(data, dict) or "prefixes" not in data:
            raise self.invalid(provider, "missing 'prefixes'")

        pairs: List[RangePair] = []
        for section, key in (("prefixes", "ip_prefix"), ("ipv6_prefixes", "ipv6_prefix")):
            for entry in data.get(section) or []:
                if not isinstance(entry, dict) or key not in entry:
                    raise self.invalid(provider, f"{section} entry without '{key}'")
                pairs.append((provider, entry[key]))
        return pairs
