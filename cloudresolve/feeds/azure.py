"""Azure Service Tags feed."""

from typing import List

from .base import FeedFormat, RangePair


class AzureFeed(FeedFormat):
    """
    Service Tags document: ranges nested under each value's properties.

    Shape::

        {"values": [{"name": "AzureCloud", "properties":
            {"addressPrefixes": ["13.64.0.0/16", ...], "platform": "Azure"}}]}

    The same prefix appears under many service tags; it is kept once.
    """

    name = "azure"
    description = "Azure Service Tags JSON"

    def parse(self, raw: bytes, provider: str) -> List[RangePair]:
        data = self.load_json(raw, provider)
        if not isinstance(data, dict) or not isinstance(data.get("values"), list):
            raise self.invalid(provider, "missing 'values'")

        seen = set()
        pairs: List[RangePair] = []
        for value in data["values"]:
            properties = value.get("properties") if isinstance(value, dict) else None
            if not isinstance(properties, dict):
                raise self.invalid(provider, "value without 'properties'")
            for prefix in properties.get("addressPrefixes") or []:
                if prefix not in seen:
                    seen.add(prefix)
                    pairs.append((provider, prefix))
        return pairs
