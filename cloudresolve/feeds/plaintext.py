"""Line-delimited CIDR feeds (Cloudflare ips-v4 / ips-v6)."""

from typing import List

from .base import FeedFormat, RangePair


class PlainTextFeed(FeedFormat):
    """One CIDR per line; blank lines and ``#`` comments are ignored."""

    name = "plaintext"
    description = "One CIDR per line"

    def parse(self, raw: bytes, provider: str) -> List[RangePair]:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise self.invalid(provider, f"not UTF-8 text: {e}") from e

        return [
            (provider, line.strip())
            for line in text.splitlines()
            if line.strip() and not line.strip().startswith("#")
        ]
