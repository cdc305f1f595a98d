"""Provider IP-range feeds for CloudResolve."""

from .base import FeedFormat
from .aws import AWSFeed
from .plaintext import PlainTextFeed
from .azure import AzureFeed
from .google import GoogleFeed
from .loader import FEED_FORMATS, FeedLoader, FeedSource

__all__ = [
    "FeedFormat",
    "AWSFeed",
    "PlainTextFeed",
    "AzureFeed",
    "GoogleFeed",
    "FEED_FORMATS",
    "FeedLoader",
    "FeedSource",
]
