"""Fetch, merge and cache provider IP-range feeds."""

import json
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from ..classifier import CloudClassifier
from ..core.config import Config
from ..core.errors import ConfigurationError, ErrorCodes
from ..core.logger import get_logger
from .aws import AWSFeed
from .azure import AzureFeed
from .base import FeedFormat, RangePair
from .google import GoogleFeed
from .plaintext import PlainTextFeed

FEED_FORMATS: Dict[str, FeedFormat] = {
    feed.name: feed for feed in (AWSFeed(), PlainTextFeed(), AzureFeed(), GoogleFeed())
}

USER_AGENT = "CloudResolve/1.0"


@dataclass(frozen=True)
class FeedSource:
    """Where one feed lives and how to read it."""
    name: str
    url: str
    format: str
    provider: str

    @classmethod
    def from_config(cls, name: str, settings: Mapping[str, Any]) -> "FeedSource":
        url = settings.get("url")
        fmt = settings.get("format")
        if not url:
            raise ConfigurationError(f"feed '{name}' has no url", error=ErrorCodes.CONFIG_MISSING)
        if fmt not in FEED_FORMATS:
            raise ConfigurationError(
                f"feed '{name}' has unknown format {fmt!r} (expected one of {sorted(FEED_FORMATS)})"
            )
        return cls(name=name, url=url, format=fmt, provider=settings.get("provider") or name)

    @property
    def parser(self) -> FeedFormat:
        return FEED_FORMATS[self.format]


class FeedLoader:
    """
    Build the provider range table from published feeds or a local cache.

    Feeds are downloaded in parallel; each download returns its own list
    of (provider, cidr) pairs and the lists are merged afterwards on the
    calling thread, in the order the sources were declared.
    """

    def __init__(
        self,
        sources: Sequence[FeedSource],
        cache_file: Path,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize loader.

        Args:
            sources: Feeds to download, in provider priority order
            cache_file: JSON file holding the merged table
            timeout: HTTP timeout per feed in seconds
            session: HTTP session (a fresh requests session per fetch if omitted)
        """
        self.sources = list(sources)
        self.cache_file = Path(cache_file)
        self.timeout = timeout
        self.session = session
        self.logger = get_logger("feeds")

    @classmethod
    def from_config(cls, config: Config, session: Optional[requests.Session] = None) -> "FeedLoader":
        sources = [FeedSource.from_config(name, settings) for name, settings in config.feed_providers.items()]
        return cls(sources, config.cache_file, timeout=config.feed_timeout, session=session)

    def fetch_one(self, source: FeedSource) -> List[RangePair]:
        """
        Download and parse a single feed.

        Raises:
            ConfigurationError: On HTTP failure or an unparsable document
        """
        self.logger.info(f"Fetching IP ranges for {source.name}")
        http = self.session or requests
        try:
            response = http.get(source.url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except requests.RequestException as e:
            raise ConfigurationError(
                f"{source.name} ({source.url}): {e}", error=ErrorCodes.NET_FEED_FETCH_FAILED
            ) from e

        pairs = source.parser.parse(response.content, source.provider)
        self.logger.debug(f"{source.name}: {len(pairs)} ranges")
        return pairs

    @staticmethod
    def merge(results: Sequence[List[RangePair]]) -> Dict[str, List[str]]:
        """Merge per-feed pair lists into provider -> CIDRs, dropping repeats."""
        merged: Dict[str, List[str]] = {}
        seen: Dict[str, set] = {}
        for pairs in results:
            for provider, cidr in pairs:
                bucket = merged.setdefault(provider, [])
                provider_seen = seen.setdefault(provider, set())
                if cidr not in provider_seen:
                    provider_seen.add(cidr)
                    bucket.append(cidr)
        return merged

    def fetch(self) -> Dict[str, List[str]]:
        """Download every feed concurrently and merge the results."""
        if not self.sources:
            raise ConfigurationError("no provider feeds configured", error=ErrorCodes.CONFIG_MISSING)

        with ThreadPoolExecutor(max_workers=len(self.sources), thread_name_prefix="feed") as executor:
            futures = [executor.submit(self.fetch_one, source) for source in self.sources]
            # Result order follows declaration order, not completion order.
            results = [future.result() for future in futures]

        return self.merge(results)

    def save_cache(self, mapping: Mapping[str, Sequence[str]], path: Optional[Path] = None) -> Path:
        """Write the merged table as JSON, replacing any previous cache."""
        path = Path(path or self.cache_file)
        document = {
            "generated_at": datetime.utcnow().isoformat() + "Z",
            "providers": [{"name": name, "cidrs": list(cidrs)} for name, cidrs in mapping.items()],
        }
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent="\t")
            os.replace(tmp_path, path)
        except OSError as e:
            raise ConfigurationError(f"Cannot write cache {path}: {e}") from e

        self.logger.info(f"Saved {sum(len(c) for c in mapping.values())} ranges to {path}")
        return path

    def load_cache(self, path: Optional[Path] = None) -> Dict[str, List[str]]:
        """
        Read a cached table.

        Accepts the current ``{"providers": [{"name", "cidrs"}]}`` layout and
        the older ``{"Services": [{"Name", "IPRange"}]}`` one.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path or self.cache_file)
        if not path.exists():
            raise ConfigurationError(
                f"{path} (run with --update to download provider ranges)",
                error=ErrorCodes.CONFIG_FILE_NOT_FOUND,
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read cache {path}: {e}") from e

        if isinstance(document, dict) and "providers" in document:
            entries, name_key, cidr_key = document["providers"], "name", "cidrs"
        elif isinstance(document, dict) and "Services" in document:
            entries, name_key, cidr_key = document["Services"], "Name", "IPRange"
        else:
            raise ConfigurationError(f"{path}: unrecognised cache layout", error=ErrorCodes.CONFIG_INVALID_FEED)

        mapping: Dict[str, List[str]] = {}
        for entry in entries or []:
            if not isinstance(entry, dict) or not entry.get(name_key):
                raise ConfigurationError(f"{path}: provider entry without a name", error=ErrorCodes.CONFIG_INVALID_FEED)
            mapping.setdefault(entry[name_key], []).extend(entry.get(cidr_key) or [])
        return mapping

    def load(self, update: bool = False) -> CloudClassifier:
        """
        Produce the classifier used for a run.

        Args:
            update: Download fresh feeds and rewrite the cache. A missing
                cache is also downloaded.

        Returns:
            CloudClassifier over the validated table

        Raises:
            ConfigurationError: If no valid table can be produced
        """
        if update or not self.cache_file.exists():
            mapping = self.fetch()
            classifier = CloudClassifier.from_mapping(mapping)
            self.save_cache(mapping)
        else:
            classifier = CloudClassifier.from_mapping(self.load_cache())

        self.logger.info(f"Loaded {len(classifier)} networks for {len(classifier.providers)} providers")
        return classifier
