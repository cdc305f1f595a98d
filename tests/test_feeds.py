"""Tests for provider feed formats and the feed loader."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from cloudresolve.core.errors import ConfigurationError
from cloudresolve.feeds import AWSFeed, AzureFeed, FeedLoader, FeedSource, GoogleFeed, PlainTextFeed


AWS_DOCUMENT = {
    "syncToken": "1700000000",
    "createDate": "2024-01-15-10-30-00",
    "prefixes": [
        {"ip_prefix": "3.5.140.0/22", "region": "ap-northeast-2", "service": "AMAZON"},
        {"ip_prefix": "13.34.37.64/27", "region": "ap-southeast-4", "service": "AMAZON"},
    ],
    "ipv6_prefixes": [
        {"ipv6_prefix": "2600:1f14::/35", "region": "us-west-2", "service": "AMAZON"},
    ],
}

AZURE_DOCUMENT = {
    "changeNumber": 1,
    "cloud": "Public",
    "values": [
        {
            "name": "AzureCloud",
            "id": "AzureCloud",
            "properties": {"addressPrefixes": ["13.64.0.0/16", "2603:1000::/40"], "platform": "Azure"},
        },
        {
            "name": "AzureCloud.westus",
            "id": "AzureCloud.westus",
            "properties": {"addressPrefixes": ["13.64.0.0/16", "40.78.0.0/17"], "platform": "Azure"},
        },
    ],
}

GOOGLE_DOCUMENT = {
    "syncToken": "1",
    "prefixes": [
        {"ipv4Prefix": "34.1.208.0/20", "service": "Google Cloud", "scope": "africa-south1"},
        {"ipv6Prefix": "2600:1900:8000::/44", "service": "Google Cloud", "scope": "africa-south1"},
    ],
}

CLOUDFLARE_V4 = b"173.245.48.0/20\n103.21.244.0/22\n"
CLOUDFLARE_V6 = b"2400:cb00::/32\n2606:4700::/32\n\n"


def encode(document):
    return json.dumps(document).encode("utf-8")


class TestAWSFeed:
    """AWS prefix lists."""

    def test_both_families(self):
        pairs = AWSFeed().parse(encode(AWS_DOCUMENT), "AWS")

        assert pairs == [
            ("AWS", "3.5.140.0/22"),
            ("AWS", "13.34.37.64/27"),
            ("AWS", "2600:1f14::/35"),
        ]

    def test_missing_prefixes(self):
        with pytest.raises(ConfigurationError):
            AWSFeed().parse(encode({"syncToken": "1"}), "AWS")

    def test_not_json(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AWSFeed().parse(b"<html>Service Unavailable</html>", "AWS")

        assert exc_info.value.code == "CONFIG-005"


class TestPlainTextFeed:
    """Line-delimited feeds."""

    def test_lines(self):
        pairs = PlainTextFeed().parse(CLOUDFLARE_V4, "Cloudflare")

        assert pairs == [("Cloudflare", "173.245.48.0/20"), ("Cloudflare", "103.21.244.0/22")]

    def test_blank_lines_comments_and_crlf(self):
        pairs = PlainTextFeed().parse(b"# updated daily\r\n2400:cb00::/32\r\n\r\n", "Cloudflare")

        assert pairs == [("Cloudflare", "2400:cb00::/32")]


class TestAzureFeed:
    """Nested service tag records."""

    def test_prefixes_flattened_and_deduplicated(self):
        pairs = AzureFeed().parse(encode(AZURE_DOCUMENT), "Azure")

        assert [cidr for _, cidr in pairs] == ["13.64.0.0/16", "2603:1000::/40", "40.78.0.0/17"]

    def test_byte_order_mark(self):
        raw = b"\xef\xbb\xbf" + encode(AZURE_DOCUMENT)

        assert len(AzureFeed().parse(raw, "Azure")) == 3

    def test_missing_values(self):
        with pytest.raises(ConfigurationError):
            AzureFeed().parse(encode({"cloud": "Public"}), "Azure")


class TestGoogleFeed:
    """Google cloud.json."""

    def test_both_families(self):
        pairs = GoogleFeed().parse(encode(GOOGLE_DOCUMENT), "GCP")

        assert pairs == [("GCP", "34.1.208.0/20"), ("GCP", "2600:1900:8000::/44")]

    def test_entry_without_prefix(self):
        with pytest.raises(ConfigurationError):
            GoogleFeed().parse(encode({"prefixes": [{"service": "Google Cloud"}]}), "GCP")


def make_session(bodies):
    """HTTP session double serving url -> bytes (or an exception)."""
    session = MagicMock()

    def _get(url, timeout=None, headers=None):
        body = bodies[url]
        if isinstance(body, Exception):
            raise body
        response = MagicMock()
        response.content = body
        response.raise_for_status.return_value = None
        return response

    session.get.side_effect = _get
    return session


SOURCES = [
    FeedSource(name="AWS", url="https://aws.test/ip-ranges.json", format="aws", provider="AWS"),
    FeedSource(name="Cloudflare", url="https://cf.test/ips-v4", format="plaintext", provider="Cloudflare"),
    FeedSource(name="Cloudflare6", url="https://cf.test/ips-v6", format="plaintext", provider="Cloudflare"),
    FeedSource(name="Azure", url="https://azure.test/tags.json", format="azure", provider="Azure"),
]

BODIES = {
    "https://aws.test/ip-ranges.json": encode(AWS_DOCUMENT),
    "https://cf.test/ips-v4": CLOUDFLARE_V4,
    "https://cf.test/ips-v6": CLOUDFLARE_V6,
    "https://azure.test/tags.json": encode(AZURE_DOCUMENT),
}


class TestFeedSource:
    """Feed source configuration."""

    def test_provider_defaults_to_name(self):
        source = FeedSource.from_config("AWS", {"url": "https://aws.test", "format": "aws"})

        assert source.provider == "AWS"
        assert isinstance(source.parser, AWSFeed)

    def test_provider_override(self):
        source = FeedSource.from_config("Cloudflare6", {"url": "https://cf.test", "format": "plaintext", "provider": "Cloudflare"})

        assert source.provider == "Cloudflare"

    def test_unknown_format(self):
        with pytest.raises(ConfigurationError):
            FeedSource.from_config("X", {"url": "https://x.test", "format": "xml"})

    def test_missing_url(self):
        with pytest.raises(ConfigurationError):
            FeedSource.from_config("X", {"format": "aws"})


class TestFeedLoaderFetch:
    """Concurrent fetch and single-threaded merge."""

    def test_fetch_merges_in_declaration_order(self, tmp_path):
        loader = FeedLoader(SOURCES, tmp_path / "ip-ranges.json", session=make_session(BODIES))

        mapping = loader.fetch()

        assert list(mapping) == ["AWS", "Cloudflare", "Azure"]
        assert mapping["AWS"] == ["3.5.140.0/22", "13.34.37.64/27", "2600:1f14::/35"]

    def test_cloudflare_both_families_populated(self, tmp_path):
        loader = FeedLoader(SOURCES, tmp_path / "ip-ranges.json", session=make_session(BODIES))

        mapping = loader.fetch()

        assert mapping["Cloudflare"] == ["173.245.48.0/20", "103.21.244.0/22", "2400:cb00::/32", "2606:4700::/32"]

    def test_merge_drops_repeats_per_provider(self):
        merged = FeedLoader.merge([
            [("A", "10.0.0.0/8"), ("A", "10.0.0.0/8")],
            [("B", "10.0.0.0/8"), ("A", "11.0.0.0/8")],
        ])

        assert merged == {"A": ["10.0.0.0/8", "11.0.0.0/8"], "B": ["10.0.0.0/8"]}

    def test_http_failure_is_configuration_error(self, tmp_path):
        bodies = dict(BODIES)
        bodies["https://azure.test/tags.json"] = requests.ConnectionError("connection refused")
        loader = FeedLoader(SOURCES, tmp_path / "ip-ranges.json", session=make_session(bodies))

        with pytest.raises(ConfigurationError) as exc_info:
            loader.fetch()

        assert exc_info.value.code == "NET-006"
        assert "Azure" in str(exc_info.value)

    def test_request_uses_timeout(self, tmp_path):
        session = make_session(BODIES)
        loader = FeedLoader(SOURCES[:1], tmp_path / "ip-ranges.json", timeout=5, session=session)

        loader.fetch()

        assert session.get.call_args.kwargs["timeout"] == 5

    def test_no_sources(self, tmp_path):
        with pytest.raises(ConfigurationError):
            FeedLoader([], tmp_path / "ip-ranges.json").fetch()


class TestFeedLoaderCache:
    """Cache read/write and the load entry point."""

    def test_update_writes_cache_and_classifies(self, tmp_path):
        cache = tmp_path / "ip-ranges.json"
        loader = FeedLoader(SOURCES, cache, session=make_session(BODIES))

        classifier = loader.load(update=True)

        assert cache.exists()
        assert classifier.classify("3.5.141.1").provider == "AWS"
        assert classifier.classify("173.245.48.1").provider == "Cloudflare"
        assert classifier.classify("2606:4700::1").provider == "Cloudflare"
        assert classifier.classify("40.78.1.1").provider == "Azure"

    def test_load_reads_existing_cache_without_network(self, tmp_path):
        cache = tmp_path / "ip-ranges.json"
        FeedLoader(SOURCES, cache).save_cache({"AWS": ["3.0.0.0/8"]})
        session = make_session({})

        classifier = FeedLoader(SOURCES, cache, session=session).load()

        assert classifier.is_cloud_ip("3.5.5.5") == (True, "AWS")
        session.get.assert_not_called()

    def test_missing_cache_triggers_fetch(self, tmp_path):
        cache = tmp_path / "nested" / "ip-ranges.json"
        session = make_session(BODIES)

        FeedLoader(SOURCES, cache, session=session).load()

        assert cache.exists()
        assert session.get.call_count == len(SOURCES)

    def test_malformed_feed_cidr_does_not_overwrite_cache(self, tmp_path):
        cache = tmp_path / "ip-ranges.json"
        loader = FeedLoader(SOURCES, cache)
        loader.save_cache({"AWS": ["3.0.0.0/8"]})
        bodies = dict(BODIES)
        bodies["https://cf.test/ips-v4"] = b"173.245.48.0/20\nnot-a-cidr\n"
        loader.session = make_session(bodies)

        with pytest.raises(ConfigurationError):
            loader.load(update=True)

        assert loader.load_cache() == {"AWS": ["3.0.0.0/8"]}

    def test_cache_round_trip_keeps_provider_order(self, tmp_path):
        loader = FeedLoader(SOURCES, tmp_path / "ip-ranges.json")
        mapping = {"Cloudflare": ["173.245.48.0/20"], "AWS": ["3.0.0.0/8"]}

        loader.save_cache(mapping)

        assert list(loader.load_cache()) == ["Cloudflare", "AWS"]

    def test_legacy_cache_layout(self, tmp_path):
        cache = tmp_path / "ip-ranges.json"
        cache.write_text(json.dumps({"Services": [
            {"Name": "AWS", "IPRange": ["3.0.0.0/8"]},
            {"Name": "AWS", "IPRange": ["2600:1f00::/24"]},
            {"Name": "Azure", "IPRange": None},
        ]}))

        mapping = FeedLoader(SOURCES, cache).load_cache()

        assert mapping == {"AWS": ["3.0.0.0/8", "2600:1f00::/24"], "Azure": []}

    def test_corrupt_cache(self, tmp_path):
        cache = tmp_path / "ip-ranges.json"
        cache.write_text("{not json")

        with pytest.raises(ConfigurationError):
            FeedLoader(SOURCES, cache).load_cache()

    def test_unknown_cache_layout(self, tmp_path):
        cache = tmp_path / "ip-ranges.json"
        cache.write_text(json.dumps(["3.0.0.0/8"]))

        with pytest.raises(ConfigurationError):
            FeedLoader(SOURCES, cache).load_cache()

    def test_missing_cache_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            FeedLoader(SOURCES, tmp_path / "absent.json").load_cache()

        assert exc_info.value.code == "CONFIG-006"
