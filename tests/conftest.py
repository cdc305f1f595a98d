"""Shared fixtures for CloudResolve tests."""

import threading
import time

import pytest

from cloudresolve.classifier import CloudClassifier
from cloudresolve.core.errors import ResolutionFailure
from cloudresolve.core.models import NameLookupResult


class FakeResolver:
    """
    Stand-in for Resolver that answers from a table instead of the network.

    Args:
        answers: domain -> list of addresses
        failures: domain -> failure reason ("timeout", "nxdomain", ...)
        delays: domain -> seconds to sleep before answering
        block: domain -> Event to wait on before answering
        raises: domain -> exception instance raised from lookup()
    """

    def __init__(self, answers=None, failures=None, delays=None, block=None, raises=None):
        self.answers = answers or {}
        self.failures = failures or {}
        self.delays = delays or {}
        self.block = block or {}
        self.raises = raises or {}
        self.requests = []
        self._lock = threading.Lock()

    def lookup(self, request, cancel_event=None):
        with self._lock:
            self.requests.append(request)

        if request.domain in self.block:
            self.block[request.domain].wait(timeout=5)
        if request.domain in self.delays:
            time.sleep(self.delays[request.domain])
        if request.domain in self.raises:
            raise self.raises[request.domain]
        if request.domain in self.failures:
            failure = ResolutionFailure(request.domain, request.nameserver, reason=self.failures[request.domain])
            return NameLookupResult.failed(request, failure)

        return NameLookupResult(
            domain=request.domain,
            nameserver=request.nameserver,
            addresses=list(self.answers.get(request.domain, [])),
        )


@pytest.fixture
def provider_table():
    """Small provider table with IPv4 and IPv6 ranges."""
    return {
        "AWS": ["3.0.0.0/8", "2600:1f00::/24"],
        "Cloudflare": ["104.16.0.0/13", "2606:4700::/32"],
        "Azure": ["13.64.0.0/16"],
    }


@pytest.fixture
def classifier(provider_table):
    return CloudClassifier.from_mapping(provider_table)


@pytest.fixture
def fake_resolver_class():
    return FakeResolver
