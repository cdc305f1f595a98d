"""Nameserver-pinned DNS resolution."""

import socket
import threading
import time
from typing import List, Optional, Sequence

import dns.exception
import dns.inet
import dns.resolver

from .core.errors import Cancelled, ResolutionFailure
from .core.logger import get_logger
from .core.models import NameLookupRequest, NameLookupResult

DEFAULT_TIMEOUT = 10.0
DNS_PORT = 53


class Resolver:
    """
    Resolve domains against one explicitly chosen nameserver per call.

    Every call builds its own ``dns.resolver.Resolver`` that ignores the
    system configuration, so concurrent calls share no mutable state. A
    resolution problem never raises: it is returned on the result as a
    ResolutionFailure with an empty address list.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        port: int = DNS_PORT,
        record_types: Sequence[str] = ("A", "AAAA"),
    ):
        """
        Initialize resolver.

        Args:
            timeout: Upper bound in seconds for one domain's lookup,
                covering every record type queried
            port: Nameserver port
            record_types: Address record types to query, in output order
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = float(timeout)
        self.port = port
        self.record_types = tuple(record_types)
        self.logger = get_logger("resolver")

    def _nameserver_address(self, request: NameLookupRequest, deadline: float) -> str:
        """
        Return the nameserver as an IP literal, looking up host names.

        The system lookup cannot be interrupted, so a slow one may overrun
        the deadline; the lookup then fails as a timeout before any query.
        """
        nameserver = request.nameserver
        if dns.inet.is_address(nameserver):
            return nameserver
        try:
            infos = socket.getaddrinfo(nameserver, self.port, proto=socket.IPPROTO_UDP)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionFailure(
                request.domain, nameserver, reason="bad_nameserver",
                details=f"cannot use nameserver {nameserver!r}: {e}",
            ) from e
        if time.monotonic() >= deadline:
            raise ResolutionFailure(
                request.domain, nameserver, reason="timeout",
                details=f"looking up nameserver {nameserver!r} took longer than {self.timeout:g}s",
            )
        return infos[0][4][0]

    def _build(self, nameserver_ip: str) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = [nameserver_ip]
        resolver.port = self.port
        resolver.timeout = self.timeout
        resolver.lifetime = self.timeout
        return resolver

    def _query(
        self,
        resolver: dns.resolver.Resolver,
        request: NameLookupRequest,
        deadline: float,
        cancel_event: Optional[threading.Event],
    ) -> List[str]:
        addresses: List[str] = []
        for record_type in self.record_types:
            if cancel_event is not None and cancel_event.is_set():
                raise Cancelled(request.domain, request.nameserver)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                if addresses:
                    break
                raise ResolutionFailure(request.domain, request.nameserver, reason="timeout")
            resolver.lifetime = remaining

            try:
                answer = resolver.resolve(request.domain, record_type, search=False)
            except dns.resolver.NoAnswer:
                continue
            except dns.resolver.NXDOMAIN as e:
                raise ResolutionFailure(
                    request.domain, request.nameserver, reason="nxdomain", details=str(e)
                ) from e
            except dns.exception.Timeout as e:
                if addresses:
                    self.logger.debug(f"{record_type} query for {request.domain} timed out, keeping earlier answers")
                    break
                raise ResolutionFailure(
                    request.domain, request.nameserver, reason="timeout",
                    details=f"no answer from {request.nameserver} within {self.timeout:g}s",
                ) from e
            except dns.resolver.NoNameservers as e:
                if addresses:
                    break
                raise ResolutionFailure(
                    request.domain, request.nameserver, reason="no_nameservers", details=str(e)
                ) from e
            except (dns.exception.DNSException, OSError, ValueError) as e:
                if addresses:
                    break
                raise ResolutionFailure(
                    request.domain, request.nameserver, reason="error",
                    details=f"{type(e).__name__}: {e}",
                ) from e

            addresses.extend(rdata.to_text() for rdata in answer)

        if not addresses:
            raise ResolutionFailure(
                request.domain, request.nameserver, reason="no_answer",
                details=f"{request.domain} has no {'/'.join(self.record_types)} records",
            )
        return addresses

    def lookup(
        self,
        request: NameLookupRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> NameLookupResult:
        """
        Resolve one request.

        Args:
            request: Domain and the nameserver it is pinned to
            cancel_event: Optional event; once set, remaining queries for
                this request are skipped and the result is Cancelled

        Returns:
            NameLookupResult, successful or carrying a ResolutionFailure
        """
        start = time.monotonic()
        deadline = start + self.timeout
        try:
            resolver = self._build(self._nameserver_address(request, deadline))
            addresses = self._query(resolver, request, deadline, cancel_event)
        except ResolutionFailure as failure:
            self.logger.debug(f"Lookup failed for {request.domain} via {request.nameserver}: {failure}")
            return NameLookupResult.failed(request, failure, time.monotonic() - start)
        except ValueError as e:
            failure = ResolutionFailure(
                request.domain, request.nameserver, reason="bad_nameserver", details=str(e)
            )
            return NameLookupResult.failed(request, failure, time.monotonic() - start)

        return NameLookupResult(
            domain=request.domain,
            nameserver=request.nameserver,
            addresses=addresses,
            duration_seconds=time.monotonic() - start,
        )

    def resolve(self, domain: str, nameserver: str) -> NameLookupResult:
        """Resolve ``domain`` through ``nameserver``."""
        return self.lookup(NameLookupRequest(domain=domain, nameserver=nameserver))


def resolve(domain: str, nameserver: str, timeout: float = DEFAULT_TIMEOUT) -> NameLookupResult:
    """Resolve one domain through one nameserver with a fixed timeout."""
    return Resolver(timeout=timeout).resolve(domain, nameserver)
