"""Batch resolution and classification engine."""

import random
import threading
import time
from concurrent.futures import FIRST_COMPLETED, CancelledError, Future, ThreadPoolExecutor, wait
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .classifier import CloudClassifier
from .core.errors import Cancelled, ConfigurationError, ErrorCodes, InvalidAddress, ResolutionFailure
from .core.logger import get_logger
from .core.models import (
    BatchItem,
    BatchSummary,
    ClassificationResult,
    LookupState,
    NameLookupRequest,
    NameLookupResult,
)
from .resolver import Resolver

DEFAULT_MAX_WORKERS = 50


class BatchOrchestrator:
    """
    Resolve a batch of domains concurrently and classify every address.

    Each domain gets one lookup against a nameserver drawn uniformly at
    random from the supplied list. Lookups run on a thread pool; results
    are yielded as they complete and the stream ends only once every
    dispatched lookup has finished. A failed lookup is reported for its
    domain and never retried.
    """

    # How often the collector wakes up to notice cancellation
    poll_interval: float = 0.2

    def __init__(
        self,
        classifier: CloudClassifier,
        resolver: Optional[Resolver] = None,
        max_workers: Optional[int] = None,
        rng: Optional[random.Random] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            classifier: Read-only provider range classifier
            resolver: Resolver used for every lookup (defaults to a 10s one)
            max_workers: Maximum lookups in flight at once (default 50)
            rng: Random source for nameserver selection
            cancel_event: Caller-owned event; when set, the running batch
                is aborted. It is only read, never set or cleared here.
        """
        if max_workers is None:
            max_workers = DEFAULT_MAX_WORKERS
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {max_workers}")
        self.classifier = classifier
        self.resolver = resolver or Resolver()
        self.max_workers = max_workers
        self.rng = rng or random.Random()
        self.caller_event = cancel_event
        # Replaced at the start of every run so one abandoned batch
        # cannot cancel the next.
        self.cancel_event = threading.Event()
        self.logger = get_logger("orchestrator")
        self._states: Dict[str, LookupState] = {}
        self._states_lock = threading.Lock()

    def select_nameserver(self, nameservers: Sequence[str]) -> str:
        """
        Pick one nameserver uniformly at random.

        Raises:
            ConfigurationError: If the list is empty
        """
        if not nameservers:
            raise ConfigurationError(error=ErrorCodes.CONFIG_NO_NAMESERVERS)
        return nameservers[self.rng.randrange(len(nameservers))]

    def cancel(self) -> None:
        """Abort the running batch; unfinished lookups report Cancelled."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set() or self._caller_cancelled()

    def _caller_cancelled(self) -> bool:
        return self.caller_event is not None and self.caller_event.is_set()

    def state_of(self, domain: str) -> Optional[LookupState]:
        """Current lifecycle state of a domain in the latest batch."""
        with self._states_lock:
            return self._states.get(domain)

    def _set_state(self, domain: str, state: LookupState) -> None:
        with self._states_lock:
            self._states[domain] = state

    def _plan(self, domains: Iterable[str], nameservers: Sequence[str]) -> List[NameLookupRequest]:
        """Pair each distinct domain with a randomly chosen nameserver."""
        unique = dict.fromkeys(d.strip() for d in domains if d and d.strip())
        requests = [
            NameLookupRequest(domain=domain, nameserver=self.select_nameserver(nameservers))
            for domain in unique
        ]
        with self._states_lock:
            self._states = {r.domain: LookupState.PENDING for r in requests}
        return requests

    def _lookup(self, request: NameLookupRequest, cancel_event: threading.Event) -> NameLookupResult:
        """Worker body: resolve one request, never raising."""
        if cancel_event.is_set():
            return NameLookupResult.failed(request, Cancelled(request.domain, request.nameserver))

        self._set_state(request.domain, LookupState.RESOLVING)
        start = time.monotonic()
        try:
            return self.resolver.lookup(request, cancel_event=cancel_event)
        except Exception as e:
            self.logger.error(f"Unexpected error resolving {request.domain}: {e}", exc_info=True)
            failure = ResolutionFailure(
                request.domain, request.nameserver, reason="error", details=f"{type(e).__name__}: {e}"
            )
            return NameLookupResult.failed(request, failure, time.monotonic() - start)

    def _collect(self, future: Future, request: NameLookupRequest) -> NameLookupResult:
        try:
            return future.result()
        except CancelledError:
            return NameLookupResult.failed(request, Cancelled(request.domain, request.nameserver))

    def _classify(self, result: NameLookupResult) -> BatchItem:
        """Classify every address of a finished lookup."""
        self._set_state(result.domain, result.state)
        item = BatchItem(lookup=result)

        if not result.succeeded:
            self.logger.debug(f"{result.domain} via {result.nameserver} failed: {result.error}")
            return item

        for address in result.addresses:
            try:
                item.classifications.append(self.classifier.classify(address))
            except InvalidAddress as e:
                self.logger.warning(f"Unclassifiable address for {result.domain}: {e}")
                item.errors.append(str(e))
                item.classifications.append(ClassificationResult(address=address, is_cloud=False))
        return item

    def run(self, domains: Iterable[str], nameservers: Sequence[str]) -> Iterator[BatchItem]:
        """
        Resolve and classify a batch of domains.

        Args:
            domains: Domain names; blanks and duplicates are skipped
            nameservers: Non-empty list of nameserver hosts

        Returns:
            Iterator of BatchItem in completion order, exhausted only after
            every lookup has completed, failed or been cancelled

        Raises:
            ConfigurationError: If ``nameservers`` is empty
        """
        if not nameservers:
            raise ConfigurationError(error=ErrorCodes.CONFIG_NO_NAMESERVERS)
        requests = self._plan(domains, list(nameservers))

        cancel_event = threading.Event()
        if self._caller_cancelled():
            cancel_event.set()
        self.cancel_event = cancel_event
        return self._stream(requests, cancel_event)

    def _stream(self, requests: List[NameLookupRequest], cancel_event: threading.Event) -> Iterator[BatchItem]:
        if not requests:
            return

        workers = min(self.max_workers, len(requests))
        self.logger.info(f"Resolving {len(requests)} domains with {workers} workers")
        start = time.monotonic()
        completed = 0

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="lookup")
        try:
            future_to_request = {executor.submit(self._lookup, r, cancel_event): r for r in requests}
            pending = set(future_to_request)

            while pending:
                done, pending = wait(pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED)
                for future in done:
                    completed += 1
                    yield self._classify(self._collect(future, future_to_request[future]))

                if self._caller_cancelled():
                    cancel_event.set()
                if pending and cancel_event.is_set():
                    self.logger.warning_with_data(
                        f"Batch cancelled with {len(pending)} lookups unfinished",
                        {"unfinished": sorted(future_to_request[f].domain for f in pending)},
                    )
                    for future in pending:
                        future.cancel()
                        request = future_to_request[future]
                        completed += 1
                        yield self._classify(
                            NameLookupResult.failed(request, Cancelled(request.domain, request.nameserver))
                        )
                    pending = set()
        except (KeyboardInterrupt, GeneratorExit):
            # Abandoned by the consumer; do not wait for in-flight lookups.
            cancel_event.set()
            raise
        finally:
            executor.shutdown(wait=not cancel_event.is_set(), cancel_futures=True)

        self.logger.info_with_data(
            f"Completed {completed} lookups in {time.monotonic() - start:.2f}s",
            {"domains": len(requests), "completed": completed},
        )

    def run_batch(self, domains: Iterable[str], nameservers: Sequence[str]) -> List[BatchItem]:
        """Run a batch and return every item once all lookups are done."""
        return list(self.run(domains, nameservers))

    @staticmethod
    def summarize(items: Iterable[BatchItem]) -> BatchSummary:
        return BatchSummary.from_items(items)
