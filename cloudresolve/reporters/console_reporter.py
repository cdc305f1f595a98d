"""Colored console output for lookup results."""

import sys
import threading
from typing import Optional, TextIO

from colorama import Fore, Style

from ..core.errors import format_error
from ..core.models import BatchItem, BatchSummary


class ConsoleReporter:
    """
    Print one line per classified address, or one failure line per domain.

    Lines are written as items arrive so long batches show progress.
    """

    def __init__(self, stream: Optional[TextIO] = None, use_colors: bool = True):
        self.stream = stream or sys.stdout
        self.use_colors = use_colors
        self._lock = threading.Lock()

    def _paint(self, color: str, text: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{Style.BRIGHT}{text}{Style.RESET_ALL}"

    def format_item(self, item: BatchItem) -> str:
        lookup = item.lookup
        if not lookup.succeeded:
            reason = format_error(lookup.error.error)
            return self._paint(
                Fore.YELLOW,
                f"[!] Lookup failed | Domain: {lookup.domain} | Nameserver: {lookup.nameserver} | Reason: {reason}",
            )

        lines = []
        for _domain, _nameserver, address, is_cloud, provider in item.rows():
            if is_cloud:
                lines.append(self._paint(
                    Fore.GREEN,
                    f"[+] Is Cloud Service: {is_cloud} | Service: {provider} | IP: {address} | Domain: {lookup.domain}",
                ))
            else:
                lines.append(self._paint(
                    Fore.RED,
                    f"[-] Is Cloud Service: {is_cloud} | IP: {address} | Domain: {lookup.domain}",
                ))
        return "\n".join(lines)

    def emit(self, item: BatchItem) -> None:
        """Write the lines for one finished domain."""
        text = self.format_item(item)
        with self._lock:
            print(text, file=self.stream, flush=True)

    def print_summary(self, summary: BatchSummary) -> None:
        providers = ", ".join(f"{name}: {count}" for name, count in sorted(summary.providers.items()))
        with self._lock:
            print("\n" + "=" * 60, file=self.stream)
            print(f"Domains:          {summary.domains}", file=self.stream)
            print(f"Resolved:         {summary.resolved}", file=self.stream)
            print(f"Failed:           {summary.failed}", file=self.stream)
            if summary.cancelled:
                print(f"Cancelled:        {summary.cancelled}", file=self.stream)
            print(f"Addresses:        {summary.addresses}", file=self.stream)
            print(f"Cloud addresses:  {summary.cloud_addresses}", file=self.stream)
            if providers:
                print(f"By provider:      {providers}", file=self.stream)
            print("=" * 60, file=self.stream)
