"""Tests for reporter modules - console and JSON."""

import io
import json
import tempfile
from pathlib import Path

import pytest
from colorama import Fore

from cloudresolve.core.errors import ResolutionFailure
from cloudresolve.core.models import (
    BatchItem,
    BatchSummary,
    ClassificationResult,
    NameLookupRequest,
    NameLookupResult,
)
from cloudresolve.reporters import ConsoleReporter, JSONReporter


class MockConfig:
    """Mock configuration for testing."""

    def __init__(self, output_dir=None):
        self._output_dir = output_dir or tempfile.mkdtemp()

    @property
    def output_dir(self):
        return Path(self._output_dir)

    def get(self, key, default=None):
        if key == "output.timestamp_format":
            return "%Y-%m-%d_%H-%M-%S"
        return default


@pytest.fixture
def mock_config():
    """Create mock config with temp directory."""
    config = MockConfig()
    yield config
    import shutil
    if Path(config._output_dir).exists():
        shutil.rmtree(config._output_dir)


@pytest.fixture
def sample_items():
    """A resolved domain with mixed addresses and a failed one."""
    resolved = BatchItem(
        lookup=NameLookupResult(
            domain="app.example.com",
            nameserver="203.0.113.1",
            addresses=["3.5.5.5", "8.8.8.8"],
        ),
        classifications=[
            ClassificationResult("3.5.5.5", True, "AWS"),
            ClassificationResult("8.8.8.8", False, None),
        ],
    )
    request = NameLookupRequest(domain="gone.example.com", nameserver="203.0.113.2")
    failed = BatchItem(lookup=NameLookupResult.failed(
        request, ResolutionFailure(request.domain, request.nameserver, reason="nxdomain")
    ))
    return [resolved, failed]


class TestConsoleReporter:
    """Test console output lines."""

    def test_cloud_line(self, sample_items):
        stream = io.StringIO()
        ConsoleReporter(stream=stream, use_colors=False).emit(sample_items[0])

        lines = stream.getvalue().splitlines()
        assert lines[0] == "[+] Is Cloud Service: True | Service: AWS | IP: 3.5.5.5 | Domain: app.example.com"
        assert lines[1] == "[-] Is Cloud Service: False | IP: 8.8.8.8 | Domain: app.example.com"

    def test_failure_line(self, sample_items):
        stream = io.StringIO()
        ConsoleReporter(stream=stream, use_colors=False).emit(sample_items[1])

        line = stream.getvalue().strip()
        assert line.startswith("[!] Lookup failed | Domain: gone.example.com | Nameserver: 203.0.113.2")
        assert "NET-003" in line

    def test_colors(self, sample_items):
        stream = io.StringIO()
        ConsoleReporter(stream=stream, use_colors=True).emit(sample_items[0])

        output = stream.getvalue()
        assert Fore.GREEN in output
        assert Fore.RED in output

    def test_summary(self, sample_items):
        stream = io.StringIO()
        ConsoleReporter(stream=stream, use_colors=False).print_summary(BatchSummary.from_items(sample_items))

        output = stream.getvalue()
        assert "Domains:          2" in output
        assert "Failed:           1" in output
        assert "AWS: 1" in output


class TestJSONReporter:
    """Test JSON report generation."""

    def test_generate_creates_file(self, mock_config, sample_items):
        reporter = JSONReporter(mock_config)
        path = reporter.generate(sample_items)

        assert path.exists()
        assert path.suffix == ".json"
        assert path.name.startswith("cloudresolve_")

    def test_report_structure(self, mock_config, sample_items):
        path = JSONReporter(mock_config).generate(sample_items, filename="out.json")

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["metadata"]["tool"] == "CloudResolve"
        assert data["summary"]["domains"] == 2
        assert data["summary"]["cloud_addresses"] == 1
        assert [r["domain"] for r in data["results"]] == ["app.example.com", "gone.example.com"]

    def test_results_content(self, mock_config, sample_items):
        path = JSONReporter(mock_config).generate(sample_items, filename="out.json")

        results = {r["domain"]: r for r in json.loads(path.read_text(encoding="utf-8"))["results"]}

        assert results["app.example.com"]["classifications"][0] == {
            "address": "3.5.5.5", "is_cloud": True, "provider": "AWS",
        }
        assert results["gone.example.com"]["state"] == "failed"
        assert results["gone.example.com"]["error"]["reason"] == "nxdomain"
        assert results["gone.example.com"]["addresses"] == []

    def test_absolute_filename(self, mock_config, sample_items, tmp_path):
        target = tmp_path / "elsewhere" / "results.json"

        path = JSONReporter(mock_config).generate(sample_items, filename=str(target))

        assert path == target
        assert target.exists()
