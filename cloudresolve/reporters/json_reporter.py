"""JSON report generator."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..core.models import BatchItem, BatchSummary
from .base import BaseReporter


class JSONReporter(BaseReporter):
    """Generate JSON reports."""

    format_name = "json"
    extension = ".json"

    def generate(self, items: List[BatchItem], filename: Optional[str] = None) -> Path:
        if not filename:
            filename = self.generate_filename()

        report = self._build_report(items)
        content = json.dumps(report, indent=2, default=str, ensure_ascii=False)

        return self.save(content, filename)

    def _build_report(self, items: List[BatchItem]) -> Dict[str, Any]:
        ordered = sorted(items, key=lambda item: item.domain)
        return {
            "metadata": {
                "generated_at": datetime.utcnow().isoformat() + "Z",
                "tool": "CloudResolve",
                "version": __version__,
            },
            "summary": BatchSummary.from_items(ordered).to_dict(),
            "results": [item.to_dict() for item in ordered],
        }
