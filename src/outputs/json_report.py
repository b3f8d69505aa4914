"""
JSON report generator.
"""

import json
import logging
import sys
from typing import Optional, TextIO

from core.models import DetectionReport
from outputs.base import OutputGenerator
from outputs.config import ReportConfig

logger = logging.getLogger(__name__)


class JSONGenerator(OutputGenerator):
    """Writes the detection report as indented JSON."""

    def supports_format(self) -> str:
        return "json"

    def generate(
        self,
        report: DetectionReport,
        config: ReportConfig,
        stream: Optional[TextIO] = None,
    ) -> None:
        config.validate(self.supports_format())

        document = {
            "artifact_name": config.artifact_name,
            **report.to_dict(),
        }

        if config.output_path:
            with open(config.output_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.write("\n")
            logger.info(f"JSON report written to {config.output_path}")
        else:
            out = stream or sys.stdout
            json.dump(document, out, indent=2)
            out.write("\n")
