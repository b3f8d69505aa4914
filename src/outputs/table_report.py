"""
Plain-text table report generator.

Prints one section per result: the target, a severity summary line and a
table of findings.
"""

import logging
import sys
from typing import Optional, TextIO

from core.models import DetectionReport, Result
from outputs.base import OutputGenerator
from outputs.config import ReportConfig

logger = logging.getLogger(__name__)

COLUMNS = ("Library", "Vulnerability ID", "Severity", "Installed Version", "Fixed Version")


class TableGenerator(OutputGenerator):
    """Human-readable report for terminals."""

    def supports_format(self) -> str:
        return "table"

    def generate(
        self,
        report: DetectionReport,
        config: ReportConfig,
        stream: Optional[TextIO] = None,
    ) -> None:
        config.validate(self.supports_format())

        text = self.render(report)
        if config.output_path:
            config.output_path.write_text(text, encoding="utf-8")
            logger.info(f"Table report written to {config.output_path}")
        else:
            (stream or sys.stdout).write(text)

    def render(self, report: DetectionReport) -> str:
        """Render every result section into a single string."""
        return "".join(self._render_result(result) for result in report.results)

    def _render_result(self, result: Result) -> str:
        counts = result.severity_counts()
        heading = result.target
        if result.ecosystem_type:
            heading = f"{heading} ({result.ecosystem_type})"

        lines = [
            "",
            heading,
            "=" * len(heading),
            (
                f"Total: {counts.total} (CRITICAL: {counts.critical}, HIGH: {counts.high}, "
                f"MEDIUM: {counts.medium}, LOW: {counts.low}, UNKNOWN: {counts.unknown})"
            ),
            "",
        ]

        if result.vulnerabilities:
            rows = [
                (v.pkg_name, v.vulnerability_id, v.severity, v.installed_version, v.fixed_version)
                for v in result.vulnerabilities
            ]
            widths = [
                max(len(COLUMNS[i]), *(len(row[i]) for row in rows))
                for i in range(len(COLUMNS))
            ]
            separator = "+-" + "-+-".join("-" * w for w in widths) + "-+"
            lines.append(separator)
            lines.append(_format_row(COLUMNS, widths))
            lines.append(separator)
            lines.extend(_format_row(row, widths) for row in rows)
            lines.append(separator)

        return "\n".join(lines) + "\n"


def _format_row(cells, widths) -> str:
    return "| " + " | ".join(cell.ljust(w) for cell, w in zip(cells, widths)) + " |"
