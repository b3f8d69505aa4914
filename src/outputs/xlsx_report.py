"""
XLSX report generator.

Writes a workbook with a summary sheet (one row per result with severity
counts) and a findings sheet listing every detected vulnerability.
"""

import logging
from typing import Optional, TextIO

import xlsxwriter

from core.exceptions import OutputException
from core.models import DetectionReport
from outputs.base import OutputGenerator
from outputs.config import ReportConfig
from outputs.xlsx_formats import OutputFormatter

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["Target", "Type", "Total", "Critical", "High", "Medium", "Low", "Unknown"]
FINDING_COLUMNS = [
    "Target",
    "Library",
    "Vulnerability ID",
    "Severity",
    "Installed Version",
    "Fixed Version",
    "Layer Digest",
    "Layer DiffID",
]


class XLSXGenerator(OutputGenerator):
    """
    Vulnerability workbook generator (XLSX format).

    Requires an output path: workbooks are never written to a text stream.
    """

    def supports_format(self) -> str:
        """Return format identifier."""
        return "xlsx"

    def generate(
        self,
        report: DetectionReport,
        config: ReportConfig,
        stream: Optional[TextIO] = None,
    ) -> None:
        config.validate(self.supports_format())
        if config.output_path is None:
            raise OutputException("xlsx", "an output file is required for xlsx reports")

        logger.info(f"Generating vulnerability workbook: {config.output_path}")

        workbook = xlsxwriter.Workbook(str(config.output_path))
        formatter = OutputFormatter(workbook)

        self._write_summary(workbook.add_worksheet("summary"), formatter, report, config)
        self._write_findings(workbook.add_worksheet("vulnerabilities"), formatter, report)

        workbook.close()
        logger.info(f"Vulnerability workbook generated: {config.output_path}")

    def _write_summary(self, worksheet, formatter: OutputFormatter, report: DetectionReport, config: ReportConfig):
        row = 0
        worksheet.write_row(row, 0, ["Artifact", config.artifact_name], formatter.get("header_lightyellow"))
        row += 1
        os_label = str(report.os_info) if report.os_info else "unknown"
        worksheet.write_row(row, 0, ["OS", os_label], formatter.get("body_white"))
        row += 1
        worksheet.write_row(
            row, 0, ["End of support", "yes" if report.end_of_support else "no"], formatter.get("body_white")
        )
        row += 2

        worksheet.write_row(row, 0, SUMMARY_COLUMNS, formatter.get("header_blue"))
        row += 1
        for result in report.results:
            counts = result.severity_counts()
            worksheet.write_row(
                row,
                0,
                [
                    result.target,
                    result.ecosystem_type or "os",
                    counts.total,
                    counts.critical,
                    counts.high,
                    counts.medium,
                    counts.low,
                    counts.unknown,
                ],
                formatter.get("body_white"),
            )
            row += 1

        worksheet.autofit()

    def _write_findings(self, worksheet, formatter: OutputFormatter, report: DetectionReport):
        worksheet.write_row(0, 0, FINDING_COLUMNS, formatter.get("header_blue"))
        worksheet.freeze_panes(1, 0)

        row = 1
        body = formatter.get("body_white")
        for result in report.results:
            for vuln in result.vulnerabilities:
                layer = vuln.layer
                worksheet.write_row(
                    row,
                    0,
                    [
                        result.target,
                        vuln.pkg_name,
                        vuln.vulnerability_id,
                    ],
                    body,
                )
                worksheet.write(row, 3, vuln.severity, formatter.for_severity(vuln.severity))
                worksheet.write_row(
                    row,
                    4,
                    [
                        vuln.installed_version,
                        vuln.fixed_version,
                        layer.digest if layer else "",
                        layer.diff_id if layer else "",
                    ],
                    body,
                )
                row += 1

        if row > 1:
            worksheet.autofilter(0, 0, row - 1, len(FINDING_COLUMNS) - 1)
        worksheet.autofit()
