"""
XLSX format definitions and factory.

Provides centralized format management for vulnerability workbooks.
"""

import xlsxwriter


class OutputFormatter:
    """Factory for creating consistent XLSX cell formats."""

    # Base format properties shared by all formats
    BASE_FORMAT = {
        "border": 1,
        "font_name": "Arial",
        "font_size": 10,
        "align": "left",
        "valign": "vcenter",
    }

    COLORS = {
        "blue": "#4285f4",
        "lightgrey": "#D9D9D9",
        "lightyellow": "#FFF2CC",
        "white": "#FFFFFF",
        "critical": "#F4CCCC",
        "high": "#FCE5CD",
        "medium": "#FFF2CC",
        "low": "#D9EAD3",
    }

    SEVERITY_FORMATS = {
        "CRITICAL": "body_critical",
        "HIGH": "body_high",
        "MEDIUM": "body_medium",
        "LOW": "body_low",
    }

    def __init__(self, workbook: xlsxwriter.Workbook):
        """
        Initialize formatter with workbook.

        Args:
            workbook: XlsxWriter workbook instance
        """
        self.workbook = workbook
        self.formats = self._create_all_formats()

    def _create_format(
        self,
        bg_color: str = None,
        font_color: str = "black",
        bold: bool = False,
    ) -> xlsxwriter.format.Format:
        """
        Create a format with base properties plus overrides.

        Args:
            bg_color: Background color (hex or color name)
            font_color: Font color (default: black)
            bold: Whether text should be bold

        Returns:
            Configured format object
        """
        format_dict = self.BASE_FORMAT.copy()

        if bg_color:
            format_dict["bg_color"] = bg_color
        if font_color != "black":
            format_dict["font_color"] = font_color
        if bold:
            format_dict["bold"] = True

        return self.workbook.add_format(format_dict)

    def _create_all_formats(self) -> dict:
        return {
            "header_blue": self._create_format(
                bg_color=self.COLORS["blue"],
                font_color="white",
                bold=True,
            ),
            "header_lightgrey": self._create_format(
                bg_color=self.COLORS["lightgrey"],
                bold=True,
            ),
            "header_lightyellow": self._create_format(
                bg_color=self.COLORS["lightyellow"],
                bold=True,
            ),
            "body_white": self._create_format(),
            "body_critical": self._create_format(bg_color=self.COLORS["critical"]),
            "body_high": self._create_format(bg_color=self.COLORS["high"]),
            "body_medium": self._create_format(bg_color=self.COLORS["medium"]),
            "body_low": self._create_format(bg_color=self.COLORS["low"]),
        }

    def get(self, format_name: str) -> xlsxwriter.format.Format:
        """
        Get a format by name.

        Raises:
            KeyError: If format name doesn't exist
        """
        return self.formats[format_name]

    def for_severity(self, severity: str) -> xlsxwriter.format.Format:
        """Body format for a severity cell, white for anything unranked."""
        return self.formats[self.SEVERITY_FORMATS.get(severity, "body_white")]
