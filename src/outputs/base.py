"""
Base output generator interface.

Defines the contract that all report generators must implement.
"""

from abc import ABC, abstractmethod
from typing import Optional, TextIO

from core.models import DetectionReport
from outputs.config import ReportConfig


class OutputGenerator(ABC):
    """
    Abstract base class for report generators.

    All output generators (table, JSON, XLSX) must implement this interface.
    """

    @abstractmethod
    def generate(
        self,
        report: DetectionReport,
        config: ReportConfig,
        stream: Optional[TextIO] = None,
    ) -> None:
        """
        Generate a report from a detection report.

        Args:
            report: Detection report to render
            config: Report configuration (artifact name, output path)
            stream: Text stream used when config has no output path
        """
        pass

    @abstractmethod
    def supports_format(self) -> str:
        """
        Return the format this generator supports.

        Returns:
            Format identifier (e.g., "table", "json", "xlsx")
        """
        pass
