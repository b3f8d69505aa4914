"""
Configuration dataclass for report generators.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class ReportConfig:
    """
    Configuration shared by all report generators.

    Attributes:
        artifact_name: Scanned image reference or archive path
        output_path: File to write, None to write to the given stream
    """

    artifact_name: str
    output_path: Optional[Path] = None

    def validate(self, format_type: str) -> None:
        """
        Validate configuration values.

        Raises:
            OutputException: If the configuration cannot be used for the format
        """
        from core.exceptions import OutputException

        if not self.artifact_name:
            raise OutputException(format_type, "artifact name is required")
        if self.output_path is not None and self.output_path.is_dir():
            raise OutputException(format_type, f"output path is a directory: {self.output_path}")
