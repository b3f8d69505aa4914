"""
imagescan - Container Image Vulnerability Scanner

Detects known vulnerabilities in container images by resolving the image
identity and layers, then matching OS packages and application dependencies
against a vulnerability database.
"""

__version__ = "0.3.0"

from core.models import (
    DetectedVulnerability,
    ImageIdentity,
    Result,
    ScanOptions,
)

__all__ = [
    "DetectedVulnerability",
    "ImageIdentity",
    "Result",
    "ScanOptions",
]
