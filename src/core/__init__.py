"""Core scan logic: data model, capability contracts and the scan orchestrator."""

from core.models import (
    DetectedVulnerability,
    DetectionReport,
    ImageIdentity,
    Layer,
    OSInfo,
    Result,
    ScanOptions,
    SeverityLevel,
)
from core.context import ScanContext
from core.scanner import ImageScanner
from core.cache import DetectionCache

__all__ = [
    "DetectedVulnerability",
    "DetectionReport",
    "ImageIdentity",
    "Layer",
    "OSInfo",
    "Result",
    "ScanOptions",
    "SeverityLevel",
    "ScanContext",
    "ImageScanner",
    "DetectionCache",
]
