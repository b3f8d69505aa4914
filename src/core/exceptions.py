"""
Exception hierarchy for imagescan.

Provides a standardized exception hierarchy for consistent error handling
across the application. All exceptions inherit from ImagescanException.

A scan fails in exactly one of two classified ways: AnalysisFailure when the
image identity could not be resolved, DetectionFailure when the image was
identified but detection did not complete. Both keep the underlying cause.
"""

from typing import Optional


class ImagescanException(Exception):
    """Base exception for all imagescan errors."""
    pass


class ScanException(ImagescanException):
    """A scan call failed; base for the two classified failure kinds."""

    prefix = ""

    def __init__(self, cause: BaseException):
        """
        Initialize scan exception.

        Args:
            cause: Underlying error raised by a capability
        """
        self.cause = cause
        super().__init__(f"{self.prefix}{cause}")


class AnalysisFailure(ScanException):
    """Image identity resolution failed; detection was not attempted."""

    prefix = "failed analysis: "


class DetectionFailure(ScanException):
    """Detection failed after the image identity was resolved."""

    prefix = "scan failed: "


class ScanCancelledError(ImagescanException):
    """The scan context was cancelled or its deadline passed."""
    pass


class ResolverError(ImagescanException):
    """An identity resolver could not inspect the image."""

    def __init__(self, image: str, reason: str):
        """
        Initialize resolver error.

        Args:
            image: Image reference or archive path being inspected
            reason: Reason for failure
        """
        self.image = image
        self.reason = reason
        super().__init__(f"unable to inspect {image}: {reason}")


class DetectorError(ImagescanException):
    """
    A detector could not produce findings.

    The OS and end-of-support values known when the failure happened may be
    attached for diagnostics. They carry no results and callers do not use
    them to decide the outcome of a scan.
    """

    def __init__(
        self,
        reason: str,
        os_info: Optional["OSInfo"] = None,
        end_of_support: bool = False,
    ):
        self.reason = reason
        self.os_info = os_info
        self.end_of_support = end_of_support
        super().__init__(reason)


class ValidationException(ImagescanException):
    """Input validation failed."""

    def __init__(self, message: str, field: str = None):
        """
        Initialize validation exception.

        Args:
            message: Validation error message
            field: Field that failed validation (optional)
        """
        self.field = field
        if field:
            super().__init__(f"Validation failed for {field}: {message}")
        else:
            super().__init__(f"Validation failed: {message}")


class CacheException(ImagescanException):
    """Cache operation failed."""
    pass


class IntegrationException(ImagescanException):
    """External integration/API failed."""

    def __init__(self, service: str, reason: str):
        """
        Initialize integration exception.

        Args:
            service: Service name that failed
            reason: Reason for failure
        """
        self.service = service
        self.reason = reason
        super().__init__(f"{service} integration failed: {reason}")


class OutputException(ImagescanException):
    """Report generation failed."""

    def __init__(self, format_type: str, reason: str):
        """
        Initialize output exception.

        Args:
            format_type: Output format (table, json, xlsx)
            reason: Reason for failure
        """
        self.format_type = format_type
        self.reason = reason
        super().__init__(f"Failed to generate {format_type} output: {reason}")


class ConfigurationException(ImagescanException):
    """Configuration is invalid or missing."""
    pass


__all__ = [
    "ImagescanException",
    "ScanException",
    "AnalysisFailure",
    "DetectionFailure",
    "ScanCancelledError",
    "ResolverError",
    "DetectorError",
    "ValidationException",
    "CacheException",
    "IntegrationException",
    "OutputException",
    "ConfigurationException",
]
