"""
Error classification for registry retry logic.

Categorizes registry/HTTP errors into classes that determine
retry strategy and handling inside identity resolvers.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional
import re


class ErrorCategory(str, Enum):
    """
    Error categories that determine retry strategy.
    """
    PERMANENT_INFRASTRUCTURE = "permanent_infrastructure"
    """DNS errors, invalid hostnames - don't retry"""

    TRANSIENT_AUTH = "transient_auth"
    """Auth token expired/invalid - retry immediately with token refresh"""

    TRANSIENT_NETWORK = "transient_network"
    """Timeouts, connection issues, server errors - retry with backoff"""

    RATE_LIMIT = "rate_limit"
    """Rate limiting - retry with exponential backoff"""

    PERMANENT_NOT_FOUND = "permanent_not_found"
    """Image or manifest not found - don't retry"""

    UNKNOWN = "unknown"
    """Unknown error - don't retry"""


@dataclass(frozen=True)
class ClassifiedError:
    """
    An error with its classification and metadata.
    """
    category: ErrorCategory
    original_message: str
    retry_recommended: bool
    retry_delay: float = 0.0  # seconds
    requires_auth_refresh: bool = False


class ErrorClassifier:
    """
    Classifies registry errors into categories.
    """

    # DNS and infrastructure patterns
    DNS_PATTERNS = [
        r"no such host",
        r"could not resolve host",
        r"name or service not known",
        r"temporary failure in name resolution",
        r"nodename nor servname provided",
        r"failed to resolve",
    ]

    # Authentication patterns
    AUTH_PATTERNS = [
        r"unauthorized",
        r"authentication required",
        r"token expired",
        r"invalid token",
    ]

    # Rate limit patterns
    RATE_LIMIT_PATTERNS = [
        r"toomanyrequests",
        r"rate limit",
        r"too many requests",
    ]

    # Network/timeout patterns
    NETWORK_PATTERNS = [
        r"timeout",
        r"timed out",
        r"connection refused",
        r"connection reset",
        r"connection aborted",
        r"network is unreachable",
        r"broken pipe",
        r"remote end closed",
    ]

    # Not found patterns
    NOT_FOUND_PATTERNS = [
        r"not found",
        r"manifest unknown",
        r"name unknown",
        r"does not exist",
    ]

    @classmethod
    def classify(cls, error_message: str, status_code: Optional[int] = None) -> ClassifiedError:
        """
        Classify an error based on HTTP status first, then message patterns.

        Args:
            error_message: Error message from the registry or HTTP stack
            status_code: HTTP status code if a response was received

        Returns:
            ClassifiedError with category and retry recommendations
        """
        error_lower = error_message.lower()

        # Priority 1: HTTP status code (more reliable than pattern matching)
        if status_code is not None:
            if status_code == 401:
                return ClassifiedError(
                    category=ErrorCategory.TRANSIENT_AUTH,
                    original_message=error_message,
                    retry_recommended=True,
                    requires_auth_refresh=True,
                )
            elif status_code in (403, 404):
                # Registries answer 403 for private repositories without access
                return ClassifiedError(
                    category=ErrorCategory.PERMANENT_NOT_FOUND,
                    original_message=error_message,
                    retry_recommended=False,
                )
            elif status_code == 429:
                return ClassifiedError(
                    category=ErrorCategory.RATE_LIMIT,
                    original_message=error_message,
                    retry_recommended=True,
                    retry_delay=10.0,
                )
            elif status_code >= 500:
                return ClassifiedError(
                    category=ErrorCategory.TRANSIENT_NETWORK,
                    original_message=error_message,
                    retry_recommended=True,
                    retry_delay=1.0,
                )

        # Priority 2: Fall back to pattern matching for unclassified errors
        # Check DNS/infrastructure errors (highest priority - permanent)
        if any(re.search(pattern, error_lower) for pattern in cls.DNS_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.PERMANENT_INFRASTRUCTURE,
                original_message=error_message,
                retry_recommended=False,
            )

        if any(re.search(pattern, error_lower) for pattern in cls.AUTH_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.TRANSIENT_AUTH,
                original_message=error_message,
                retry_recommended=True,
                requires_auth_refresh=True,
            )

        if any(re.search(pattern, error_lower) for pattern in cls.RATE_LIMIT_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.RATE_LIMIT,
                original_message=error_message,
                retry_recommended=True,
                retry_delay=10.0,
            )

        if any(re.search(pattern, error_lower) for pattern in cls.NOT_FOUND_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.PERMANENT_NOT_FOUND,
                original_message=error_message,
                retry_recommended=False,
            )

        if any(re.search(pattern, error_lower) for pattern in cls.NETWORK_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.TRANSIENT_NETWORK,
                original_message=error_message,
                retry_recommended=True,
                retry_delay=1.0,
            )

        return ClassifiedError(
            category=ErrorCategory.UNKNOWN,
            original_message=error_message,
            retry_recommended=False,
        )
