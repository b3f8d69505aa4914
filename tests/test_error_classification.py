"""
Tests for registry error classification.
"""

import pytest

from core.error_classification import ErrorCategory, ErrorClassifier


class TestStatusCodeClassification:
    """HTTP status codes take priority over message patterns."""

    def test_unauthorized(self):
        """401 asks for a token refresh."""
        result = ErrorClassifier.classify("401 Client Error", status_code=401)
        assert result.category == ErrorCategory.TRANSIENT_AUTH
        assert result.retry_recommended
        assert result.requires_auth_refresh

    @pytest.mark.parametrize("status", [403, 404])
    def test_not_found(self, status):
        """403 and 404 are permanent."""
        result = ErrorClassifier.classify("timed out", status_code=status)
        assert result.category == ErrorCategory.PERMANENT_NOT_FOUND
        assert not result.retry_recommended

    def test_rate_limited(self):
        """429 backs off."""
        result = ErrorClassifier.classify("429", status_code=429)
        assert result.category == ErrorCategory.RATE_LIMIT
        assert result.retry_delay == 10.0

    @pytest.mark.parametrize("status", [500, 502, 503])
    def test_server_errors(self, status):
        """5xx responses are retried."""
        result = ErrorClassifier.classify("server error", status_code=status)
        assert result.category == ErrorCategory.TRANSIENT_NETWORK
        assert result.retry_recommended


class TestMessageClassification:
    """Pattern matching when no status code is available."""

    @pytest.mark.parametrize("message,category,retry", [
        ("dial tcp: lookup foo.invalid: no such host", ErrorCategory.PERMANENT_INFRASTRUCTURE, False),
        ("Failed to resolve 'registry.example'", ErrorCategory.PERMANENT_INFRASTRUCTURE, False),
        ("UNAUTHORIZED: authentication required", ErrorCategory.TRANSIENT_AUTH, True),
        ("TOOMANYREQUESTS: rate limit exceeded", ErrorCategory.RATE_LIMIT, True),
        ("MANIFEST_UNKNOWN: manifest unknown", ErrorCategory.PERMANENT_NOT_FOUND, False),
        ("Read timed out. (read timeout=30)", ErrorCategory.TRANSIENT_NETWORK, True),
        ("Connection reset by peer", ErrorCategory.TRANSIENT_NETWORK, True),
        ("something odd happened", ErrorCategory.UNKNOWN, False),
    ])
    def test_patterns(self, message, category, retry):
        """Messages map onto categories with retry advice."""
        result = ErrorClassifier.classify(message)
        assert result.category == category
        assert result.retry_recommended == retry
        assert result.original_message == message

    def test_dns_wins_over_network(self):
        """DNS failures are permanent even when the message also mentions a timeout."""
        result = ErrorClassifier.classify("temporary failure in name resolution (timeout)")
        assert result.category == ErrorCategory.PERMANENT_INFRASTRUCTURE

    def test_unmatched_status_falls_back_to_patterns(self):
        """Status codes without a rule fall through to message patterns."""
        result = ErrorClassifier.classify("connection refused", status_code=418)
        assert result.category == ErrorCategory.TRANSIENT_NETWORK
