"""
Centralized configuration constants for imagescan.

This module provides a single source of truth for configuration values
that are used across multiple modules, making them easier to update
and maintain.
"""

# ============================================================================
# Platform and Architecture
# ============================================================================

DEFAULT_PLATFORM = "linux/amd64"
"""Default container platform used when pulling or selecting manifests."""

# ============================================================================
# Vulnerability Categories
# ============================================================================

VULN_TYPE_OS = "os"
"""Category for vulnerabilities in OS distribution packages."""

VULN_TYPE_LIBRARY = "library"
"""Category for vulnerabilities in application dependencies (lockfiles, jars, ...)."""

VULN_TYPES = (VULN_TYPE_OS, VULN_TYPE_LIBRARY)
"""All recognized vulnerability categories."""

OS_PACKAGE_TYPES = frozenset({"apk", "deb", "rpm", "portage", "alpm"})
"""Grype artifact types that belong to the OS package manager."""

ECOSYSTEM_TYPES = {
    "npm": "npm",
    "python": "pip",
    "java-archive": "jar",
    "go-module": "gobinary",
    "gem": "bundler",
    "rust-crate": "cargo",
    "php-composer": "composer",
    "dotnet": "nuget",
    "binary": "binary",
}
"""Mapping of Grype artifact types to the ecosystem tag reported on results."""

# ============================================================================
# Output
# ============================================================================

DEFAULT_OUTPUT_FORMAT = "table"
"""Default report format."""

OUTPUT_FORMATS = ("table", "json", "xlsx")
"""Supported report formats."""

# ============================================================================
# Cache
# ============================================================================

DEFAULT_CACHE_DIR = ".cache/imagescan"
"""Default directory for detection cache entries."""

# ============================================================================
# Timeouts (in seconds)
# ============================================================================

DEFAULT_SCAN_TIMEOUT = 300
"""Default deadline for identity resolution (5 minutes)."""

GRYPE_TIMEOUT = 600
"""Timeout for Grype vulnerability scanning (10 minutes)."""

VERSION_CHECK_TIMEOUT = 5
"""Timeout for tool version checks (5 seconds)."""

API_REQUEST_TIMEOUT = 30
"""Timeout for general API requests (30 seconds)."""

DOCKER_API_TIMEOUT = 120
"""Timeout for Docker daemon API calls (2 minutes)."""

EOL_CATALOG_TIMEOUT = 15
"""Timeout for end-of-life catalog downloads (15 seconds)."""

# ============================================================================
# Registry Configuration
# ============================================================================

DOCKER_HUB_REGISTRY = "docker.io"
"""Canonical name of Docker Hub in image references."""

DOCKER_HUB_API_HOST = "registry-1.docker.io"
"""Host serving the Docker Hub registry API."""

REGISTRY_MAX_ATTEMPTS = 3
"""Maximum attempts per registry request before giving up."""

REGISTRY_BACKOFF_BASE = 1.0
"""Base delay in seconds for exponential backoff between registry retries."""

REGISTRY_MAX_BACKOFF = 30.0
"""Upper bound for a single backoff delay between registry retries."""

MANIFEST_LIST_MEDIA_TYPES = (
    "application/vnd.oci.image.index.v1+json",
    "application/vnd.docker.distribution.manifest.list.v2+json",
)
"""Media types of multi-platform manifest indexes."""

MANIFEST_MEDIA_TYPES = (
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
)
"""Media types of single-platform image manifests."""

# ============================================================================
# External Service URLs
# ============================================================================

EOL_API_URL = "https://endoflife.date/api/{product}.json"
"""URL template for the endoflife.date product API."""
