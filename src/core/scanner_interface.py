"""
Capability interfaces consumed by the scan orchestrator.

Defines the contract for identity resolvers (image introspection) and
vulnerability detectors, so that different backends (Docker daemon,
image archives, registries, Grype, ...) can be plugged in.
"""

from abc import ABC, abstractmethod
from typing import Optional

from core.context import ScanContext
from core.models import DetectionReport, ImageIdentity, ScanOptions


class ImageResolver(ABC):
    """
    Abstract base class for image identity resolvers.

    A resolver inspects the image under scan and returns its identity and
    ordered layer inventory. Implementations must be safe to call from
    several threads if the owning scanner is shared.
    """

    @abstractmethod
    def name(self) -> str:
        """
        Return the resolver name.

        Returns:
            Resolver identifier (e.g., "docker", "archive", "registry")
        """
        pass

    @abstractmethod
    def resolve(self, ctx: ScanContext) -> ImageIdentity:
        """
        Resolve the identity of the image under scan.

        Args:
            ctx: Cancellation/deadline handle; must be honored by returning
                 promptly with an error once it is cancelled

        Returns:
            ImageIdentity with layers ordered base first

        Raises:
            ResolverError: If the image cannot be inspected
            ScanCancelledError: If the context is cancelled
        """
        pass


class VulnerabilityDetector(ABC):
    """
    Abstract base class for vulnerability detectors.

    Detectors are all-or-nothing: on failure they raise and never hand back
    partially built results.
    """

    @abstractmethod
    def name(self) -> str:
        """
        Return the detector name.

        Returns:
            Detector identifier (e.g., "grype")
        """
        pass

    @abstractmethod
    def detect(
        self,
        target: str,
        image_id: str,
        layer_ids: list[str],
        options: ScanOptions,
    ) -> DetectionReport:
        """
        Detect vulnerabilities for an identified image.

        Args:
            target: Human-readable image reference
            image_id: Content digest of the image
            layer_ids: Layer digests, base layer first
            options: Scan options

        Returns:
            DetectionReport with results in discovery order

        Raises:
            DetectorError: If detection fails
        """
        pass

    def is_available(self) -> bool:
        """
        Check if this detector can run in the current environment.

        Returns:
            True if the detector can be used, False otherwise
        """
        return True

    def version(self) -> Optional[str]:
        """
        Get detector version (optional).

        Returns:
            Version string if available, None otherwise
        """
        return None


__all__ = [
    "ImageResolver",
    "VulnerabilityDetector",
]
