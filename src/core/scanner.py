"""
Scan orchestrator.

Sequences identity resolution and vulnerability detection for one image,
classifies failures into AnalysisFailure / DetectionFailure and returns the
detector's results exactly as produced.
"""

import logging
from typing import Optional

from core.context import ScanContext
from core.exceptions import AnalysisFailure, DetectionFailure
from core.models import DetectionReport, Result, ScanOptions
from core.scanner_interface import ImageResolver, VulnerabilityDetector

logger = logging.getLogger(__name__)


class ImageScanner:
    """
    Two-phase image scanner composed of a resolver and a detector.

    The scanner holds no per-scan state: both capabilities are bound once at
    construction, so a single instance can serve concurrent callers as long
    as the capabilities themselves are reentrant. Each phase is attempted
    exactly once per call.
    """

    def __init__(self, resolver: ImageResolver, detector: VulnerabilityDetector):
        """
        Initialize image scanner.

        Args:
            resolver: Identity resolver for the image under scan
            detector: Vulnerability detector
        """
        self._resolver = resolver
        self._detector = detector

    @property
    def resolver(self) -> ImageResolver:
        return self._resolver

    @property
    def detector(self) -> VulnerabilityDetector:
        return self._detector

    def scan_image(
        self,
        options: ScanOptions,
        ctx: Optional[ScanContext] = None,
    ) -> list[Result]:
        """
        Scan the image for vulnerabilities.

        Args:
            options: Scan options, forwarded to the detector untouched
            ctx: Cancellation/deadline handle forwarded to the resolver

        Returns:
            The detector's result list, unmodified and in discovery order

        Raises:
            AnalysisFailure: If the image identity could not be resolved
            DetectionFailure: If detection failed
        """
        return self.scan_image_report(options, ctx).results

    def scan_image_report(
        self,
        options: ScanOptions,
        ctx: Optional[ScanContext] = None,
    ) -> DetectionReport:
        """
        Scan the image and keep the advisory OS / end-of-support data.

        Same contract as scan_image(). The OS and end-of-support values are
        informational and never influence the result list.

        Returns:
            DetectionReport exactly as returned by the detector
        """
        if ctx is None:
            ctx = ScanContext()

        try:
            identity = self._resolver.resolve(ctx)
        except Exception as e:
            logger.error(f"Image analysis failed ({self._resolver.name()}): {e}")
            raise AnalysisFailure(e) from e

        logger.debug(
            f"Resolved {identity.name} ({identity.id or 'no id'}, "
            f"{len(identity.layer_ids)} layers)"
        )

        try:
            report = self._detector.detect(
                identity.name,
                identity.id,
                identity.layer_ids,
                options,
            )
        except Exception as e:
            logger.error(f"Detection failed for {identity.name} ({self._detector.name()}): {e}")
            raise DetectionFailure(e) from e

        logger.info(f"Detected {report.vulnerability_total} vulnerabilities in {identity.name}")
        return report
