"""
Orchestrates the main workflow for the imagescan CLI.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from core.cache import DetectionCache
from core.context import ScanContext
from core.exceptions import OutputException, ScanException
from core.models import DetectionReport, ScanOptions
from core.scanner import ImageScanner
from core.scanner_interface import ImageResolver, VulnerabilityDetector
from integrations.archive_resolver import ArchiveImageResolver
from integrations.docker_resolver import DockerImageResolver
from integrations.eol_catalog import EOLCatalog
from integrations.grype_detector import GrypeDetector
from integrations.registry_resolver import RegistryImageResolver
from outputs.base import OutputGenerator
from outputs.config import ReportConfig
from outputs.json_report import JSONGenerator
from outputs.table_report import TableGenerator
from outputs.xlsx_report import XLSXGenerator
from utils.logging_helpers import log_error_section, log_info_header, log_warning_section
from utils.validation import split_list, validate_severities, validate_vuln_types

logger = logging.getLogger(__name__)

GENERATORS = {
    "table": TableGenerator,
    "json": JSONGenerator,
    "xlsx": XLSXGenerator,
}


class ScanWorkflow:
    """
    Runs one scan from parsed arguments to rendered report.
    """

    def __init__(self, args):
        """
        Initialize the workflow with parsed command-line arguments.

        Args:
            args: Parsed arguments from argparse, with config file values merged.
        """
        self.args = args
        self.cache: Optional[DetectionCache] = None
        self.eol_catalog: Optional[EOLCatalog] = None
        self.scanner: Optional[ImageScanner] = None
        self.report: Optional[DetectionReport] = None

    @property
    def artifact_name(self) -> str:
        return self.args.image or str(self.args.input)

    def run(self) -> int:
        """
        Execute the scan workflow.

        Returns:
            Process exit code
        """
        log_info_header(f"imagescan - scanning {self.artifact_name}", logger=logger)

        options = self.build_options()
        self._initialize_components()

        resolver = self.build_resolver()
        detector = self.build_detector()
        if not detector.is_available():
            log_error_section(
                "Grype is not available.",
                [
                    "Install it from https://github.com/anchore/grype and make sure",
                    "the 'grype' executable is on your PATH.",
                ],
                logger=logger,
            )
            sys.exit(1)

        self.scanner = ImageScanner(resolver, detector)
        ctx = ScanContext(timeout=self.args.timeout)

        try:
            self.report = self.scanner.scan_image_report(options, ctx)
        except ScanException as e:
            log_error_section(f"Scan of {self.artifact_name} failed", [str(e)], logger=logger)
            sys.exit(1)
        except KeyboardInterrupt:
            ctx.cancel()
            logger.warning("Scan interrupted")
            sys.exit(1)

        self._log_advisories(self.report, options)
        self._render(self.report)

        logger.info(self.cache.summary())

        if self.args.exit_code and self.report.vulnerability_total > 0:
            return self.args.exit_code
        return 0

    def build_options(self) -> ScanOptions:
        """Build scan options from merged arguments."""
        return ScanOptions(
            vuln_type=validate_vuln_types(split_list(self.args.vuln_type)),
            severities=validate_severities(split_list(self.args.severity)),
            ignore_unfixed=bool(self.args.ignore_unfixed),
        )

    def _initialize_components(self):
        """Initialize cache and end-of-life catalog."""
        self.cache = DetectionCache(
            cache_dir=Path(self.args.cache_dir),
            enabled=not self.args.no_cache,
        )

        if self.args.clear_cache:
            logger.info("Clearing cache...")
            self.cache.clear()

        self.eol_catalog = EOLCatalog()
        if not self.args.skip_eol_update:
            logger.debug("Refreshing end-of-life data...")
            if not self.eol_catalog.load():
                logger.info("Using built-in end-of-life data for some distributions")

    def build_resolver(self) -> ImageResolver:
        """Select the identity resolver for the requested source."""
        if self.args.input:
            return ArchiveImageResolver(Path(self.args.input))
        if self.args.remote:
            return RegistryImageResolver(self.args.image, platform=self.args.platform)
        return DockerImageResolver(self.args.image, platform=self.args.platform)

    def build_detector(self) -> VulnerabilityDetector:
        """Build a Grype detector reading the same source as the resolver."""
        if self.args.input:
            scheme = "docker-archive"
        elif self.args.remote:
            scheme = "registry"
        else:
            scheme = "docker"

        return GrypeDetector(
            source_scheme=scheme,
            archive_path=Path(self.args.input) if self.args.input else None,
            cache=self.cache,
            eol_catalog=self.eol_catalog,
        )

    def _log_advisories(self, report: DetectionReport, options: ScanOptions):
        if report.os_info is None:
            if options.includes("os"):
                logger.warning("OS is not detected and vulnerabilities in OS packages are not detected.")
            return

        logger.info(f"Detected OS: {report.os_info}")
        if report.end_of_support:
            log_warning_section(
                "This OS version is no longer supported by the distribution",
                [
                    f"{report.os_info}",
                    "The vulnerability detection may be insufficient because security "
                    "updates are not provided.",
                ],
                logger=logger,
            )

    def _render(self, report: DetectionReport):
        generator: OutputGenerator = GENERATORS[self.args.format]()
        config = ReportConfig(
            artifact_name=self.artifact_name,
            output_path=Path(self.args.output) if self.args.output else None,
        )
        try:
            generator.generate(report, config)
        except (OutputException, OSError) as e:
            log_error_section("Failed to write report", [str(e)], logger=logger)
            sys.exit(1)

