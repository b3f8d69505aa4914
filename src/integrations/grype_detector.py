"""
Vulnerability detector backed by Grype.

Runs Grype against the image, identifies the base distribution and turns
matches into per-target results: one OS result followed by one result per
dependency manifest, in the order Grype reports them.
"""

import json
import logging
import subprocess
from dataclasses import replace
from pathlib import Path
from typing import Optional

from constants import (
    ECOSYSTEM_TYPES,
    GRYPE_TIMEOUT,
    OS_PACKAGE_TYPES,
    VERSION_CHECK_TIMEOUT,
    VULN_TYPE_LIBRARY,
    VULN_TYPE_OS,
)
from core.cache import DetectionCache
from core.exceptions import DetectorError
from core.models import (
    DetectedVulnerability,
    DetectionReport,
    Layer,
    OSInfo,
    Result,
    ScanOptions,
    SeverityLevel,
)
from core.scanner_interface import VulnerabilityDetector
from integrations.eol_catalog import EOLCatalog

logger = logging.getLogger(__name__)

SOURCE_SCHEMES = ("docker", "docker-archive", "registry")


class GrypeDetector(VulnerabilityDetector):
    """
    Detector that shells out to ``grype -o json``.

    Results are built in full before they are returned; any failure raises
    DetectorError and nothing partial leaves the detector.
    """

    def __init__(
        self,
        source_scheme: str = "docker",
        archive_path: Optional[Path] = None,
        cache: Optional[DetectionCache] = None,
        eol_catalog: Optional[EOLCatalog] = None,
        timeout: int = GRYPE_TIMEOUT,
    ):
        """
        Initialize Grype detector.

        Args:
            source_scheme: Grype source scheme ("docker", "docker-archive", "registry")
            archive_path: Image tarball, required for "docker-archive"
            cache: Optional detection cache
            eol_catalog: Catalog deciding end-of-support, defaults to the built-in table
            timeout: Grype run timeout in seconds
        """
        if source_scheme not in SOURCE_SCHEMES:
            raise ValueError(f"Unsupported source scheme: {source_scheme}")
        if source_scheme == "docker-archive" and archive_path is None:
            raise ValueError("archive_path is required for docker-archive sources")

        self.source_scheme = source_scheme
        self.archive_path = archive_path
        self.cache = cache
        self.eol_catalog = eol_catalog or EOLCatalog()
        self.timeout = timeout

    def name(self) -> str:
        return "grype"

    def is_available(self) -> bool:
        try:
            result = subprocess.run(
                ["grype", "version"],
                capture_output=True,
                timeout=VERSION_CHECK_TIMEOUT,
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False

    def version(self) -> Optional[str]:
        try:
            result = subprocess.run(
                ["grype", "version", "-o", "json"],
                capture_output=True,
                text=True,
                timeout=VERSION_CHECK_TIMEOUT,
            )
            return json.loads(result.stdout).get("version")
        except (subprocess.TimeoutExpired, FileNotFoundError, json.JSONDecodeError):
            return None

    def detect(
        self,
        target: str,
        image_id: str,
        layer_ids: list[str],
        options: ScanOptions,
    ) -> DetectionReport:
        """
        Detect vulnerabilities in the image.

        Args:
            target: Image reference, used as the Grype source and result target
            image_id: Image content digest (cache key)
            layer_ids: Layer digests, base layer first
            options: Scan options

        Returns:
            DetectionReport with OS result first, then manifest results

        Raises:
            DetectorError: If Grype fails or its output cannot be parsed
        """
        if self.cache:
            cached = self.cache.get(image_id, options)
            if cached:
                logger.info(f"✓ {target} (cached)")
                return self._refresh_cached(cached, target, options)

        grype_data = self._run_grype(self._source_for(target))

        os_info = self._parse_distro(grype_data)
        layer_map = self._layer_map(grype_data, layer_ids)
        results = self._build_results(target, grype_data, os_info, layer_map, options)
        end_of_support = self.eol_catalog.is_end_of_life(os_info)

        report = DetectionReport(
            results=results,
            os_info=os_info,
            end_of_support=end_of_support,
        )

        if self.cache:
            self.cache.put(image_id, options, report)

        return report

    def _refresh_cached(
        self,
        cached: DetectionReport,
        target: str,
        options: ScanOptions,
    ) -> DetectionReport:
        """
        Rebind a cached report to the current call.

        The cache is keyed by image digest, so the same entry serves every tag
        of an image. The OS result target is rebuilt from this call's target
        and end-of-support is re-evaluated against the current catalog.
        """
        results = list(cached.results)
        if cached.os_info is not None and options.includes(VULN_TYPE_OS) and results:
            results[0] = replace(results[0], target=_os_target(target, cached.os_info))

        return DetectionReport(
            results=results,
            os_info=cached.os_info,
            end_of_support=self.eol_catalog.is_end_of_life(cached.os_info),
        )

    def _source_for(self, target: str) -> str:
        if self.source_scheme == "docker-archive":
            return f"docker-archive:{self.archive_path}"
        return f"{self.source_scheme}:{target}"

    def _run_grype(self, source: str) -> dict:
        """
        Run Grype and parse its JSON report.

        Raises:
            DetectorError: If grype command fails
        """
        try:
            result = subprocess.run(
                ["grype", source, "-o", "json"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError as e:
            raise DetectorError("grype is required but not found in PATH") from e
        except subprocess.CalledProcessError as e:
            # Capture and include stderr in error message for better debugging
            error_msg = f"Grype command failed with exit code {e.returncode}"
            if e.stderr:
                error_msg += f"\nStderr: {e.stderr.strip()}"
            if e.stdout:
                error_msg += f"\nStdout: {e.stdout.strip()}"
            raise DetectorError(error_msg) from e
        except subprocess.TimeoutExpired as e:
            raise DetectorError(f"Grype scan timed out after {self.timeout} seconds") from e

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise DetectorError(f"Invalid Grype output: {e}") from e

    def _parse_distro(self, grype_data: dict) -> Optional[OSInfo]:
        distro = grype_data.get("distro") or {}
        family = distro.get("name")
        if not family:
            return None
        return OSInfo(family=family, name=distro.get("version", ""))

    def _layer_map(self, grype_data: dict, layer_ids: list[str]) -> dict[str, str]:
        """
        Map Grype layer DiffIDs onto the identity's layer digests.

        Grype lists layers in application order, so positions line up with
        layer_ids when both inventories have the same length. DiffIDs that
        appear verbatim in layer_ids map to themselves.
        """
        target = (grype_data.get("source") or {}).get("target") or {}
        diff_ids = [layer.get("digest", "") for layer in target.get("layers") or []]

        if diff_ids and len(diff_ids) == len(layer_ids):
            return dict(zip(diff_ids, layer_ids))

        known = set(layer_ids)
        return {d: d for d in diff_ids if d in known}

    def _build_results(
        self,
        target: str,
        grype_data: dict,
        os_info: Optional[OSInfo],
        layer_map: dict[str, str],
        options: ScanOptions,
    ) -> list[Result]:
        os_vulns: list[DetectedVulnerability] = []
        manifests: dict[str, tuple[str, list[DetectedVulnerability]]] = {}
        seen: set[tuple[Optional[str], str, str, str]] = set()
        dropped_os_matches = 0

        for match in grype_data.get("matches", []):
            artifact = match.get("artifact") or {}
            is_os_package = artifact.get("type") in OS_PACKAGE_TYPES

            if is_os_package:
                if not options.includes(VULN_TYPE_OS):
                    continue
                if os_info is None:
                    dropped_os_matches += 1
                    continue
            elif not options.includes(VULN_TYPE_LIBRARY):
                continue

            vuln = self._to_vulnerability(match, layer_map)
            if options.ignore_unfixed and not vuln.fixed_version:
                continue
            if not options.includes_severity(vuln.severity):
                continue

            locations = artifact.get("locations") or []
            path = locations[0].get("path", "").lstrip("/") if locations else ""
            group = None if is_os_package else path

            key = (group, vuln.vulnerability_id, vuln.pkg_name, vuln.installed_version)
            if key in seen:
                continue
            seen.add(key)

            if is_os_package:
                os_vulns.append(vuln)
            else:
                ecosystem = ECOSYSTEM_TYPES.get(artifact.get("type", ""), artifact.get("type", ""))
                manifests.setdefault(path, (ecosystem, []))[1].append(vuln)

        results = []
        if os_info is not None and options.includes(VULN_TYPE_OS):
            results.append(Result(target=_os_target(target, os_info), vulnerabilities=os_vulns))
        elif options.includes(VULN_TYPE_OS):
            logger.warning(
                f"OS is not detected for {target}; vulnerabilities in OS packages are not reported"
            )
            if dropped_os_matches:
                logger.debug(f"Dropped {dropped_os_matches} OS package matches")

        for path, (ecosystem, vulns) in manifests.items():
            results.append(Result(target=path, vulnerabilities=vulns, ecosystem_type=ecosystem))

        return results

    def _to_vulnerability(self, match: dict, layer_map: dict[str, str]) -> DetectedVulnerability:
        vulnerability = match.get("vulnerability") or {}
        artifact = match.get("artifact") or {}
        fix = vulnerability.get("fix") or {}

        layer = None
        for location in artifact.get("locations") or []:
            diff_id = location.get("layerID")
            if diff_id and diff_id in layer_map:
                layer = Layer(digest=layer_map[diff_id], diff_id=diff_id)
                break

        return DetectedVulnerability(
            vulnerability_id=vulnerability.get("id", ""),
            pkg_name=artifact.get("name", ""),
            installed_version=artifact.get("version", ""),
            fixed_version=", ".join(fix.get("versions") or []),
            layer=layer,
            severity=SeverityLevel.normalize(vulnerability.get("severity")).value,
        )


def _os_target(target: str, os_info: OSInfo) -> str:
    return f"{target} ({os_info})"
