"""
Tests for the Grype-backed detector, with subprocess mocked.
"""

import json
import subprocess
from datetime import date

import pytest
from unittest.mock import Mock, patch

from core.cache import DetectionCache
from core.exceptions import DetectorError
from core.models import DetectionReport, Layer, OSInfo, ScanOptions
from integrations.eol_catalog import EOLCatalog
from integrations.grype_detector import GrypeDetector

from conftest import ALPINE_DIFF_ID, ALPINE_IMAGE_ID, ALPINE_LAYER_ID


def make_match(vuln_id, name, version, pkg_type, path, severity="High", fixes=None, layer_id=ALPINE_DIFF_ID):
    """Build one Grype match entry."""
    return {
        "vulnerability": {
            "id": vuln_id,
            "severity": severity,
            "fix": {"versions": fixes or [], "state": "fixed" if fixes else "not-fixed"},
        },
        "artifact": {
            "name": name,
            "version": version,
            "type": pkg_type,
            "locations": [{"path": path, "layerID": layer_id}],
        },
    }


def grype_output(matches, distro=("alpine", "3.10.9"), layers=(ALPINE_DIFF_ID,)):
    """Build a Grype JSON document."""
    data = {
        "matches": matches,
        "source": {"type": "image", "target": {"layers": [{"digest": d} for d in layers]}},
        "distro": {"name": distro[0], "version": distro[1]} if distro else {"name": "", "version": ""},
    }
    return json.dumps(data)


ALPINE_MATCHES = [
    make_match("CVE-2019-9999", "vim", "1.2.3", "apk", "/lib/apk/db/installed", fixes=["1.2.4"]),
    make_match("CVE-2019-11358", "jquery", "3.3.9", "npm", "/node-app/package-lock.json",
               severity="Medium", fixes=[">=3.4.0"]),
    make_match("CVE-2020-0001", "lodash", "4.17.4", "npm", "/node-app/package-lock.json", severity="Low"),
    make_match("CVE-2021-0002", "requests", "2.19.0", "python", "/app/requirements.txt",
               severity="Critical", fixes=["2.20.0"]),
]


@pytest.fixture
def eol_catalog():
    """Catalog where alpine 3.10 is end of life and 3.19 is not."""
    return EOLCatalog(dates={"alpine": {"3.10": date(2021, 5, 1), "3.19": date(2099, 1, 1)}})


@pytest.fixture
def detector(eol_catalog):
    """Detector reading from the Docker daemon."""
    return GrypeDetector(eol_catalog=eol_catalog)


def run_detect(detector, stdout, options=None, layer_ids=(ALPINE_LAYER_ID,), target="alpine:3.11"):
    with patch("integrations.grype_detector.subprocess.run") as mock_run:
        mock_run.return_value = Mock(returncode=0, stdout=stdout, stderr="")
        report = detector.detect(target, ALPINE_IMAGE_ID, list(layer_ids), options or ScanOptions())
    return report, mock_run


class TestGrypeInvocation:
    """Command construction and process failures."""

    def test_docker_source(self, detector):
        """Daemon images are scanned with the docker scheme."""
        _, mock_run = run_detect(detector, grype_output([]))

        cmd = mock_run.call_args.args[0]
        assert cmd == ["grype", "docker:alpine:3.11", "-o", "json"]
        assert mock_run.call_args.kwargs["check"] is True

    def test_archive_source(self, tmp_path, eol_catalog):
        """Archives are scanned from the tarball path."""
        archive = tmp_path / "alpine.tar"
        detector = GrypeDetector(source_scheme="docker-archive", archive_path=archive, eol_catalog=eol_catalog)

        _, mock_run = run_detect(detector, grype_output([]))

        assert mock_run.call_args.args[0][1] == f"docker-archive:{archive}"

    def test_registry_source(self, eol_catalog):
        """Remote images are scanned with the registry scheme."""
        detector = GrypeDetector(source_scheme="registry", eol_catalog=eol_catalog)

        _, mock_run = run_detect(detector, grype_output([]))

        assert mock_run.call_args.args[0][1] == "registry:alpine:3.11"

    def test_invalid_scheme(self):
        """Unknown schemes are rejected."""
        with pytest.raises(ValueError):
            GrypeDetector(source_scheme="oci-dir")
        with pytest.raises(ValueError):
            GrypeDetector(source_scheme="docker-archive")

    def test_command_failure(self, detector):
        """Non-zero exits become DetectorError with stderr."""
        error = subprocess.CalledProcessError(returncode=1, cmd=["grype"])
        error.stderr = "failed to load vulnerability db"
        error.stdout = ""
        with patch("integrations.grype_detector.subprocess.run", side_effect=error):
            with pytest.raises(DetectorError) as exc_info:
                detector.detect("alpine:3.11", ALPINE_IMAGE_ID, [ALPINE_LAYER_ID], ScanOptions())

        assert "exit code 1" in str(exc_info.value)
        assert "failed to load vulnerability db" in str(exc_info.value)

    def test_timeout(self, detector):
        """Timeouts become DetectorError."""
        with patch("integrations.grype_detector.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("grype", 600)):
            with pytest.raises(DetectorError, match="Grype scan timed out"):
                detector.detect("alpine:3.11", ALPINE_IMAGE_ID, [ALPINE_LAYER_ID], ScanOptions())

    def test_missing_binary(self, detector):
        """A missing grype executable becomes DetectorError."""
        with patch("integrations.grype_detector.subprocess.run", side_effect=FileNotFoundError("grype")):
            with pytest.raises(DetectorError, match="not found in PATH"):
                detector.detect("alpine:3.11", ALPINE_IMAGE_ID, [ALPINE_LAYER_ID], ScanOptions())

    def test_invalid_json(self, detector):
        """Unparseable output becomes DetectorError."""
        with pytest.raises(DetectorError, match="Invalid Grype output"):
            run_detect(detector, "not json")

    def test_is_available(self, detector):
        """Availability follows the version command's exit status."""
        with patch("integrations.grype_detector.subprocess.run", return_value=Mock(returncode=0)):
            assert detector.is_available()
        with patch("integrations.grype_detector.subprocess.run", side_effect=FileNotFoundError()):
            assert not detector.is_available()

    def test_version(self, detector):
        """Version is read from the JSON version output."""
        with patch("integrations.grype_detector.subprocess.run",
                   return_value=Mock(returncode=0, stdout='{"version": "0.74.0"}')):
            assert detector.version() == "0.74.0"


class TestResultShaping:
    """Grouping, ordering and filtering of matches."""

    def test_os_result_first_then_manifests(self, detector):
        """The OS result leads, manifests follow in first-seen order."""
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES))

        assert [r.target for r in report.results] == [
            "alpine:3.11 (alpine 3.10.9)",
            "node-app/package-lock.json",
            "app/requirements.txt",
        ]
        assert [r.ecosystem_type for r in report.results] == ["", "npm", "pip"]
        assert [v.vulnerability_id for v in report.results[1].vulnerabilities] == [
            "CVE-2019-11358", "CVE-2020-0001",
        ]

    def test_vulnerability_fields(self, detector):
        """Findings carry versions, fix and severity."""
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES))

        vim = report.results[0].vulnerabilities[0]
        assert vim.pkg_name == "vim"
        assert vim.installed_version == "1.2.3"
        assert vim.fixed_version == "1.2.4"
        assert vim.severity == "HIGH"
        lodash = report.results[1].vulnerabilities[1]
        assert lodash.fixed_version == ""

    def test_multiple_fix_versions_joined(self, detector):
        """Several fixed versions are comma-joined."""
        match = make_match("CVE-1", "openssl", "1.1.1", "apk", "/lib/apk/db/installed", fixes=["1.1.1k", "3.0.1"])
        report, _ = run_detect(detector, grype_output([match]))

        assert report.results[0].vulnerabilities[0].fixed_version == "1.1.1k, 3.0.1"

    def test_os_result_present_when_clean(self, detector):
        """An identified OS yields an OS result even without findings."""
        report, _ = run_detect(detector, grype_output([]))

        assert len(report.results) == 1
        assert report.results[0].target == "alpine:3.11 (alpine 3.10.9)"
        assert report.results[0].vulnerabilities == []

    def test_unknown_os(self, detector):
        """Without an identified OS, OS matches are dropped and no OS result is emitted."""
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES, distro=None))

        assert report.os_info is None
        assert not report.end_of_support
        assert [r.target for r in report.results] == [
            "node-app/package-lock.json",
            "app/requirements.txt",
        ]

    def test_library_only(self, detector):
        """vuln_type=library skips OS packages and the OS result."""
        options = ScanOptions(vuln_type=frozenset({"library"}))
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES), options)

        assert [r.target for r in report.results] == [
            "node-app/package-lock.json",
            "app/requirements.txt",
        ]
        assert report.os_info == OSInfo(family="alpine", name="3.10.9")

    def test_os_only(self, detector):
        """vuln_type=os skips manifests."""
        options = ScanOptions(vuln_type=frozenset({"os"}))
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES), options)

        assert [r.target for r in report.results] == ["alpine:3.11 (alpine 3.10.9)"]

    def test_ignore_unfixed(self, detector):
        """ignore_unfixed drops findings without a fix."""
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES), ScanOptions(ignore_unfixed=True))

        npm = report.results[1]
        assert [v.vulnerability_id for v in npm.vulnerabilities] == ["CVE-2019-11358"]

    def test_severity_filter(self, detector):
        """Only requested severities are reported; the OS result stays."""
        options = ScanOptions(severities=frozenset({"CRITICAL"}))
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES), options)

        assert [r.target for r in report.results] == [
            "alpine:3.11 (alpine 3.10.9)",
            "app/requirements.txt",
        ]
        assert report.results[0].vulnerabilities == []

    def test_duplicates_suppressed(self, detector):
        """Identical findings within a target are reported once."""
        dup = make_match("CVE-2019-9999", "vim", "1.2.3", "apk", "/lib/apk/db/installed", fixes=["1.2.4"])
        report, _ = run_detect(detector, grype_output([dup, dict(dup)]))

        assert len(report.results[0].vulnerabilities) == 1

    def test_same_finding_in_two_manifests_kept(self, detector):
        """The same package in two manifests is reported for each."""
        a = make_match("CVE-1", "jquery", "3.3.9", "npm", "/a/package-lock.json")
        b = make_match("CVE-1", "jquery", "3.3.9", "npm", "/b/package-lock.json")
        report, _ = run_detect(detector, grype_output([a, b]), ScanOptions(vuln_type=frozenset({"library"})))

        assert [r.target for r in report.results] == ["a/package-lock.json", "b/package-lock.json"]

    def test_os_and_unlocated_library_kept_apart(self, detector):
        """A library match without locations does not suppress an OS match."""
        os_match = make_match("CVE-1", "zlib", "1.2.11", "apk", "/lib/apk/db/installed")
        lib_match = make_match("CVE-1", "zlib", "1.2.11", "python", "")
        lib_match["artifact"]["locations"] = []
        report, _ = run_detect(detector, grype_output([lib_match, os_match]))

        assert [len(r.vulnerabilities) for r in report.results] == [1, 1]
        assert report.results[0].target == "alpine:3.11 (alpine 3.10.9)"
        assert report.results[1].target == ""

    def test_unmapped_ecosystem_passes_through(self, detector):
        """Unknown artifact types keep Grype's name."""
        match = make_match("CVE-1", "pkg", "1.0", "conan", "/conan.lock")
        report, _ = run_detect(detector, grype_output([match]), ScanOptions(vuln_type=frozenset({"library"})))

        assert report.results[0].ecosystem_type == "conan"


class TestLayerProvenance:
    """Mapping Grype DiffIDs onto identity layer digests."""

    def test_positional_mapping(self, detector):
        """Layer digests line up with Grype's layers by position."""
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES))

        assert report.results[0].vulnerabilities[0].layer == Layer(
            digest=ALPINE_LAYER_ID, diff_id=ALPINE_DIFF_ID,
        )

    def test_direct_mapping_when_ids_are_diff_ids(self, detector):
        """DiffIDs listed in layer_ids map to themselves."""
        report, _ = run_detect(
            detector,
            grype_output(ALPINE_MATCHES, layers=(ALPINE_DIFF_ID, "sha256:extra")),
            layer_ids=(ALPINE_DIFF_ID,),
        )

        layer = report.results[0].vulnerabilities[0].layer
        assert layer == Layer(digest=ALPINE_DIFF_ID, diff_id=ALPINE_DIFF_ID)

    def test_unmappable_layer(self, detector):
        """Unknown layers leave provenance empty."""
        match = make_match("CVE-1", "vim", "1.2.3", "apk", "/lib/apk/db/installed", layer_id="sha256:unknown")
        report, _ = run_detect(detector, grype_output([match]))

        assert report.results[0].vulnerabilities[0].layer is None

    def test_provenance_references_identity_layers(self, detector):
        """Every reported layer digest belongs to the identity's layers."""
        report, _ = run_detect(detector, grype_output(ALPINE_MATCHES))

        for result in report.results:
            for vuln in result.vulnerabilities:
                if vuln.layer:
                    assert vuln.layer.digest in [ALPINE_LAYER_ID]


class TestEndOfSupport:
    """OS identification and end-of-life evaluation."""

    def test_eol_release(self, detector):
        """alpine 3.10 is past end of life."""
        report, _ = run_detect(detector, grype_output([]))

        assert report.os_info == OSInfo(family="alpine", name="3.10.9")
        assert report.end_of_support

    def test_supported_release(self, detector):
        """Supported releases are not flagged."""
        report, _ = run_detect(detector, grype_output([], distro=("alpine", "3.19.1")))

        assert not report.end_of_support


class TestCaching:
    """Detection cache integration."""

    def test_cached_report_skips_grype(self, temp_cache_dir, eol_catalog):
        """A cached report is returned without running Grype."""
        cache = DetectionCache(temp_cache_dir)
        detector = GrypeDetector(cache=cache, eol_catalog=eol_catalog)

        first, first_run = run_detect(detector, grype_output(ALPINE_MATCHES))
        second, second_run = run_detect(detector, grype_output([]))

        assert first_run.call_count == 1
        second_run.assert_not_called()
        assert second == first
        assert isinstance(second, DetectionReport)

    def test_cached_report_uses_current_target(self, temp_cache_dir, eol_catalog):
        """Another tag of a cached image gets its own OS result target."""
        cache = DetectionCache(temp_cache_dir)
        detector = GrypeDetector(cache=cache, eol_catalog=eol_catalog)

        run_detect(detector, grype_output(ALPINE_MATCHES))
        second, second_run = run_detect(detector, grype_output([]), target="registry.local/alpine:prod")

        second_run.assert_not_called()
        assert second.results[0].target == "registry.local/alpine:prod (alpine 3.10.9)"
        assert second.results[1].target == "node-app/package-lock.json"

    def test_cached_report_uses_current_eol_catalog(self, temp_cache_dir):
        """End-of-support is re-evaluated when a cached report is served."""
        cache = DetectionCache(temp_cache_dir)
        supported = EOLCatalog(dates={"alpine": {"3.10": date(2099, 1, 1)}})
        retired = EOLCatalog(dates={"alpine": {"3.10": date(2000, 1, 1)}})

        first, _ = run_detect(GrypeDetector(cache=cache, eol_catalog=supported), grype_output(ALPINE_MATCHES))
        second, second_run = run_detect(GrypeDetector(cache=cache, eol_catalog=retired), grype_output([]))

        second_run.assert_not_called()
        assert first.end_of_support is False
        assert second.end_of_support is True
        assert second.os_info == first.os_info

    def test_failures_not_cached(self, temp_cache_dir, eol_catalog):
        """Failed detections leave the cache empty."""
        cache = DetectionCache(temp_cache_dir)
        detector = GrypeDetector(cache=cache, eol_catalog=eol_catalog)

        with pytest.raises(DetectorError):
            run_detect(detector, "not json")

        assert list(temp_cache_dir.glob("*.json")) == []
