"""
Pytest fixtures and configuration for imagescan tests.

Provides shared fixtures and test utilities across the test suite.
"""

import pytest

from core.models import (
    DetectedVulnerability,
    DetectionReport,
    ImageIdentity,
    Layer,
    OSInfo,
    Result,
    ScanOptions,
)

ALPINE_IMAGE_ID = "sha256:e7d92cdc71feacf90708cb59182d0df1b911f8ae022d29e8e95d75ca6a99776a"
ALPINE_LAYER_ID = "sha256:5216338b40a7b96416b8b9858974bbe4acc3096ee60acbc4dfb1ee02aecceb10"
ALPINE_DIFF_ID = "sha256:b2a1a2d80bf0c747a4f6b0ca6af5eef23f043fcdb1ed4f3a3e750aef2dc68079"


@pytest.fixture
def alpine_identity():
    """Identity of a single-layer alpine:3.11 image."""
    return ImageIdentity(
        name="alpine:3.11",
        id=ALPINE_IMAGE_ID,
        layer_ids=[ALPINE_LAYER_ID],
    )


@pytest.fixture
def alpine_results():
    """OS result followed by an npm lockfile result, as a detector returns them."""
    return [
        Result(
            target="alpine:3.11",
            vulnerabilities=[
                DetectedVulnerability(
                    vulnerability_id="CVE-2019-9999",
                    pkg_name="vim",
                    installed_version="1.2.3",
                    fixed_version="1.2.4",
                    layer=Layer(digest=ALPINE_LAYER_ID, diff_id=ALPINE_DIFF_ID),
                    severity="HIGH",
                ),
            ],
        ),
        Result(
            target="node-app/package-lock.json",
            vulnerabilities=[
                DetectedVulnerability(
                    vulnerability_id="CVE-2019-11358",
                    pkg_name="jquery",
                    installed_version="3.3.9",
                    fixed_version=">=3.4.0",
                    severity="MEDIUM",
                ),
            ],
            ecosystem_type="npm",
        ),
    ]


@pytest.fixture
def alpine_report(alpine_results):
    """Detection report for an end-of-life alpine image."""
    return DetectionReport(
        results=alpine_results,
        os_info=OSInfo(family="alpine", name="3.10"),
        end_of_support=True,
    )


@pytest.fixture
def all_options():
    """Scan options that include every vulnerability category."""
    return ScanOptions(vuln_type=frozenset({"os", "library"}))


@pytest.fixture
def temp_cache_dir(tmp_path):
    """Temporary cache directory for testing."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    return cache_dir
