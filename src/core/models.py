"""
Domain models for container image vulnerability scanning.

This module defines the data structures that cross the boundary between
identity resolution, detection and the scan orchestrator.
All models are immutable (frozen dataclasses) to prevent accidental mutation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SeverityLevel(str, Enum):
    """CVE severity levels as defined by CVSS."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NEGLIGIBLE = "NEGLIGIBLE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def ordered_levels(cls) -> list[str]:
        """Return severity levels in display order."""
        return [
            cls.CRITICAL.value,
            cls.HIGH.value,
            cls.MEDIUM.value,
            cls.LOW.value,
            cls.NEGLIGIBLE.value,
            cls.UNKNOWN.value,
        ]

    @classmethod
    def normalize(cls, value: Optional[str]) -> "SeverityLevel":
        """Map a scanner-provided severity string onto a level (case-insensitive)."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class VulnerabilityCount:
    """
    Vulnerability counts broken down by severity level.

    Attributes:
        total: Total number of vulnerabilities
        critical: Number of critical vulnerabilities
        high: Number of high severity vulnerabilities
        medium: Number of medium severity vulnerabilities
        low: Number of low severity vulnerabilities
        unknown: Number of negligible/unknown vulnerabilities
    """

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    unknown: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "unknown": self.unknown,
        }


@dataclass(frozen=True)
class ImageIdentity:
    """
    Identity and layer inventory of the image under scan.

    Attributes:
        name: Human-readable reference (e.g. "alpine:3.11")
        id: Content-addressed digest of the image config/manifest
        layer_ids: Layer digests in application order, base layer first
        repo_digests: Registry digests known for the image (informational)
    """

    name: str
    id: str = ""
    layer_ids: list[str] = field(default_factory=list)
    repo_digests: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScanOptions:
    """
    Caller-supplied scan configuration.

    Only ``vuln_type`` has a meaning shared by every detector. The other
    fields are detector knobs that the scan orchestrator forwards untouched.

    Attributes:
        vuln_type: Category filters ("os", "library"); empty means every category
        severities: Severity filters; empty means every severity
        ignore_unfixed: Drop vulnerabilities that have no fixed version
        extras: Additional detector-specific settings
    """

    vuln_type: frozenset[str] = frozenset()
    severities: frozenset[str] = frozenset()
    ignore_unfixed: bool = False
    extras: dict[str, Any] = field(default_factory=dict)

    def includes(self, category: str) -> bool:
        """Whether the given vulnerability category is in scope."""
        return not self.vuln_type or category in self.vuln_type

    def includes_severity(self, severity: str) -> bool:
        """Whether the given severity passes the severity filter."""
        return not self.severities or severity in self.severities

    def cache_key(self) -> str:
        """Stable string form of every option, used to key cached detections."""
        extras = ",".join(f"{k}={self.extras[k]!r}" for k in sorted(self.extras))
        return "|".join([
            ",".join(sorted(self.vuln_type)),
            ",".join(sorted(self.severities)),
            str(self.ignore_unfixed),
            extras,
        ])


@dataclass(frozen=True)
class OSInfo:
    """Detected base distribution (e.g. family "alpine", name "3.11.5")."""

    family: str
    name: str

    def __str__(self) -> str:
        return f"{self.family} {self.name}"

    def to_dict(self) -> dict[str, str]:
        return {"family": self.family, "name": self.name}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["OSInfo"]:
        if not data:
            return None
        return cls(family=data.get("family", ""), name=data.get("name", ""))


@dataclass(frozen=True)
class Layer:
    """
    Filesystem layer that introduced a vulnerable file.

    Attributes:
        digest: Layer digest as listed in ImageIdentity.layer_ids
        diff_id: Digest of the uncompressed layer contents
    """

    digest: str = ""
    diff_id: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"digest": self.digest, "diff_id": self.diff_id}


@dataclass(frozen=True)
class DetectedVulnerability:
    """
    A single vulnerable package found in the image.

    Attributes:
        vulnerability_id: Advisory identifier (e.g. "CVE-2019-9999")
        pkg_name: Affected package name
        installed_version: Version found in the image
        fixed_version: Version(s) fixing the issue, empty if no fix exists
        layer: Layer provenance, if known
        severity: Severity level value
    """

    vulnerability_id: str
    pkg_name: str
    installed_version: str
    fixed_version: str = ""
    layer: Optional[Layer] = None
    severity: str = SeverityLevel.UNKNOWN.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "vulnerability_id": self.vulnerability_id,
            "pkg_name": self.pkg_name,
            "installed_version": self.installed_version,
            "fixed_version": self.fixed_version,
            "severity": self.severity,
        }
        if self.layer:
            data["layer"] = self.layer.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DetectedVulnerability":
        """Create from dictionary."""
        layer_data = data.get("layer")
        return cls(
            vulnerability_id=data["vulnerability_id"],
            pkg_name=data["pkg_name"],
            installed_version=data.get("installed_version", ""),
            fixed_version=data.get("fixed_version", ""),
            layer=Layer(**layer_data) if layer_data else None,
            severity=data.get("severity", SeverityLevel.UNKNOWN.value),
        )


@dataclass(frozen=True)
class Result:
    """
    Findings for one scanned unit: the image OS or a dependency manifest.

    Attributes:
        target: OS scope or manifest path (e.g. "node-app/package-lock.json")
        vulnerabilities: Findings in discovery order
        ecosystem_type: Ecosystem tag such as "npm", empty for OS results
    """

    target: str
    vulnerabilities: list[DetectedVulnerability] = field(default_factory=list)
    ecosystem_type: str = ""

    def severity_counts(self) -> VulnerabilityCount:
        """Summarize findings by severity."""
        counts = {level.value: 0 for level in SeverityLevel}
        for vuln in self.vulnerabilities:
            counts[SeverityLevel.normalize(vuln.severity).value] += 1

        return VulnerabilityCount(
            total=len(self.vulnerabilities),
            critical=counts[SeverityLevel.CRITICAL.value],
            high=counts[SeverityLevel.HIGH.value],
            medium=counts[SeverityLevel.MEDIUM.value],
            low=counts[SeverityLevel.LOW.value],
            unknown=counts[SeverityLevel.NEGLIGIBLE.value] + counts[SeverityLevel.UNKNOWN.value],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "target": self.target,
            "ecosystem_type": self.ecosystem_type,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Result":
        """Create from dictionary."""
        return cls(
            target=data["target"],
            vulnerabilities=[
                DetectedVulnerability.from_dict(v) for v in data.get("vulnerabilities", [])
            ],
            ecosystem_type=data.get("ecosystem_type", ""),
        )


@dataclass(frozen=True)
class DetectionReport:
    """
    Successful output of a detector.

    Attributes:
        results: Results in discovery order
        os_info: Detected distribution, None when unknown or unsupported
        end_of_support: Whether the detected distribution is past end of life
    """

    results: list[Result] = field(default_factory=list)
    os_info: Optional[OSInfo] = None
    end_of_support: bool = False

    @property
    def vulnerability_total(self) -> int:
        return sum(len(r.vulnerabilities) for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "results": [r.to_dict() for r in self.results],
            "os": self.os_info.to_dict() if self.os_info else None,
            "end_of_support": self.end_of_support,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DetectionReport":
        """Create from dictionary."""
        return cls(
            results=[Result.from_dict(r) for r in data.get("results", [])],
            os_info=OSInfo.from_dict(data.get("os")),
            end_of_support=bool(data.get("end_of_support", False)),
        )
