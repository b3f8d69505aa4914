"""
Utilities for parsing container image references and platform strings.

Used by the registry resolver to turn a user-supplied reference into the
host, repository and manifest reference of the Registry HTTP API.
"""

from dataclasses import dataclass
from typing import Optional

from constants import DOCKER_HUB_API_HOST, DOCKER_HUB_REGISTRY


@dataclass(frozen=True)
class ImageReference:
    """Parsed container image reference."""

    registry: str
    repository: str
    tag: Optional[str]
    digest: Optional[str]

    @property
    def reference(self) -> str:
        """Manifest reference: the digest if pinned, else the tag (default "latest")."""
        return self.digest or self.tag or "latest"

    @property
    def api_host(self) -> str:
        """Host that serves the registry API for this reference."""
        if self.registry == DOCKER_HUB_REGISTRY:
            return DOCKER_HUB_API_HOST
        return self.registry

    @property
    def full_name(self) -> str:
        """Return the fully qualified image reference."""
        result = f"{self.registry}/{self.repository}"
        if self.digest:
            return f"{result}@{self.digest}"
        return f"{result}:{self.tag or 'latest'}"


@dataclass(frozen=True)
class Platform:
    """Target platform such as linux/arm64/v8."""

    os: str
    architecture: str
    variant: Optional[str] = None

    def matches(self, manifest_platform: dict) -> bool:
        """Check a manifest-list platform entry against this platform."""
        if manifest_platform.get("os") != self.os:
            return False
        if manifest_platform.get("architecture") != self.architecture:
            return False
        if self.variant and manifest_platform.get("variant") != self.variant:
            return False
        return True

    def __str__(self) -> str:
        parts = [self.os, self.architecture]
        if self.variant:
            parts.append(self.variant)
        return "/".join(parts)


def parse_image_reference(image: str) -> ImageReference:
    """
    Parse a container image reference into its components.

    Args:
        image: Image reference (e.g., "alpine:3.11", "ghcr.io/org/app@sha256:...")

    Returns:
        ImageReference with registry and repository filled in the way the
        registry API expects (Docker Hub official images get "library/")

    Examples:
        >>> parse_image_reference("alpine:3.11")
        ImageReference(registry='docker.io', repository='library/alpine', tag='3.11', digest=None)

        >>> parse_image_reference("localhost:5000/team/app")
        ImageReference(registry='localhost:5000', repository='team/app', tag=None, digest=None)
    """
    tag = None
    digest = None

    if "@" in image:
        image, digest = image.rsplit("@", 1)

    # A colon after the last slash is a tag, before it a registry port
    last_slash = image.rfind("/")
    last_colon = image.rfind(":")
    if last_colon > last_slash:
        image, tag = image[:last_colon], image[last_colon + 1:]

    parts = image.split("/")
    if len(parts) > 1 and _is_registry(parts[0]):
        registry = parts[0]
        repository = "/".join(parts[1:])
    else:
        registry = DOCKER_HUB_REGISTRY
        repository = image

    if registry in (DOCKER_HUB_REGISTRY, "index.docker.io"):
        registry = DOCKER_HUB_REGISTRY
        if "/" not in repository:
            repository = f"library/{repository}"

    return ImageReference(
        registry=registry,
        repository=repository.lower(),
        tag=tag,
        digest=digest,
    )


def parse_platform(platform: str) -> Platform:
    """
    Parse an os/arch[/variant] platform string.

    Raises:
        ValueError: If the string does not have two or three components
    """
    parts = platform.strip().split("/")
    if len(parts) not in (2, 3) or not all(parts):
        raise ValueError(f"Invalid platform: {platform!r} (expected os/arch[/variant])")
    return Platform(
        os=parts[0],
        architecture=parts[1],
        variant=parts[2] if len(parts) == 3 else None,
    )


def _is_registry(part: str) -> bool:
    """Check if a string looks like a registry hostname."""
    # Contains . or : (port), or is localhost
    return "." in part or ":" in part or part == "localhost"
