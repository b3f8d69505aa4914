"""Integrations with Docker, registries, Grype and end-of-life data."""

from integrations.archive_resolver import ArchiveImageResolver
from integrations.docker_resolver import DockerImageResolver
from integrations.eol_catalog import EOLCatalog
from integrations.grype_detector import GrypeDetector
from integrations.registry_resolver import RegistryImageResolver

__all__ = [
    "ArchiveImageResolver",
    "DockerImageResolver",
    "EOLCatalog",
    "GrypeDetector",
    "RegistryImageResolver",
]
