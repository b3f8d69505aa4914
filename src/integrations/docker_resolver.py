"""
Identity resolver for images held by the local Docker daemon.
"""

import logging
from typing import Optional

import docker
from docker.errors import DockerException, ImageNotFound

from constants import DOCKER_API_TIMEOUT
from core.context import ScanContext
from core.exceptions import ResolverError
from core.models import ImageIdentity
from core.scanner_interface import ImageResolver

logger = logging.getLogger(__name__)


class DockerImageResolver(ImageResolver):
    """
    Resolves an image through the Docker Engine API.

    The image is looked up locally and pulled when missing (unless pulling
    is disabled). Layer IDs are the DiffIDs from the image's RootFS, which
    Docker lists base layer first.
    """

    def __init__(
        self,
        image: str,
        client: Optional[docker.DockerClient] = None,
        platform: Optional[str] = None,
        pull: bool = True,
    ):
        """
        Initialize Docker resolver.

        Args:
            image: Image reference
            client: Docker client, created from the environment when omitted
            platform: Platform to request when pulling (e.g. "linux/amd64")
            pull: Whether to pull the image if it is not present locally
        """
        self.image = image
        self._client = client
        self.platform = platform
        self.pull = pull

    def name(self) -> str:
        return "docker"

    def _get_client(self, ctx: ScanContext) -> docker.DockerClient:
        if self._client is not None:
            return self._client
        timeout = max(1, int(ctx.bound(DOCKER_API_TIMEOUT)))
        return docker.from_env(timeout=timeout)

    def resolve(self, ctx: ScanContext) -> ImageIdentity:
        """
        Inspect the image in the Docker daemon.

        Raises:
            ResolverError: If the daemon is unreachable or the image is unavailable
            ScanCancelledError: If the context is cancelled
        """
        ctx.check()

        try:
            client = self._get_client(ctx)
            try:
                image = client.images.get(self.image)
            except ImageNotFound:
                if not self.pull:
                    raise ResolverError(self.image, "image not found locally")
                ctx.check()
                logger.info(f"Pulling {self.image}")
                image = client.images.pull(self.image, platform=self.platform)
        except DockerException as e:
            raise ResolverError(self.image, str(e)) from e

        ctx.check()

        attrs = image.attrs or {}
        layer_ids = list((attrs.get("RootFS") or {}).get("Layers") or [])
        identity = ImageIdentity(
            name=self.image,
            id=image.id,
            layer_ids=layer_ids,
            repo_digests=list(attrs.get("RepoDigests") or []),
        )
        logger.debug(f"Docker image {self.image}: {identity.id} ({len(layer_ids)} layers)")
        return identity
