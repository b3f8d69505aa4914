"""
Identity resolver for ``docker save`` image archives.

Only manifest.json and the image config are read; layer contents are left
to the detector.
"""

import hashlib
import json
import logging
import tarfile
from pathlib import Path

from core.context import ScanContext
from core.exceptions import ResolverError
from core.models import ImageIdentity
from core.scanner_interface import ImageResolver

logger = logging.getLogger(__name__)


class ArchiveImageResolver(ImageResolver):
    """Resolves the identity of the first image in a docker-archive tarball."""

    def __init__(self, path: Path):
        """
        Initialize archive resolver.

        Args:
            path: Path to the tarball produced by ``docker save``
        """
        self.path = Path(path)

    def name(self) -> str:
        return "archive"

    def resolve(self, ctx: ScanContext) -> ImageIdentity:
        """
        Read identity and layer DiffIDs from the archive.

        The image ID is the sha256 of the config blob; layer IDs are the
        config's rootfs.diff_ids, base layer first.

        Raises:
            ResolverError: If the archive is missing or malformed
            ScanCancelledError: If the context is cancelled
        """
        ctx.check()

        try:
            with tarfile.open(self.path) as tar:
                manifest = json.loads(self._read_member(tar, "manifest.json"))
                if not isinstance(manifest, list) or not manifest:
                    raise ResolverError(str(self.path), "manifest.json lists no images")

                entry = manifest[0]
                ctx.check()
                config_bytes = self._read_member(tar, entry["Config"])
        except (OSError, tarfile.TarError) as e:
            raise ResolverError(str(self.path), str(e)) from e
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise ResolverError(str(self.path), f"malformed manifest: {e}") from e

        try:
            config = json.loads(config_bytes)
            diff_ids = list(config["rootfs"]["diff_ids"])
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise ResolverError(str(self.path), f"malformed image config: {e}") from e

        repo_tags = entry.get("RepoTags") or []
        identity = ImageIdentity(
            name=repo_tags[0] if repo_tags else str(self.path),
            id=f"sha256:{hashlib.sha256(config_bytes).hexdigest()}",
            layer_ids=diff_ids,
        )
        logger.debug(f"Archive {self.path}: {identity.name} ({len(diff_ids)} layers)")
        return identity

    def _read_member(self, tar: tarfile.TarFile, name: str) -> bytes:
        try:
            member = tar.extractfile(name)
        except KeyError:
            raise ResolverError(str(self.path), f"{name} not found in archive")
        if member is None:
            raise ResolverError(str(self.path), f"{name} is not a regular file")
        with member:
            return member.read()
