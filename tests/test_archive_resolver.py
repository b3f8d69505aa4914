"""
Tests for the docker-archive identity resolver.
"""

import hashlib
import io
import json
import tarfile

import pytest

from core.context import ScanContext
from core.exceptions import ResolverError, ScanCancelledError
from integrations.archive_resolver import ArchiveImageResolver

from conftest import ALPINE_DIFF_ID


CONFIG = {
    "architecture": "amd64",
    "os": "linux",
    "rootfs": {"type": "layers", "diff_ids": [ALPINE_DIFF_ID, "sha256:" + "1" * 64]},
}


def add_member(tar, name, data: bytes):
    info = tarfile.TarInfo(name)
    info.size = len(data)
    tar.addfile(info, io.BytesIO(data))


def write_archive(path, manifest, config=CONFIG, config_name="abc123.json"):
    """Write a minimal docker save tarball."""
    config_bytes = json.dumps(config).encode() if isinstance(config, dict) else config
    with tarfile.open(path, "w") as tar:
        add_member(tar, config_name, config_bytes)
        if manifest is not None:
            add_member(tar, "manifest.json", json.dumps(manifest).encode())
    return config_bytes


class TestArchiveImageResolver:
    """Tests for ArchiveImageResolver."""

    def test_resolve(self, tmp_path):
        """Identity comes from manifest.json and the config blob."""
        path = tmp_path / "alpine.tar"
        config_bytes = write_archive(path, [{
            "Config": "abc123.json",
            "RepoTags": ["alpine:3.11"],
            "Layers": ["layer1/layer.tar", "layer2/layer.tar"],
        }])

        identity = ArchiveImageResolver(path).resolve(ScanContext())

        assert identity.name == "alpine:3.11"
        assert identity.id == "sha256:" + hashlib.sha256(config_bytes).hexdigest()
        assert identity.layer_ids == CONFIG["rootfs"]["diff_ids"]

    def test_untagged_archive_uses_path(self, tmp_path):
        """Archives without RepoTags are named after the file."""
        path = tmp_path / "image.tar"
        write_archive(path, [{"Config": "abc123.json", "RepoTags": None, "Layers": []}])

        identity = ArchiveImageResolver(path).resolve(ScanContext())

        assert identity.name == str(path)

    def test_missing_file(self, tmp_path):
        """Missing archives raise ResolverError."""
        with pytest.raises(ResolverError, match="unable to inspect"):
            ArchiveImageResolver(tmp_path / "missing.tar").resolve(ScanContext())

    def test_not_a_tarball(self, tmp_path):
        """Non-tar files raise ResolverError."""
        path = tmp_path / "bogus.tar"
        path.write_text("not a tarball")

        with pytest.raises(ResolverError):
            ArchiveImageResolver(path).resolve(ScanContext())

    def test_missing_manifest(self, tmp_path):
        """Archives without manifest.json are rejected."""
        path = tmp_path / "nomanifest.tar"
        write_archive(path, None)

        with pytest.raises(ResolverError, match="manifest.json not found"):
            ArchiveImageResolver(path).resolve(ScanContext())

    def test_empty_manifest(self, tmp_path):
        """Manifests listing no images are rejected."""
        path = tmp_path / "empty.tar"
        write_archive(path, [])

        with pytest.raises(ResolverError, match="lists no images"):
            ArchiveImageResolver(path).resolve(ScanContext())

    def test_missing_config_member(self, tmp_path):
        """A manifest pointing at a missing config blob is rejected."""
        path = tmp_path / "noconfig.tar"
        write_archive(path, [{"Config": "other.json", "RepoTags": ["a:1"]}])

        with pytest.raises(ResolverError, match="other.json not found"):
            ArchiveImageResolver(path).resolve(ScanContext())

    def test_malformed_config(self, tmp_path):
        """Configs without rootfs data are rejected."""
        path = tmp_path / "badconfig.tar"
        write_archive(path, [{"Config": "abc123.json"}], config={"os": "linux"})

        with pytest.raises(ResolverError, match="malformed image config"):
            ArchiveImageResolver(path).resolve(ScanContext())

    def test_cancelled(self, tmp_path):
        """A cancelled context stops the resolver before reading."""
        ctx = ScanContext()
        ctx.cancel()

        with pytest.raises(ScanCancelledError):
            ArchiveImageResolver(tmp_path / "any.tar").resolve(ctx)
