"""
Digest-based cache for detection reports.

Avoids re-running detection for an image whose content digest has already
been scanned with the same options. Cache entries are stored as individual
JSON files for easy inspection and management.
"""

import hashlib
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from core.models import DetectionReport, ScanOptions

logger = logging.getLogger(__name__)


class DetectionCache:
    """
    Cache of detection reports keyed by image digest and scan options.

    Each cache entry is stored as a separate JSON file. Writes go through a
    temporary file and a rename so readers never see a partial entry.
    """

    def __init__(self, cache_dir: Path, enabled: bool = True):
        """
        Initialize detection cache.

        Args:
            cache_dir: Directory to store cache files
            enabled: Whether caching is enabled
        """
        self.cache_dir = Path(cache_dir)
        self.enabled = enabled
        self.hits = 0
        self.misses = 0

        if self.enabled:
            self._setup_cache_dir()

    def _setup_cache_dir(self) -> None:
        """Create cache directory if it doesn't exist."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Cache directory: {self.cache_dir}")
        except OSError as e:
            logger.warning(f"Failed to create cache directory: {e}")
            self.enabled = False

    def _get_cache_path(self, image_id: str, options: ScanOptions) -> Path:
        """
        Get file path for a cache entry.

        Args:
            image_id: Image content digest
            options: Scan options the report was produced with

        Returns:
            Path to cache file
        """
        options_hash = hashlib.sha256(options.cache_key().encode("utf-8")).hexdigest()[:16]
        safe_id = image_id.replace("/", "_").replace(":", "_")
        return self.cache_dir / f"{safe_id}-{options_hash}.json"

    def get(self, image_id: str, options: ScanOptions) -> Optional[DetectionReport]:
        """
        Retrieve a cached detection report.

        Args:
            image_id: Image content digest
            options: Scan options

        Returns:
            Cached DetectionReport if available, None otherwise
        """
        if not self.enabled or not image_id:
            self.misses += 1
            return None

        cache_path = self._get_cache_path(image_id, options)

        if not cache_path.exists():
            logger.debug(f"Cache miss for {image_id}")
            self.misses += 1
            return None

        try:
            with open(cache_path, "r") as f:
                data = json.load(f)

            if data.get("image_id") != image_id or data.get("options") != options.cache_key():
                logger.warning(f"Cache key mismatch for {image_id}")
                self.misses += 1
                return None

            report = DetectionReport.from_dict(data["report"])

        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Corrupted cache entry for {image_id}: {e}")
            cache_path.unlink(missing_ok=True)
            self.misses += 1
            return None

        logger.debug(f"Cache hit for {image_id}")
        self.hits += 1
        return report

    def put(self, image_id: str, options: ScanOptions, report: DetectionReport) -> None:
        """
        Store a detection report.

        Args:
            image_id: Image content digest
            options: Scan options the report was produced with
            report: DetectionReport to cache
        """
        if not self.enabled or not image_id:
            return

        cache_path = self._get_cache_path(image_id, options)
        temp_path = cache_path.with_suffix(".tmp")

        cache_entry = {
            "image_id": image_id,
            "options": options.cache_key(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "report": report.to_dict(),
        }

        try:
            with open(temp_path, "w") as f:
                json.dump(cache_entry, f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            temp_path.rename(cache_path)
            logger.debug(f"Cached detection report for {image_id}")

        except OSError as e:
            logger.error(f"Failed to cache detection report for {image_id}: {e}")
            temp_path.unlink(missing_ok=True)

    def clear(self) -> int:
        """
        Clear all cached entries.

        Returns:
            Number of cache files deleted
        """
        if not self.enabled or not self.cache_dir.exists():
            return 0

        deleted = 0
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                cache_file.unlink()
                deleted += 1
            except OSError as e:
                logger.warning(f"Failed to delete cache file {cache_file}: {e}")

        logger.info(f"Cleared {deleted} cache entries")
        return deleted

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def summary(self) -> str:
        """Get cache usage summary."""
        if not self.enabled:
            return "Cache disabled"

        total = self.hits + self.misses
        if total == 0:
            return "No cache activity"

        return f"Cache: {self.hits} hits, {self.misses} misses ({self.hit_rate:.1f}% hit rate)"
