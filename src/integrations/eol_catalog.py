"""
End-of-life catalog for OS distributions.

Decides whether a detected distribution release still receives security
updates. A built-in table covers common distributions; it can be refreshed
from endoflife.date.
"""

import logging
from datetime import date
from typing import Optional

import requests

from constants import EOL_API_URL, EOL_CATALOG_TIMEOUT
from core.models import OSInfo

logger = logging.getLogger(__name__)

# Release -> end of security support
BUILTIN_EOL_DATES: dict[str, dict[str, date]] = {
    "alpine": {
        "3.9": date(2020, 11, 1),
        "3.10": date(2021, 5, 1),
        "3.11": date(2021, 11, 1),
        "3.12": date(2022, 5, 1),
        "3.13": date(2022, 11, 1),
        "3.14": date(2023, 5, 1),
        "3.15": date(2023, 11, 1),
        "3.16": date(2024, 5, 23),
        "3.17": date(2024, 11, 22),
        "3.18": date(2025, 5, 9),
        "3.19": date(2025, 11, 1),
        "3.20": date(2026, 4, 1),
        "3.21": date(2026, 11, 1),
    },
    "debian": {
        "8": date(2020, 6, 30),
        "9": date(2022, 6, 30),
        "10": date(2024, 6, 30),
        "11": date(2026, 8, 31),
        "12": date(2028, 6, 30),
    },
    "ubuntu": {
        "16.04": date(2021, 4, 30),
        "18.04": date(2023, 5, 31),
        "20.04": date(2025, 5, 31),
        "22.04": date(2027, 6, 1),
        "24.04": date(2029, 5, 31),
    },
    "centos": {
        "6": date(2020, 11, 30),
        "7": date(2024, 6, 30),
        "8": date(2021, 12, 31),
    },
    "amazonlinux": {
        "1": date(2023, 12, 31),
        "2": date(2026, 6, 30),
    },
}

# Distribution family -> endoflife.date product name
EOL_PRODUCTS = {
    "alpine": "alpine",
    "debian": "debian",
    "ubuntu": "ubuntu",
    "centos": "centos",
    "amazonlinux": "amazon-linux",
}


class EOLCatalog:
    """
    End-of-life dates per distribution release.

    Lookups try the full version, then major.minor, then major, so that
    "3.10.9" matches the "3.10" release and "10.13" matches "10".
    """

    def __init__(self, dates: Optional[dict[str, dict[str, date]]] = None):
        """
        Initialize EOL catalog.

        Args:
            dates: Initial table, defaults to a copy of the built-in table
        """
        source = dates if dates is not None else BUILTIN_EOL_DATES
        self.dates = {family: dict(releases) for family, releases in source.items()}

    def load(self, families: Optional[list[str]] = None) -> bool:
        """
        Refresh release dates from endoflife.date.

        Args:
            families: Families to refresh, defaults to every known product

        Returns:
            True if every requested family was refreshed, False otherwise
        """
        ok = True
        for family in families or list(EOL_PRODUCTS):
            product = EOL_PRODUCTS.get(family)
            if not product:
                logger.debug(f"No EOL product known for {family}")
                ok = False
                continue

            url = EOL_API_URL.format(product=product)
            try:
                response = requests.get(url, timeout=EOL_CATALOG_TIMEOUT)
                response.raise_for_status()
                cycles = response.json()
            except requests.Timeout:
                logger.warning(f"Timeout loading EOL data for {family}")
                ok = False
                continue
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Failed to load EOL data for {family}: {e}")
                ok = False
                continue

            releases = self.dates.setdefault(family, {})
            for cycle in cycles:
                eol = _parse_eol(cycle.get("eol"))
                if cycle.get("cycle") and eol:
                    releases[str(cycle["cycle"])] = eol

            logger.debug(f"Loaded {len(cycles)} EOL cycles for {family}")

        return ok

    def eol_date(self, os_info: OSInfo) -> Optional[date]:
        """
        Look up the end-of-life date for a distribution release.

        Returns:
            The date, or None if the family or release is not listed
        """
        releases = self.dates.get(os_info.family.lower())
        if not releases:
            return None

        for key in _release_keys(os_info.name):
            if key in releases:
                return releases[key]
        return None

    def is_end_of_life(self, os_info: Optional[OSInfo], today: Optional[date] = None) -> bool:
        """
        Check whether a distribution release is past its end of life.

        Unknown families and releases are reported as supported.
        """
        if os_info is None:
            return False

        eol = self.eol_date(os_info)
        if eol is None:
            logger.warning(f"This OS version is not on the EOL list: {os_info}")
            return False

        return (today or date.today()) > eol


def _release_keys(version: str) -> list[str]:
    parts = version.strip().split(".")
    keys = [version.strip()]
    for n in (2, 1):
        if len(parts) > n:
            keys.append(".".join(parts[:n]))
    return keys


def _parse_eol(value) -> Optional[date]:
    # endoflife.date uses a date string, or a boolean when no date is known
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None
