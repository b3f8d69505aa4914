"""
Input validation utilities for imagescan.

Provides validation functions for image references, archive paths and
scan filters supplied on the command line or in a config file.
"""

import re
from pathlib import Path
from typing import Iterable, Optional

from constants import OUTPUT_FORMATS, VULN_TYPES
from core.exceptions import ValidationException
from core.models import SeverityLevel


def split_list(value) -> list[str]:
    """Split a comma-separated option value; lists pass through as strings."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return str(value).split(",")


def validate_image_reference(image: str, field_name: str = "image") -> str:
    """
    Validate and normalize container image reference.

    Args:
        image: Image reference to validate
        field_name: Field name for error messages

    Returns:
        Normalized image reference

    Raises:
        ValidationException: If image reference is invalid

    Examples:
        >>> validate_image_reference("alpine:3.11")
        'alpine:3.11'
        >>> validate_image_reference("ghcr.io/org/app@sha256:abc")
        'ghcr.io/org/app@sha256:abc'
    """
    if not image or not image.strip():
        raise ValidationException("Image reference cannot be empty", field_name)

    image = image.strip()

    # Check for obviously invalid characters
    if any(char in image for char in ['"', "'", ";", "&", "|", "$", "`", "\n", "\r", " "]):
        raise ValidationException(
            f"Image reference contains invalid characters: {image}",
            field_name
        )

    # registry[:port]/repo[:tag][@digest]
    pattern = (
        r'^[a-z0-9]+([\._\-][a-z0-9]+)*(:[0-9]+)?'
        r'(\/[a-z0-9]+([\._\-]+[a-z0-9]+)*)*'
        r'(:[a-zA-Z0-9_][a-zA-Z0-9\._\-]*)?'
        r'(@[a-z0-9]+:[a-fA-F0-9]+)?$'
    )
    if not re.match(pattern, image, re.IGNORECASE):
        raise ValidationException(
            f"Invalid image reference format: {image}",
            field_name
        )

    return image


def validate_file_path(path: Path, must_exist: bool = True) -> Path:
    """
    Validate file path.

    Args:
        path: Path to validate
        must_exist: Whether file must already exist

    Returns:
        Validated Path object

    Raises:
        ValidationException: If path is invalid
    """
    if not path:
        raise ValidationException("File path cannot be empty", "path")

    if must_exist and not path.exists():
        raise ValidationException(f"File not found: {path}", "path")

    return path


def validate_vuln_types(values: Optional[Iterable[str]]) -> frozenset[str]:
    """
    Validate vulnerability category filters.

    Args:
        values: Category names; None or empty means every category

    Returns:
        Normalized set of categories

    Raises:
        ValidationException: If an unknown category is given
    """
    normalized = frozenset(v.strip().lower() for v in (values or []) if v and v.strip())
    unknown = normalized - set(VULN_TYPES)
    if unknown:
        raise ValidationException(
            f"Unknown vulnerability type(s): {', '.join(sorted(unknown))}. "
            f"Valid types: {', '.join(VULN_TYPES)}",
            "vuln_type"
        )
    return normalized


def validate_severities(values: Optional[Iterable[str]]) -> frozenset[str]:
    """
    Validate severity filters.

    Raises:
        ValidationException: If an unknown severity is given
    """
    normalized = frozenset(v.strip().upper() for v in (values or []) if v and v.strip())
    valid = set(SeverityLevel.ordered_levels())
    unknown = normalized - valid
    if unknown:
        raise ValidationException(
            f"Unknown severity(ies): {', '.join(sorted(unknown))}. "
            f"Valid severities: {', '.join(SeverityLevel.ordered_levels())}",
            "severity"
        )
    return normalized


def validate_output_format(value: str) -> str:
    """Validate the report format name."""
    value = (value or "").strip().lower()
    if value not in OUTPUT_FORMATS:
        raise ValidationException(
            f"Unknown format: {value!r}. Valid formats: {', '.join(OUTPUT_FORMATS)}",
            "format"
        )
    return value


def validate_positive_number(
    value: float,
    field_name: str,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
) -> float:
    """
    Validate numeric value is within acceptable range.

    Args:
        value: Value to validate
        field_name: Field name for error messages
        min_value: Minimum acceptable value
        max_value: Maximum acceptable value (optional)

    Returns:
        Validated value

    Raises:
        ValidationException: If value is out of range
    """
    if value < min_value:
        raise ValidationException(
            f"Value must be >= {min_value}, got {value}",
            field_name
        )

    if max_value is not None and value > max_value:
        raise ValidationException(
            f"Value must be <= {max_value}, got {value}",
            field_name
        )

    return value


__all__ = [
    "split_list",
    "validate_image_reference",
    "validate_file_path",
    "validate_vuln_types",
    "validate_severities",
    "validate_output_format",
    "validate_positive_number",
]
