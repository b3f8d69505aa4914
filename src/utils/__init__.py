"""Utility modules for validation, image references and configuration."""

from utils.config_loader import load_config
from utils.image_utils import parse_image_reference, parse_platform

__all__ = [
    "load_config",
    "parse_image_reference",
    "parse_platform",
]
