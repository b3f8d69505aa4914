"""
Command-line interface for imagescan - Container Image Vulnerability Scanner.

Scans one image from the local Docker daemon, a remote registry (--remote)
or a ``docker save`` archive (--input) and reports the vulnerabilities found:
- table: terminal-friendly text (default)
- json: machine-readable report
- xlsx: workbook with summary and findings sheets
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_PLATFORM,
    DEFAULT_SCAN_TIMEOUT,
    OUTPUT_FORMATS,
)
from core.exceptions import ConfigurationException, ValidationException
from core.orchestrator import ScanWorkflow
from utils.config_loader import load_config
from utils.validation import (
    split_list,
    validate_file_path,
    validate_image_reference,
    validate_output_format,
    validate_positive_number,
    validate_severities,
    validate_vuln_types,
)

logger = logging.getLogger(__name__)

DEFAULTS = {
    "vuln_type": "",
    "severity": "",
    "ignore_unfixed": False,
    "timeout": DEFAULT_SCAN_TIMEOUT,
    "cache_dir": DEFAULT_CACHE_DIR,
    "platform": DEFAULT_PLATFORM,
    "format": DEFAULT_OUTPUT_FORMAT,
    "exit_code": 0,
}
"""Fallback values for options left unset on the command line and in the config file."""


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(args: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the scan command."""
    parser = argparse.ArgumentParser(
        prog="imagescan",
        description="imagescan - Container Image Vulnerability Scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Add argument groups
    source_group = parser.add_argument_group("image source")
    scan_group = parser.add_argument_group("scan options")
    output_group = parser.add_argument_group("output options")
    cache_group = parser.add_argument_group("cache options")

    # Options that a config file may provide default to None so that
    # merge_config() can tell explicit flags apart from unset ones.

    # Image source
    source_group.add_argument("image", nargs="?", default=None, help="Image reference to scan.")
    source_group.add_argument("--input", type=Path, default=None, help="Image archive created by 'docker save'.")
    source_group.add_argument("--remote", action="store_true", help="Read the image from its registry instead of the Docker daemon.")
    source_group.add_argument("--platform", default=None, help=f"Image platform (default: {DEFAULT_PLATFORM}).")

    # Scan options
    scan_group.add_argument("--vuln-type", default=None, help="Comma-separated categories to scan: os,library (default: all).")
    scan_group.add_argument("--severity", default=None, help="Comma-separated severities to report (default: all).")
    scan_group.add_argument("--ignore-unfixed", action="store_true", default=None, help="Only report vulnerabilities with a fix.")
    scan_group.add_argument("--timeout", type=float, default=None, help=f"Image analysis deadline in seconds (default: {DEFAULT_SCAN_TIMEOUT}).")
    scan_group.add_argument("--skip-eol-update", action="store_true", help="Use built-in end-of-life data only.")
    scan_group.add_argument("--config", type=Path, default=None, help="YAML config file with option defaults.")

    # Output options
    output_group.add_argument("-f", "--format", default=None, choices=OUTPUT_FORMATS, help=f"Report format (default: {DEFAULT_OUTPUT_FORMAT}).")
    output_group.add_argument("-o", "--output", type=Path, default=None, help="Report file (default: stdout).")
    output_group.add_argument("--exit-code", type=int, default=None, help="Exit code when vulnerabilities are found.")

    # Cache options
    cache_group.add_argument("--cache-dir", type=Path, default=None, help=f"Cache directory (default: {DEFAULT_CACHE_DIR}).")
    cache_group.add_argument("--no-cache", action="store_true", help="Disable caching.")
    cache_group.add_argument("--clear-cache", action="store_true", help="Clear cache.")

    # Other options
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")

    parsed = parser.parse_args(args)

    if bool(parsed.image) == bool(parsed.input):
        parser.error("exactly one of IMAGE or --input is required")
    if parsed.remote and parsed.input:
        parser.error("--remote cannot be combined with --input")

    return parsed


def merge_config(args: argparse.Namespace) -> argparse.Namespace:
    """
    Fill unset options from the config file, then from built-in defaults.

    Raises:
        ConfigurationException: If the config file is invalid
    """
    file_values = load_config(args.config) if args.config else {}

    for dest, default in DEFAULTS.items():
        if getattr(args, dest, None) is None:
            setattr(args, dest, file_values.get(dest, default))

    return args


def validate_args(args: argparse.Namespace) -> argparse.Namespace:
    """
    Validate merged arguments.

    Raises:
        ValidationException: If an argument is invalid
    """
    if args.image:
        args.image = validate_image_reference(args.image)
    if args.input:
        args.input = validate_file_path(Path(args.input))

    args.format = validate_output_format(args.format)
    if args.format == "xlsx" and not args.output:
        raise ValidationException("--output is required for xlsx reports", "output")

    validate_vuln_types(split_list(args.vuln_type))
    validate_severities(split_list(args.severity))

    try:
        args.timeout = float(args.timeout)
        args.exit_code = int(args.exit_code)
    except (TypeError, ValueError) as e:
        raise ValidationException(f"Invalid numeric option: {e}") from e

    args.timeout = validate_positive_number(args.timeout, "timeout", min_value=1.0)
    return args


def main(argv: Optional[list[str]] = None):
    """Main entry point for the scan command."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        args = validate_args(merge_config(args))
    except (ConfigurationException, ValidationException) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    workflow = ScanWorkflow(args)
    sys.exit(workflow.run())


if __name__ == "__main__":
    main()
