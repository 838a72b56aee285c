#!/usr/bin/env python3
"""Command-line interface for the provider schema generator."""

import argparse
import contextlib
import json
import logging
import shutil
import sys
import tempfile
import traceback
from collections.abc import Generator
from pathlib import Path

import yaml

from provider_oas_generator.config import ExtractionConfig, load_config
from provider_oas_generator.extractor import OpenAPIContext
from provider_oas_generator.generator import ProviderSchemaGenerator
from provider_oas_generator.parser import OASParser
from provider_oas_generator.utils.file_utils import copy_directory, reset_directory, write_files_to_disk

# Exit codes for better error reporting
EXIT_SUCCESS = 0
EXIT_FILE_NOT_FOUND = 1
EXIT_INVALID_JSON = 2
EXIT_GENERATION_ERROR = 3

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: int) -> None:
    """Configure the root logger once for the command-line run."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def parse_command_line_args(args: list[str] | None = None) -> argparse.Namespace:
    """Create and configure the command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Generate a provider schema from an OpenAPI specification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s openapi.yml
  %(prog)s openapi.yml --output ./schema --package-name digitalocean
  %(prog)s openapi.json --config provider.yml --exclude /v2/debug --verbose
        """,
    )
    parser.add_argument(
        "spec_file",
        type=Path,
        help="Path to OpenAPI specification file (JSON or YAML)",
        metavar="SPEC_FILE",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("./generated"),
        help="Output directory for generated files (default: %(default)s)",
        dest="output_dir",
    )
    parser.add_argument(
        "--package-name",
        "-p",
        help="Package name used as the first segment of type tokens (overrides the config file)",
        dest="package_name",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Extraction config file (JSON or YAML, optional)",
        dest="config_file",
    )
    parser.add_argument(
        "--use-parent-as-module",
        action="store_true",
        help="Name modules after the parent resource of each path instead of its root segment",
        dest="use_parent_as_module",
    )
    parser.add_argument(
        "--exclude",
        nargs="+",
        default=[],
        help="API paths to skip entirely (exact match, all methods)",
        metavar="PATH",
        dest="excluded_paths",
    )
    parser.add_argument(
        "--no-summary",
        action="store_false",
        help="Do not render SUMMARY.md",
        dest="summary",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    parsed_args = parser.parse_args(args)

    # Validate spec file exists
    if not parsed_args.spec_file.exists():
        parser.error(f"Specification file not found: {parsed_args.spec_file}")

    return parsed_args


def build_config(parsed_args: argparse.Namespace) -> ExtractionConfig:
    """Load the config file, if any, and apply the command-line overrides."""
    config = load_config(parsed_args.config_file) if parsed_args.config_file else ExtractionConfig()

    if parsed_args.package_name:
        config.package_name = parsed_args.package_name
    if parsed_args.use_parent_as_module:
        config.use_parent_resource_as_module = True
    config.excluded_paths = [*config.excluded_paths, *parsed_args.excluded_paths]
    return config


def print_generation_summary(*, files: dict[Path, str], output_dir: Path) -> None:
    """Print summary of generated files."""
    print(f"Generated {len(files)} files:")
    for file_path in sorted(files.keys()):
        print(f"  {file_path}")
    print(f"\nProvider schema generated successfully in {output_dir}")


@contextlib.contextmanager
def backup_and_clean_output_dir(output_dir: Path) -> Generator[None, None, None]:
    """A context manager to backup and clean the output directory."""
    backup_dir = None
    if output_dir.exists() and any(output_dir.iterdir()):
        backup_dir = Path(tempfile.mkdtemp())
        copy_directory(output_dir, backup_dir)

    # Clean output directory before generation
    reset_directory(output_dir)

    try:
        yield
    except Exception:
        if backup_dir:
            print(
                "Error: Generation failed. Restoring original content.",
                file=sys.stderr,
            )
            reset_directory(output_dir)
            copy_directory(backup_dir, output_dir)
        raise
    finally:
        if backup_dir:
            shutil.rmtree(backup_dir)


def generate_provider_schema_from_spec(
    *,
    spec_file: Path,
    output_dir: Path,
    config: ExtractionConfig,
    summary: bool = True,
) -> dict[Path, str]:
    """Generate the provider schema files from an OpenAPI specification file."""
    parser = OASParser()
    document = parser.parse_file(spec_file)
    logger.info("Parsed %d paths and %d schemas from %s", len(document.paths), len(document.schemas), spec_file)

    result = OpenAPIContext(document, config).gather_resources_from_api()
    logger.info(
        "Extracted %d resources, %d functions and %d types",
        len(result.package.resources),
        len(result.package.functions),
        len(result.package.types),
    )

    generator = ProviderSchemaGenerator()
    return generator.generate(result, output_dir, include_summary=summary)


def main(args: list[str] | None = None) -> int:
    """Generate a provider schema from an OpenAPI specification."""
    parsed_args = parse_command_line_args(args)
    configure_logging(logging.INFO if parsed_args.verbose else logging.WARNING)

    try:
        config = build_config(parsed_args)
        with backup_and_clean_output_dir(parsed_args.output_dir):
            generated_files = generate_provider_schema_from_spec(
                spec_file=parsed_args.spec_file,
                output_dir=parsed_args.output_dir,
                config=config,
                summary=parsed_args.summary,
            )

            # Write files to disk
            write_files_to_disk(generated_files)

            if parsed_args.verbose:
                print_generation_summary(files=generated_files, output_dir=parsed_args.output_dir)
            else:
                print(f"Provider schema generated successfully in {parsed_args.output_dir}")

        return EXIT_SUCCESS

    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename or parsed_args.spec_file}", file=sys.stderr)
        return EXIT_FILE_NOT_FOUND
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in specification file: {e}", file=sys.stderr)
        return EXIT_INVALID_JSON
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in specification file: {e}", file=sys.stderr)
        return EXIT_INVALID_JSON
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if parsed_args.verbose:
            traceback.print_exc()
        return EXIT_GENERATION_ERROR


if __name__ == "__main__":
    sys.exit(main())
