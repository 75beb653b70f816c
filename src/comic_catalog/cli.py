"""Command-line interface for comic-catalog."""

import argparse
import logging
import sys
from pathlib import Path

from comic_catalog.generator import (
    DEFAULT_DATA_PATH,
    DEFAULT_SCHEMA_PATH,
    CatalogReportGenerator,
)
from comic_catalog.store import LoadError, StoreError


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def list_titles(args: argparse.Namespace) -> int:
    """Print the catalog of comic titles and their issues.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        generator = CatalogReportGenerator(
            schema_path=args.schema,
            data_path=args.data,
        )
        generator.run(sys.stdout)
        return 0

    except LoadError as e:
        logger.error(f"Failed to load catalog: {e}")
        for error in e.errors:
            logger.error(f"  - {error}")
        return 1

    except StoreError as e:
        logger.error(f"Catalog report failed: {e}")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="comic-catalog",
        description="List every comic title with its issues in issue-number order",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--schema",
        type=Path,
        default=DEFAULT_SCHEMA_PATH,
        help="Schema fixture to load (default: bundled comic-schema.json)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=DEFAULT_DATA_PATH,
        help="Data fixture to load (default: bundled comic-data.json)",
    )

    args = parser.parse_args(argv)

    return list_titles(args)


if __name__ == "__main__":
    sys.exit(main())
