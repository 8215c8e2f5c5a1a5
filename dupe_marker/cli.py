#!/usr/bin/env python3
"""
CLI interface for dupe-marker
"""

import os
import sys
import logging
import argparse

from .core import get_dupes_report, format_size, analyze_dupes
from .marker import DEFAULT_TAG, plan_renames, apply_renames
from .scanner import scan_tree, collect

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Find duplicate files in each directory of a tree and mark them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dupe-marker /path/to/music
  dupe-marker /path/to/music -r false
  dupe-marker /path/to/music --dry-run
  dupe-marker /path/to/music --tag .dup --no-digest
  dupe-marker /path/to/music --jobs 4
        """
    )

    parser.add_argument(
        "directory",
        help="Root directory to scan for duplicates"
    )
    parser.add_argument(
        "-r", "--recursive",
        type=lambda x: x.lower() == 'true',
        default=True,
        help="Scan subdirectories (default: true)"
    )
    parser.add_argument(
        "--tag",
        default=DEFAULT_TAG,
        help=f"Marker suffix appended to duplicates (default: {DEFAULT_TAG})"
    )
    parser.add_argument(
        "--no-digest",
        dest="with_digest",
        action="store_false",
        help="Do not embed a digest fragment in marked names"
    )
    parser.add_argument(
        "--show-size",
        action="store_true",
        help="Show human readable file sizes"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be marked without renaming anything"
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=1,
        help="Number of directories digested concurrently (default: 1)"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress output"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log per-directory details"
    )

    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command line arguments"""
    if not os.path.isdir(args.directory):
        raise ValueError(f"'{args.directory}' is not a valid directory")

    if not os.access(args.directory, os.R_OK | os.X_OK):
        raise ValueError(f"'{args.directory}' is not readable")

    if not args.tag:
        raise ValueError("Marker tag must not be empty")

    if any(sep and sep in args.tag for sep in (os.sep, os.altsep)):
        raise ValueError("Marker tag must not contain a path separator")

    if args.jobs < 1:
        raise ValueError("Number of jobs must be at least 1")

    if args.quiet and args.verbose:
        raise ValueError("Cannot use both --quiet and --verbose")


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Send package log records to stderr"""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger("dupe_marker")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def main(argv=None) -> None:
    """Main CLI entry point"""
    try:
        args = parse_args(argv)
        validate_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(verbose=args.verbose, quiet=args.quiet)
    root = os.path.abspath(args.directory)

    if not args.quiet:
        print(f"Finding file dupes in {root}", file=sys.stderr)

    try:
        summary = collect(scan_tree(root, tag=args.tag, recursive=args.recursive, jobs=args.jobs))

        print(get_dupes_report(summary.dupe_sets, show_size=args.show_size))

        renames = plan_renames(summary.dupe_sets, tag=args.tag, with_digest=args.with_digest)

        if args.dry_run:
            _, _, total_space = analyze_dupes(summary.dupe_sets)
            print(f"\nDry run: Would mark {len(renames)} duplicated files")
            for ren in renames:
                print(f"  {ren.source} -> {ren.destination}")
            print(f"Would flag approximately {format_size(total_space)}")

        else:
            print(f"Marking {len(renames)} duplicated files.")
            result = apply_renames(renames)
            print(f"Marked {result.renamed} files")
            if result.failed:
                print(f"Failed to mark {len(result.failed)} files", file=sys.stderr)

        if summary.errors and not args.quiet:
            print(f"Skipped {len(summary.errors)} unreadable directories", file=sys.stderr)

    except KeyboardInterrupt:
        if not args.quiet:
            print("\n\nOperation cancelled by user", file=sys.stderr)
        sys.exit(130)

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
