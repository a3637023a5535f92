"""Command-line interface for swift-mock-generator."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from swift_mock_generator.config import GeneratorOptions
from swift_mock_generator.generator import GenerationResult, SourceUnit, generate_batch

logger = logging.getLogger(__name__)

COMMANDS = ("generate",)


def setup_logging(verbosity: int = 0):
    """Configure logging to stderr."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="swift-mock-generator",
        description="Generate Swift mock classes from protocol declarations",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate mocks for the protocols in Swift files (default)",
    )
    generate_parser.add_argument(
        "paths",
        nargs="+",
        help="Swift files, or directories searched recursively for *.swift",
    )
    generate_parser.add_argument(
        "--output-dir",
        "-o",
        default=".",
        help="Directory mocks are written to (default: current directory)",
    )
    output_mode = generate_parser.add_mutually_exclusive_group()
    output_mode.add_argument(
        "--stdout",
        action="store_true",
        help="Print generated mocks instead of writing files",
    )
    output_mode.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON report of all results instead of writing files",
    )
    access = generate_parser.add_mutually_exclusive_group()
    access.add_argument(
        "--public",
        dest="public_mocks",
        action="store_const",
        const=True,
        help="Make generated members public",
    )
    access.add_argument(
        "--internal",
        dest="public_mocks",
        action="store_const",
        const=False,
        help="Keep generated members internal even for public protocols",
    )
    generate_parser.add_argument(
        "--indent",
        type=int,
        default=4,
        help="Spaces per indentation level (default: 4)",
    )
    generate_parser.add_argument(
        "--workers",
        "-j",
        type=int,
        default=None,
        help="Worker processes (default: CPU count; 1 disables the pool)",
    )
    generate_parser.add_argument(
        "--include",
        action="append",
        default=[],
        metavar="PROTOCOL",
        help="Only generate mocks for this protocol (repeatable)",
    )
    generate_parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PROTOCOL",
        help="Skip this protocol (repeatable)",
    )
    generate_parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    return parser


def parse_args(args: list[str]) -> argparse.Namespace:
    """Parse command-line arguments, defaulting to the generate command."""
    parser = create_parser()

    # Bare paths without a subcommand mean 'generate'
    if args and not args[0].startswith("-") and args[0] not in COMMANDS:
        args = ["generate"] + args

    return parser.parse_args(args)


def collect_sources(paths: list[str]) -> list[SourceUnit]:
    """Read Swift sources from files and directories.

    Raises:
        FileNotFoundError: If a path does not exist
    """
    files: list[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            files.extend(sorted(path.rglob("*.swift")))
        elif path.exists():
            files.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: {raw_path}")

    units = []
    for file in files:
        logger.info(f"Reading {file}")
        units.append(SourceUnit(name=str(file), content=file.read_text(encoding="utf-8")))
    return units


def filter_results(
    results: list[GenerationResult], include: list[str], exclude: list[str]
) -> list[GenerationResult]:
    """Apply --include/--exclude to results by protocol name."""
    selected = []
    for result in results:
        if include and result.interface not in include:
            continue
        if result.interface in exclude:
            continue
        selected.append(result)
    return selected


def write_results(results: list[GenerationResult], output_dir: Path) -> int:
    """Write successful results and return how many files were written."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = 0
    for result in results:
        if not result.ok:
            continue
        target = output_dir / result.output_filename
        target.write_text(result.output, encoding="utf-8")
        logger.info(f"Mock written to {target}")
        written += 1
    return written


async def run_generate(parsed: argparse.Namespace) -> int:
    """Run the generate command.

    Returns:
        Exit code (0 when every protocol succeeded, 1 otherwise)
    """
    try:
        options = GeneratorOptions(indent=parsed.indent, public_mocks=parsed.public_mocks)
        units = collect_sources(parsed.paths)
    except (ValueError, OSError) as e:
        logger.error(f"Invalid input: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    results = await generate_batch(units, options, max_workers=parsed.workers)
    results = filter_results(results, parsed.include, parsed.exclude)

    for result in results:
        if not result.ok:
            print(f"Error: {result.source_name}: {result.error}", file=sys.stderr)

    if parsed.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    elif parsed.stdout:
        for result in results:
            if result.ok:
                print(result.output, end="")
    else:
        try:
            written = write_results(results, Path(parsed.output_dir))
        except OSError as e:
            logger.error(f"Could not write output: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Generated {written} mocks in {parsed.output_dir}", file=sys.stderr)

    if not results:
        print("No protocol declarations found", file=sys.stderr)
    return 0 if all(r.ok for r in results) else 1


async def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        parsed = parse_args(args)
    except SystemExit as e:
        return e.code if e.code else 0

    if parsed.command is None:
        create_parser().print_help(sys.stderr)
        return 2

    setup_logging(parsed.verbose)

    if parsed.command == "generate":
        return await run_generate(parsed)

    return 2


def main():
    """Entry point for the CLI."""
    exit_code = asyncio.run(run_cli(sys.argv[1:]))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
