"""
Command-line interface for the executeScript closure detector.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import config
from .detector import ExecuteScriptClosureDetector


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="scriptclosure",
        description="Detect closures captured by functions injected with chrome.scripting.executeScript",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze path/to/background.js
  %(prog)s analyze path/to/extension/ -o results.json
  %(prog)s analyze src/ --global window --global document
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze local JavaScript/HTML files"
    )
    analyze_parser.add_argument(
        "path",
        type=str,
        help="Path to JavaScript/HTML file or directory to analyze",
    )
    analyze_parser.add_argument(
        "-o", "--output",
        type=str,
        help="Output file for results (default: stdout)",
        default=None,
    )
    analyze_parser.add_argument(
        "-g", "--global",
        dest="globals",
        action="append",
        default=[],
        metavar="NAME",
        help="Treat NAME as a platform global available to injected functions (repeatable)",
    )
    analyze_parser.add_argument(
        "--source-type",
        choices=["auto", "module", "script"],
        default=None,
        help="How to parse JavaScript (default: SCRIPT_CLOSURE_SOURCE_TYPE or auto)",
    )
    analyze_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args(argv)

    if args.command == "analyze":
        return handle_analyze(args)
    else:
        parser.print_help()
        return 1


def handle_analyze(args) -> int:
    """Handle the analyze command."""
    input_path = Path(args.path)
    if not input_path.exists():
        print(f"Error: Path '{args.path}' does not exist", file=sys.stderr)
        return 1

    validation = config.validate()
    for warning in validation["warnings"]:
        print(f"Warning: {warning}", file=sys.stderr)
    source_type = args.source_type
    if source_type is None:
        if not validation["valid"]:
            for error in validation["errors"]:
                print(f"Error: {error}", file=sys.stderr)
            return 1
        source_type = config.source_type

    detector = ExecuteScriptClosureDetector(
        verbose=args.verbose,
        ambient_globals=config.get_ambient_globals() + args.globals,
        source_type=source_type,
        exclude_dirs=config.exclude_dirs,
    )

    try:
        results = detector.analyze(input_path)

        if args.output:
            output_path = Path(args.output)
            detector.save_results(results, output_path)
            print(f"Results saved to {args.output}")
        else:
            detector.print_results(results)

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
