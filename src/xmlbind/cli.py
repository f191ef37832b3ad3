"""xmlbind CLI: check XML documents against role-annotated types."""

import argparse
import json
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional


def _build_parser() -> argparse.ArgumentParser:
    # Get version for --version argument (handle PackageNotFoundError)
    try:
        xmlbind_version = get_version("xmlbind")
    except PackageNotFoundError:
        xmlbind_version = "dev"

    parser = argparse.ArgumentParser(
        prog="xmlbind",
        description="xmlbind: strict, position-aware XML to object binding"
    )
    parser.add_argument("--version", action="version", version=f"xmlbind {xmlbind_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Deserialize an XML file into a type and report the first mismatch",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "xml_path",
        type=Path,
        help="Path to XML document"
    )
    check_parser.add_argument(
        "--type",
        dest="type_ref",
        required=True,
        help="Target type as 'package.module:ClassName'"
    )
    check_parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Reject documents nested deeper than this many elements"
    )
    check_parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the result as JSON"
    )
    return parser


def _run_check(args: argparse.Namespace) -> int:
    from xmlbind.api import deserialize_xml
    from xmlbind._internal.type_loader import load_type

    try:
        target_type = load_type(args.type_ref)
    except (ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.xml_path.exists():
        print(f"Error: File not found: {args.xml_path}", file=sys.stderr)
        return 1

    result = deserialize_xml(args.xml_path, target_type, max_depth=args.max_depth)

    if args.as_json:
        payload = result.model_dump(mode="json", exclude={"value"})
        payload["value"] = repr(result.value) if result.ok else None
        print(json.dumps(payload, indent=2, sort_keys=True))
    elif result.ok:
        if not args.quiet:
            print(f"[OK] {args.xml_path} matches {target_type.__qualname__}")
    else:
        issue = result.error
        print(f"[FAILED] {issue.code.value}: {issue.message}", file=sys.stderr)

    return 0 if result.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point for xmlbind commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "check":
        return _run_check(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
