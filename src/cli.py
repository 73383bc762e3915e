"""Command-line interface for named-args."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from contract.report import UNRESOLVED_JSON
from log import set_verbose
from report.write import format_analysis, format_summary, write_report, write_unresolved
from rewrite.convert import ConversionResult, convert_files
from rules.config import ConfigError, NamedArgsConfig, apply_overrides, load_config
from rules.mapping import ManualMapping, MappingError, load_mapping
from scan.files import expand_inputs


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="+",
        help="Solidity files, directories or glob patterns",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Project root for relative paths and namedargs.toml (default: .)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config file (default: <root>/namedargs.toml if present)",
    )
    parser.add_argument(
        "--min-args",
        type=int,
        default=None,
        help="Only convert calls with at least this many arguments",
    )
    parser.add_argument(
        "--mapping",
        default=None,
        help="JSON file of manual parameter names for unresolved calls",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat files with syntax errors as parse failures",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every skipped call with its reason",
    )
    parser.add_argument(
        "--report",
        default=None,
        help="Write the JSON run report to this file",
    )
    parser.add_argument(
        "--unresolved-out",
        default=None,
        help="Write unresolved calls to this JSON file",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="named-args")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser(
        "convert", help="Rewrite positional calls with named arguments"
    )
    _add_common_options(convert_parser)
    convert_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report conversions without writing any file",
    )
    convert_parser.add_argument(
        "--backup",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Save <file>.bak before overwriting (default: on)",
    )

    analyze_parser = subparsers.add_parser(
        "analyze", help="Show resolvable and unresolved calls without writing"
    )
    _add_common_options(analyze_parser)

    check_parser = subparsers.add_parser(
        "check", help="Exit 1 when any call would still be converted"
    )
    _add_common_options(check_parser)

    return parser


def _load_run_config(args: argparse.Namespace, root: Path) -> NamedArgsConfig:
    config_path = Path(args.config).expanduser() if args.config else None
    config = load_config(root, config_path)
    return apply_overrides(
        config,
        min_args=args.min_args,
        dry_run=True if args.command != "convert" or args.dry_run else None,
        backup=getattr(args, "backup", None),
        mapping_file=args.mapping,
        strict_parse=True if args.strict else None,
        verbose=True if args.verbose else None,
    )


def _load_run_mapping(config: NamedArgsConfig, root: Path) -> ManualMapping:
    if config.mapping_file is None:
        return ManualMapping()
    mapping_path = Path(config.mapping_file).expanduser()
    if not mapping_path.is_absolute():
        mapping_path = root / mapping_path
    if not mapping_path.is_file():
        msg = f"Mapping file not found: {mapping_path}"
        raise MappingError(msg)
    return load_mapping(mapping_path)


def _write_outputs(args: argparse.Namespace, result: ConversionResult) -> None:
    report = result.report
    if args.report:
        target = write_report(report, Path(args.report).expanduser())
        sys.stdout.write(f"Report written to {target}\n")

    unresolved_out = args.unresolved_out
    if unresolved_out is None and args.command == "analyze" and report.unresolved:
        unresolved_out = UNRESOLVED_JSON
    if unresolved_out is not None:
        target = write_unresolved(report.unresolved, Path(unresolved_out).expanduser())
        sys.stdout.write(f"Unresolved calls exported to {target}\n")


def _run(args: argparse.Namespace) -> int:
    root = Path(args.root).expanduser().resolve()
    try:
        config = _load_run_config(args, root)
        mapping = _load_run_mapping(config, root)
    except (ConfigError, MappingError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    if config.verbose:
        set_verbose()

    files, missing = expand_inputs(
        args.paths,
        root,
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        nested_gitignore=config.nested_gitignore,
    )
    for raw in missing:
        sys.stderr.write(f"warning: no Solidity files match {raw}\n")
    if not files:
        sys.stderr.write("error: no input files\n")
        return 2

    result = convert_files(files, root, config, mapping)
    report = result.report

    if args.command == "analyze":
        for line in format_analysis(result):
            sys.stdout.write(f"{line}\n")
    for line in format_summary(report.summary, dry_run=config.dry_run):
        sys.stdout.write(f"{line}\n")
    for error in report.errors:
        sys.stderr.write(f"{error.file}: {error.kind}: {error.message}\n")

    _write_outputs(args, result)

    if args.command == "check" and report.summary.converted_count:
        sys.stderr.write(
            f"{report.summary.converted_count} call(s) still use positional "
            "arguments\n"
        )
        return 1
    return result.exit_code


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command in ("convert", "analyze", "check"):
        return _run(args)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
