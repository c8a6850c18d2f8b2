"""CLI entrypoints for mavenizer commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from .config import CONFIG_FILENAME, ConfigError, load_config
from .installer import InstallationError
from .logging import configure_logging
from .pipeline import AnalysisOutcome, Mavenizer, MavenizerError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Log diagnostic details, including unresolved packages and bundles.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_quiet_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Only log warnings and errors; --verbose takes precedence.",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    _add_quiet_option(parser, suppress_default=True)
    parser.add_argument(
        "archives",
        nargs="*",
        type=Path,
        help="SDK zip archives to process (defaults to sdk_archives from the config).",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("."),
        help=f"Path to {CONFIG_FILENAME} or its directory (defaults to current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a debug log to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mavenizer",
        description="Turn Equinox SDK bundles into Maven artifacts with inferred dependencies.",
    )
    _add_verbose_option(parser)
    _add_quiet_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Print the inferred dependency graph without writing POM files.",
    )
    _add_common_options(analyze_parser)
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the graph as JSON.",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Extract bundles and write POM files and a BOM.",
    )
    _add_common_options(generate_parser)
    publish = generate_parser.add_mutually_exclusive_group()
    publish.add_argument(
        "--install",
        action="store_true",
        help="Install the generated artifacts into the local Maven repository.",
    )
    publish.add_argument(
        "--deploy",
        action="store_true",
        help="Install the generated artifacts, then deploy them to the configured remote repository.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for mavenizer commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )

    try:
        config = load_config(args.config)
        mavenizer = Mavenizer(config)
        archives = [path.expanduser().resolve() for path in args.archives]
        if args.command == "analyze":
            outcome = mavenizer.analyze(archives)
            _print_analysis(outcome, as_json=bool(args.json))
        elif args.command == "generate":
            result = mavenizer.generate(archives)
            print(
                f"Wrote {len(result.pom_paths)} POM files and BOM "
                f"{result.bom_artifact_id}:{result.bom_version} to {_relativize(result.bom_path.parent)}"
            )
            if args.install or args.deploy:
                mavenizer.publish(result, deploy=bool(args.deploy))
                print("Artifacts installed and deployed" if args.deploy else "Artifacts installed")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except MavenizerError as exc:
        parser.exit(
            1,
            f"mavenizer {args.command} failed: {exc}\nRun with --verbose for more details.\n",
        )
    except (ConfigError, InstallationError) as exc:
        parser.exit(1, f"{exc}\n")


def _print_analysis(outcome: AnalysisOutcome, *, as_json: bool, out: TextIO | None = None) -> None:
    stream = out or sys.stdout
    records = [outcome.components[key] for key in sorted(outcome.components)]
    if as_json:
        payload = {
            "components": [record.to_dict() for record in records],
            "ignored": outcome.dropped,
        }
        json.dump(payload, stream, indent=2)
        stream.write("\n")
        return
    for record in records:
        stream.write(f"{record.identity} ({record.symbolic_name})\n")
        for dependency in record.dependencies:
            marker = " (optional)" if dependency.optional else ""
            stream.write(f"  -> {dependency.artifact_id}{marker}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
