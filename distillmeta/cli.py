"""CLI entrypoints for distillmeta commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import FatalInputError, Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_repository_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the hosting platform and score platform signals neutrally.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="distillmeta",
        description="Score coherence, attribute contributions and track residue for a content repository.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a DEBUG-level log to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    commands = {
        "run": "Score, attribute, catalog residue and build the period report.",
        "score": "Compute the coherence score and append it to the history.",
        "attribute": "Update the contributor attribution graph.",
        "residue": "Detect residue and merge it into the catalog.",
        "report": "Rebuild the period report from persisted artifacts.",
    }
    for name, help_text in commands.items():
        sub = subparsers.add_parser(name, help=help_text)
        _add_verbose_option(sub, suppress_default=True)
        _add_repository_options(sub)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for distillmeta commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)

    if args.command == "serve":
        try:
            from .service import run_service
        except ModuleNotFoundError as exc:
            parser.exit(
                1,
                f"Service mode needs the optional dependencies ({exc.name}). "
                "Install them with `pip install distillmeta[service]`.\n",
            )
        run_service(host=args.host, port=args.port)
        return

    try:
        orchestrator = Orchestrator.from_path(args.path, offline=bool(args.offline))
        if args.command == "run":
            outcome = orchestrator.run_all()
        elif args.command == "score":
            outcome = orchestrator.run_score()
        elif args.command == "attribute":
            graph = orchestrator.run_attribution()
            _print_json(graph.metadata.get("metrics", {}))
            return
        elif args.command == "residue":
            catalog = orchestrator.run_residue()
            _print_json(catalog.meta.get("metrics", {}))
            return
        elif args.command == "report":
            _print_json(orchestrator.run_report())
            return
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")
    except FatalInputError as exc:
        parser.exit(1, f"distillmeta {args.command} failed: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")

    _print_json(outcome.to_dict())
    if not outcome.passed:
        parser.exit(1)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


if __name__ == "__main__":
    main(sys.argv[1:])
