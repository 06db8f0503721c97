"""CLI entrypoints for contractgen commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from .contracts import scan_contracts, sync_contract
from .errors import ConflictError, ValidationError
from .logging import configure_logging
from .orchestrator import AnalysisResult, DraftPlan, Orchestrator

_STATUS_MARKERS = {"ok": "✓", "mismatch": "✗", "partial": "◐", "unknown": "?"}


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


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _add_root_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Project root the path is relative to (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contractgen",
        description="Discover modules worth documenting and keep CONTRACT.md/CONTRACT.yaml pairs in sync.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze the project and show ranked modules and recommendations."
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument(
        "--json", action="store_true", help="Print the analysis as JSON."
    )

    recommend_parser = subparsers.add_parser(
        "recommend", help="Generate contract drafts for recommended modules (no writes)."
    )
    _add_verbose_option(recommend_parser, suppress_default=True)
    _add_path_argument(recommend_parser)

    dry_run_parser = subparsers.add_parser(
        "dry-run", help="Print every contract pair that apply would write."
    )
    _add_verbose_option(dry_run_parser, suppress_default=True)
    _add_path_argument(dry_run_parser)

    apply_parser = subparsers.add_parser(
        "apply", help="Write contract drafts for recommended modules."
    )
    _add_verbose_option(apply_parser, suppress_default=True)
    _add_path_argument(apply_parser)
    apply_parser.add_argument("--yes", action="store_true", help="Confirm writing files.")
    apply_parser.add_argument(
        "--force", action="store_true", help="Overwrite existing contracts."
    )

    module_parser = subparsers.add_parser(
        "module", help="Create a contract pair for one module directory."
    )
    _add_verbose_option(module_parser, suppress_default=True)
    module_parser.add_argument("module_path", help="Module directory.")
    _add_root_option(module_parser)
    module_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing CONTRACT.md."
    )

    status_parser = subparsers.add_parser(
        "status", help="Report drift between every CONTRACT.md and CONTRACT.yaml."
    )
    _add_verbose_option(status_parser, suppress_default=True)
    _add_path_argument(status_parser)
    status_parser.add_argument(
        "--drift-only", action="store_true", help="Only list partial or mismatched pairs."
    )
    status_parser.add_argument("--json", action="store_true", help="Print the index as JSON.")

    sync_parser = subparsers.add_parser(
        "sync", help="Record the current CONTRACT.md hash in CONTRACT.yaml."
    )
    _add_verbose_option(sync_parser, suppress_default=True)
    sync_parser.add_argument("dir", help="Contract directory relative to the root.")
    _add_root_option(sync_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the contract editor API.")
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_root_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8787, help="Port to listen on.")

    return parser


def _print_analysis(analysis: AnalysisResult) -> None:
    project = analysis.project
    print(f"Project: {project.name}")
    print(f"Type: {project.ecosystem}")
    if project.description:
        print(f"Description: {project.description}")
    print("")
    print(f"Found {len(analysis.modules)} potential modules:")
    print("")
    for index, module in enumerate(analysis.modules[:10], start=1):
        print(f"{index}. {module.name} ({module.classification}, {module.tier})")
        print(f"   Path: {module.relative_path}")
        print(
            f"   Files: {module.metrics.file_count}, Lines: {module.metrics.line_count}, "
            f"Score: {module.score or 0.0:.1f}"
        )
        if module.exports:
            more = "..." if len(module.exports) > 5 else ""
            print(f"   Exports: {', '.join(module.exports[:5])}{more}")
        print("")

    if analysis.recommendations:
        print("Top recommendations for contracts:")
        print("")
        for index, rec in enumerate(analysis.recommendations, start=1):
            print(f"{index}. {rec.name}")
            print(f"   Reason: {rec.reasoning}")
            print(f"   Suggested tier: {rec.tier}")
            print(f"   Path: {rec.relative_path}")
            print("")


def _print_plans(plans: List[DraftPlan], *, full: bool) -> None:
    for plan in plans:
        module = plan.module
        print(f"{module.name}")
        print(f"   Path: {module.relative_path}")
        print(f"   Type: {module.classification}, Tier: {module.tier}")
        print(f"   Reason: {plan.reasoning}")
        print("")
        if full:
            print(f"--- {module.relative_path}/CONTRACT.md ---")
            print(plan.primary_text)
            print(f"--- {module.relative_path}/CONTRACT.yaml ---")
            print(plan.mirror_text)


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    orchestrator = Orchestrator()

    if args.command == "analyze":
        analysis = orchestrator.analyze(args.path)
        if args.json:
            print(json.dumps(analysis.to_dict(), indent=2))
        else:
            _print_analysis(analysis)
    elif args.command in ("recommend", "dry-run"):
        plans = orchestrator.recommend(args.path)
        if not plans:
            print("No new contract drafts to generate.")
            return
        full = args.command == "dry-run"
        _print_plans(plans, full=full)
        if full:
            print(f"Would create {len(plans)} CONTRACT.md and {len(plans)} CONTRACT.yaml file(s)")
        else:
            print(f"Generated {len(plans)} contract draft(s). Preview of the first:")
            print("")
            print(plans[0].primary_text)
    elif args.command == "apply":
        if not (args.yes or args.force):
            plans = orchestrator.recommend(args.path)
            if not plans:
                print("No contracts to create.")
                return
            print("The following contracts would be created:")
            for plan in plans:
                state = "(overwrite)" if plan.primary_exists else "(new)"
                print(f"  {plan.module.relative_path}/CONTRACT.md {state}")
                state = "(overwrite)" if plan.mirror_exists else "(new)"
                print(f"  {plan.module.relative_path}/CONTRACT.yaml {state}")
            print("Use --yes to confirm or --force to overwrite existing contracts.")
            return
        plans = orchestrator.apply(args.path, force=bool(args.force))
        if not plans:
            print("No contracts to create.")
            return
        for plan in plans:
            print(f"Created: {_relativize(plan.primary_path)}")
            print(f"Created: {_relativize(plan.mirror_path)}")
        print(f"Successfully created {len(plans)} contract pair(s)")
    elif args.command == "module":
        plan = orchestrator.create_for_module(args.root, args.module_path, force=bool(args.force))
        print(f"Created contract for {plan.module.name}")
        print(f"   {_relativize(plan.primary_path)}")
        print(f"   {_relativize(plan.mirror_path)}")
    elif args.command == "status":
        index = scan_contracts(args.path)
        if args.drift_only:
            index = index.drift_only()
        if args.json:
            print(json.dumps(index.to_dict(include_text=False), indent=2))
            return
        if not index.contracts:
            print("No contracts found.")
            return
        for entry in index.contracts:
            marker = _STATUS_MARKERS.get(entry.status, "?")
            title = f" - {entry.title}" if entry.title else ""
            print(f"{marker} {entry.dir} [{entry.status}]{title}")
    elif args.command == "sync":
        status = sync_contract(args.root, args.dir)
        print(f"Synced meta for {args.dir} ({status})")
    elif args.command == "serve":
        from .service import run_service

        run_service(args.root, host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for contractgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        _run(args, parser)
    except (ValidationError, ConflictError) as exc:
        parser.exit(1, f"{exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except OSError as exc:
        parser.exit(1, f"contractgen {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
