"""CLI entrypoints for compmigrate commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Mapping, Optional

from .config import ConfigError, MigrationConfig, load_config
from .discovery import BaselineScanner, WorkItem, component_name_for, sanitize_component_name
from .errors import ManifestStoreError
from .logging import configure_logging
from .orchestrator import BatchOrchestrator, ComponentOutcome
from .stores import ArtifactWriter, ManifestStore
from .validators import BUSINESS_LOGIC_NOT_PRESERVED

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_COMPILATION = 2
EXIT_LOGIC_INCOMPLETE = 3
EXIT_STORE = 4


def _add_verbose_option(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_generation_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", help="Destination directory for migrated components.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the pipeline without writing any component files.",
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="Do not generate test scaffolds.",
    )


def _add_manifest_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--manifest", help="Manifest file location (overrides configuration).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compmigrate",
        description="Migrate legacy UI components while preserving their business logic.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .compmigrate.yml or the directory containing it (defaults to current directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate_parser = subparsers.add_parser("migrate", help="Migrate a single baseline component.")
    _add_verbose_option(migrate_parser, suppress_default=True)
    migrate_parser.add_argument("baseline", help="Path to the baseline source file.")
    migrate_parser.add_argument("--name", help="Override the generated component name.")
    _add_generation_options(migrate_parser)

    batch_parser = subparsers.add_parser(
        "batch",
        help="Migrate every baseline under a directory, resuming from the manifest.",
    )
    _add_verbose_option(batch_parser, suppress_default=True)
    batch_parser.add_argument(
        "baseline_dir",
        nargs="?",
        help="Directory of baseline components (defaults to baseline_path from configuration).",
    )
    _add_generation_options(batch_parser)
    _add_manifest_option(batch_parser)
    batch_parser.add_argument("--workers", type=int, help="Number of components processed in parallel.")
    batch_parser.add_argument("--timeout", type=float, help="Per-component timeout in seconds.")
    batch_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-run components already recorded in the manifest.",
    )
    batch_parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Retry components recorded as failed in the manifest.",
    )
    batch_parser.add_argument(
        "--cleanup-orphans",
        action="store_true",
        help="Remove incomplete output directories that the manifest does not know about.",
    )

    status_parser = subparsers.add_parser("status", help="Summarise the manifest of a batch run.")
    _add_verbose_option(status_parser, suppress_default=True)
    _add_manifest_option(status_parser)

    rollback_parser = subparsers.add_parser(
        "rollback",
        help="Delete the output of every component the manifest records as successful.",
    )
    _add_verbose_option(rollback_parser, suppress_default=True)
    _add_manifest_option(rollback_parser)
    rollback_parser.add_argument("-o", "--output", help="Output directory used by the batch run.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for compmigrate commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(EXIT_VALIDATION, f"{exc}\n")
    _apply_overrides(config, args)
    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    if args.command == "migrate":
        code = _run_migrate(parser, config, args)
    elif args.command == "batch":
        code = _run_batch(parser, config, args)
    elif args.command == "status":
        code = _run_status(parser, config)
    elif args.command == "rollback":
        code = _run_rollback(parser, config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_VALIDATION, "Unknown command\n")
    if code != EXIT_OK:
        parser.exit(code)


def _apply_overrides(config: MigrationConfig, args: argparse.Namespace) -> None:
    output = getattr(args, "output", None)
    if output:
        config.output_path = Path(output).expanduser().resolve()
    manifest = getattr(args, "manifest", None)
    if manifest:
        config.manifest_path = Path(manifest).expanduser().resolve()
    if getattr(args, "dry_run", False):
        config.batch.dry_run = True
    if getattr(args, "skip_tests", False):
        config.batch.skip_tests = True
    workers = getattr(args, "workers", None)
    if workers is not None:
        config.batch.max_workers = max(1, workers)
    timeout = getattr(args, "timeout", None)
    if timeout is not None:
        config.batch.component_timeout = timeout


def _run_migrate(parser: argparse.ArgumentParser, config: MigrationConfig, args: argparse.Namespace) -> int:
    baseline = Path(args.baseline).expanduser().resolve()
    if not baseline.is_file():
        parser.exit(EXIT_STORE, f"Baseline not found: {args.baseline}\n")
    name = args.name or component_name_for(baseline)
    try:
        sanitize_component_name(name)
    except ValueError as exc:
        parser.exit(EXIT_VALIDATION, f"Invalid component name '{name}': {exc}\n")

    orchestrator = BatchOrchestrator(config, verbose=bool(args.verbose))
    outcome = orchestrator.process(WorkItem(name=name, path=baseline))
    _print_outcome(outcome)
    if outcome.status == "success" and not config.batch.dry_run and outcome.artifact is not None:
        print(f"Component written to {_relativize(Path(outcome.artifact.file_path))}")
    return exit_code_for(outcome)


def _run_batch(parser: argparse.ArgumentParser, config: MigrationConfig, args: argparse.Namespace) -> int:
    source = args.baseline_dir or config.baseline_path
    if source is None:
        parser.exit(EXIT_VALIDATION, "No baseline directory given and baseline_path is not configured.\n")
    try:
        discovery = BaselineScanner().scan(Path(source))
    except FileNotFoundError as exc:
        parser.exit(EXIT_STORE, f"{exc}\n")

    orchestrator = BatchOrchestrator(config, verbose=bool(args.verbose))
    try:
        if args.cleanup_orphans:
            cleaned = orchestrator.writer.cleanup_orphans(orchestrator.store.load())
            for name in cleaned:
                print(f"Removed orphaned output: {name}")
        report = orchestrator.run(discovery.items, force=args.force, retry_failed=args.retry_failed)
    except ManifestStoreError as exc:
        parser.exit(EXIT_STORE, f"compmigrate batch aborted: {exc}\n")
    except OSError as exc:
        parser.exit(EXIT_STORE, f"compmigrate batch failed: {exc}\n")

    for outcome in report.outcomes:
        _print_outcome(outcome)
    print(
        f"{len(report.succeeded)} succeeded, {len(report.failed)} failed, "
        f"{len(report.skipped)} skipped ({len(discovery.skipped)} file(s) ignored)"
    )
    print(f"Manifest: {_relativize(config.manifest_path)}")
    return max((exit_code_for(outcome) for outcome in report.outcomes), default=EXIT_OK)


def _run_status(parser: argparse.ArgumentParser, config: MigrationConfig) -> int:
    try:
        manifest = ManifestStore(config.manifest_path).load()
    except ManifestStoreError as exc:
        parser.exit(EXIT_STORE, f"{exc}\n")
    if manifest is None:
        print(f"No manifest found at {_relativize(config.manifest_path)}")
        return EXIT_OK
    for line in summarize_manifest(manifest.successful, ((r.component, r.error) for r in manifest.failed)):
        print(line)
    if manifest.duration is not None:
        print(f"Last saved: {manifest.end_time} ({manifest.duration}ms since start)")
    return EXIT_OK


def _run_rollback(parser: argparse.ArgumentParser, config: MigrationConfig) -> int:
    store = ManifestStore(config.manifest_path)
    try:
        manifest = store.load()
    except ManifestStoreError as exc:
        parser.exit(EXIT_STORE, f"{exc}\n")
    if manifest is None:
        parser.exit(EXIT_STORE, "No manifest found. Cannot roll back.\n")
    output = config.output_path or _manifest_output(manifest.config) or config.root / "migrated"
    try:
        deleted = ArtifactWriter(output).rollback(manifest)
        store.delete()
    except OSError as exc:
        parser.exit(EXIT_STORE, f"Rollback failed: {exc}\n")
    except ManifestStoreError as exc:
        parser.exit(EXIT_STORE, f"Rollback failed: {exc}\n")
    print(f"Rolled back {len(deleted)} component(s) from {_relativize(output)}")
    print(f"Removed manifest {_relativize(config.manifest_path)}")
    return EXIT_OK


def summarize_manifest(successful: Iterable[str], failed: Iterable[tuple[str, str]]) -> list[str]:
    succeeded = list(successful)
    failures = list(failed)
    lines = [f"Successful: {len(succeeded)}", f"Failed: {len(failures)}"]
    lines.extend(f"  ok    {name}" for name in succeeded)
    lines.extend(f"  fail  {name}: {error}" for name, error in failures)
    return lines


def exit_code_for(outcome: ComponentOutcome) -> int:
    """Map a component outcome onto the CLI exit codes."""
    if outcome.status != "failure":
        return EXIT_OK
    if outcome.phase == "compilation":
        return EXIT_COMPILATION
    if outcome.validation is not None and BUSINESS_LOGIC_NOT_PRESERVED in outcome.validation.error_codes:
        return EXIT_LOGIC_INCOMPLETE
    return EXIT_VALIDATION


def _print_outcome(outcome: ComponentOutcome) -> None:
    if outcome.status == "success":
        score = f" (score {outcome.score})" if outcome.score is not None else ""
        print(f"[ok] {outcome.name}{score}")
    elif outcome.status == "skipped":
        print(f"[skip] {outcome.name}")
    else:
        print(f"[fail] {outcome.name} ({outcome.phase}): {outcome.error}")


def _manifest_output(config: Mapping[str, object]) -> Optional[Path]:
    value = config.get("outputPath")
    return Path(value) if isinstance(value, str) and value else None


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
