"""Batch orchestration: drives baselines through the migration pipeline."""

from __future__ import annotations

import threading
import time
import traceback
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Protocol, Sequence, Tuple

from .analyzers import SourceAnalyzer, TreeSitterSourceAnalyzer
from .config import BatchSettings, GenerationOptions, MigrationConfig
from .discovery import WorkItem
from .errors import CompilationError, MigrationError, ValidationError
from .generation import (
    CodeGenerator,
    GeneratedArtifact,
    GenerationFailure,
    GenerationSuccess,
    with_compilation_result,
)
from .logging import LogEntry, get_logger, log_operation
from .progress import LoggingProgressReporter, OutcomeStatus, ProgressReporter, ProgressTracker
from .stores import ArtifactWriter, Manifest, ManifestStore
from .transform import LogicTransformer
from .validators import COMPILATION_FAILED, MigrationValidator, ValidationOutcome, Validator


class Compiler(Protocol):
    """Downstream type-checker; returns diagnostics, empty when the artifact builds."""

    def check(self, artifact: GeneratedArtifact) -> Sequence[str]:
        ...


class CompletionClaim:
    """Decides whether a worker may still write its artifact or has been timed out.

    Whichever of :meth:`commit` and :meth:`abandon` runs first wins; the other
    returns False.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = "running"

    @property
    def committed(self) -> bool:
        return self._state == "committed"

    def commit(self) -> bool:
        with self._lock:
            if self._state == "abandoned":
                return False
            self._state = "committed"
            return True

    def abandon(self) -> bool:
        with self._lock:
            if self._state == "committed":
                return False
            self._state = "abandoned"
            return True


_InFlight = Tuple[int, WorkItem, float, CompletionClaim]


@dataclass(frozen=True)
class ComponentOutcome:
    """Result of one component in a batch."""

    name: str
    status: OutcomeStatus
    phase: Optional[str] = None
    error: Optional[str] = None
    stack: Optional[str] = None
    validation: Optional[ValidationOutcome] = None
    artifact: Optional[GeneratedArtifact] = None
    duration_ms: int = 0

    @property
    def score(self) -> Optional[int]:
        return self.validation.score if self.validation is not None else None


@dataclass(frozen=True)
class BatchReport:
    """Per-component outcomes plus the final manifest of a run."""

    outcomes: Tuple[ComponentOutcome, ...]
    manifest: Manifest
    cancelled: bool = False

    def _named(self, status: OutcomeStatus) -> List[str]:
        return [outcome.name for outcome in self.outcomes if outcome.status == status]

    @property
    def succeeded(self) -> List[str]:
        return self._named("success")

    @property
    def failed(self) -> List[str]:
        return self._named("failure")

    @property
    def skipped(self) -> List[str]:
        return self._named("skipped")


class BatchOrchestrator:
    """Coordinates analyzer, transformer, generator, validator and manifest store.

    Components run on a bounded thread pool. The manifest is only touched on
    the calling thread, one component at a time, and saved after every
    component so a crash loses at most the work still in flight.
    """

    def __init__(
        self,
        config: MigrationConfig | None = None,
        *,
        analyzer: SourceAnalyzer | None = None,
        transformer: LogicTransformer | None = None,
        generator: CodeGenerator | None = None,
        validator: Validator | None = None,
        store: ManifestStore | None = None,
        writer: ArtifactWriter | None = None,
        reporter: ProgressReporter | None = None,
        compiler: Compiler | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config or MigrationConfig(root=Path.cwd())
        self.settings: BatchSettings = self.config.batch
        self.output_root = self.config.output_path or self.config.root / "migrated"
        self.analyzer = analyzer or TreeSitterSourceAnalyzer(
            confidence_threshold=self.config.analyzer.confidence_threshold
        )
        self.transformer = transformer or LogicTransformer(self.config.transform)
        self.generator = generator or CodeGenerator(self.config.templates_dir)
        self.validator = validator or MigrationValidator(self.config.scoring)
        self.store = store or ManifestStore(self.config.manifest_path)
        self.writer = writer or ArtifactWriter(self.output_root)
        self.reporter = reporter or LoggingProgressReporter()
        self.compiler = compiler
        self.verbose = verbose
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------
    # Single component

    def process(self, item: WorkItem, claim: CompletionClaim | None = None) -> ComponentOutcome:
        """Run one baseline through every stage.

        Component-scoped failures, including unexpected exceptions, come back
        as a failed outcome. Only non-``Exception`` errors propagate. When a
        ``claim`` is given, nothing is written once it has been abandoned.
        """
        started = time.monotonic()
        stage = "analysis"
        metadata: Dict[str, Any] = {}
        validation: Optional[ValidationOutcome] = None
        try:
            descriptor = self.analyzer.analyze_file(item.path)
            metadata = {
                "loc": descriptor.loc,
                "complexity": descriptor.complexity,
                "dependencies": len(descriptor.dependencies),
            }

            stage = "transformation"
            plan = self.transformer.transform(descriptor)

            stage = "generation"
            options = GenerationOptions(
                baseline_path=str(item.path),
                output_path=str(self.output_root),
                component_name=item.name,
                dry_run=self.settings.dry_run,
                skip_tests=self.settings.skip_tests,
                verbose=self.verbose,
            )
            result = self.generator.generate(plan, options)
            if isinstance(result, GenerationFailure):
                return self._failed(item, result.phase, result.message, result.stack, started, metadata)

            if self.compiler is not None:
                stage = "compilation"
                diagnostics = list(self.compiler.check(result.artifact))
                result = GenerationSuccess(with_compilation_result(result.artifact, diagnostics))

            stage = "validation"
            validation = self.validator.validate(plan, result)
            if not validation.valid:
                message = "; ".join(f"{issue.code}: {issue.message}" for issue in validation.errors)
                if COMPILATION_FAILED in validation.error_codes:
                    raise CompilationError(message, list(result.artifact.compilation_errors), component=item.name)
                raise ValidationError(message, list(validation.error_codes), component=item.name)

            if claim is not None and not claim.commit():
                return self._failed(item, "timeout", "Abandoned after timing out", None, started, metadata)
            if not self.settings.dry_run:
                stage = "generation"
                self.writer.write(result.artifact)
        except (CompilationError, ValidationError) as exc:
            return self._failed(item, exc.phase, str(exc), None, started, metadata, validation=validation)
        except MigrationError as exc:
            return self._failed(item, exc.phase, str(exc), traceback.format_exc(), started, metadata)
        except Exception as exc:
            message = f"{type(exc).__name__}: {exc}"
            return self._failed(item, stage, message, traceback.format_exc(), started, metadata)

        duration = _elapsed_ms(started)
        log_operation(
            self.logger,
            LogEntry(
                level="info",
                component=item.name,
                operation="migrate",
                duration_ms=duration,
                status="partial" if validation.warnings else "success",
                metadata={**metadata, "score": validation.score},
            ),
        )
        return ComponentOutcome(
            name=item.name,
            status="success",
            validation=validation,
            artifact=result.artifact,
            duration_ms=duration,
        )

    def _failed(
        self,
        item: WorkItem,
        phase: str,
        message: str,
        stack: Optional[str],
        started: float,
        metadata: Dict[str, Any],
        *,
        validation: Optional[ValidationOutcome] = None,
    ) -> ComponentOutcome:
        duration = _elapsed_ms(started)
        log_operation(
            self.logger,
            LogEntry(
                level="error",
                component=item.name,
                operation=phase,
                duration_ms=duration,
                status="failure",
                error=message,
                metadata=metadata,
            ),
        )
        return ComponentOutcome(
            name=item.name,
            status="failure",
            phase=phase,
            error=message,
            stack=stack,
            validation=validation,
            duration_ms=duration,
        )

    # ------------------------------------------------------------------
    # Batch

    def run(
        self,
        work: Sequence[WorkItem],
        *,
        force: bool = False,
        retry_failed: bool = False,
        cancel: threading.Event | None = None,
    ) -> BatchReport:
        """Process ``work`` and return the per-component outcomes.

        ``ManifestStoreError`` propagates and aborts the run.
        """
        manifest = self.store.load()
        if manifest is None:
            manifest = self.store.create(self._run_config())
            self.logger.info("Starting fresh batch of %d component(s)", len(work))
        else:
            self.logger.info(
                "Resuming batch: %d successful, %d failed in manifest",
                len(manifest.successful),
                len(manifest.failed),
            )

        lock = threading.Lock()
        tracker = ProgressTracker(len(work))
        outcomes: Dict[str, ComponentOutcome] = {}
        pending: Deque[WorkItem] = deque()
        for item in work:
            if not force and self._already_done(manifest, item.name, retry_failed):
                self.reporter.report(tracker.snapshot(item.name))
                tracker.record("skipped")
                outcomes[item.name] = ComponentOutcome(name=item.name, status="skipped")
                self.logger.debug("Skipping %s (already recorded in manifest)", item.name)
                continue
            pending.append(item)

        cancelled = False
        abandoned = False
        max_workers = max(1, self.settings.max_workers)
        executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="compmigrate")
        in_flight: Dict[Future[ComponentOutcome], _InFlight] = {}
        sequence = 0
        try:
            while pending or in_flight:
                while pending and len(in_flight) < max_workers:
                    if cancel is not None and cancel.is_set():
                        cancelled = True
                        pending.clear()
                        break
                    item = pending.popleft()
                    claim = CompletionClaim()
                    future = executor.submit(self.process, item, claim)
                    in_flight[future] = (sequence, item, time.monotonic(), claim)
                    sequence += 1
                if not in_flight:
                    break

                done, _ = wait(list(in_flight), timeout=self._next_deadline(in_flight), return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda f: in_flight[f][0]):
                    item = in_flight.pop(future)[1]
                    outcome = future.result()
                    manifest = self._record(manifest, outcome, tracker, lock)
                    outcomes[item.name] = outcome

                for future, (_, item, dispatched, claim) in sorted(in_flight.items(), key=lambda entry: entry[1][0]):
                    # A claim already committed is writing; let it finish.
                    if not self._expired(dispatched) or not claim.abandon():
                        continue
                    del in_flight[future]
                    future.cancel()
                    abandoned = True
                    outcome = ComponentOutcome(
                        name=item.name,
                        status="failure",
                        phase="timeout",
                        error=f"Timed out after {self.settings.component_timeout}s",
                        duration_ms=int((time.monotonic() - dispatched) * 1000),
                    )
                    self.logger.error("%s timed out; its late result will be discarded", item.name)
                    manifest = self._record(manifest, outcome, tracker, lock)
                    outcomes[item.name] = outcome
        finally:
            executor.shutdown(wait=not abandoned, cancel_futures=True)

        with lock:
            manifest = self.store.save(manifest)

        if cancelled:
            self.logger.warning("Batch cancelled; %d component(s) not started", len(work) - len(outcomes))
        ordered = tuple(outcomes[item.name] for item in work if item.name in outcomes)
        report = BatchReport(outcomes=ordered, manifest=manifest, cancelled=cancelled)
        self.logger.info(
            "Batch finished: %d succeeded, %d failed, %d skipped",
            len(report.succeeded),
            len(report.failed),
            len(report.skipped),
        )
        return report

    def _record(
        self,
        manifest: Manifest,
        outcome: ComponentOutcome,
        tracker: ProgressTracker,
        lock: threading.Lock,
    ) -> Manifest:
        self.reporter.report(tracker.snapshot(outcome.name))
        with lock:
            if outcome.status == "success":
                updated = self.store.record_success(manifest, outcome.name)
            else:
                updated = self.store.record_failure(
                    manifest,
                    outcome.name,
                    outcome.error or "unknown error",
                    stack=outcome.stack,
                )
            saved = self.store.save(updated)
        tracker.record(outcome.status)
        return saved

    @staticmethod
    def _already_done(manifest: Manifest, name: str, retry_failed: bool) -> bool:
        if manifest.is_successful(name):
            return True
        return manifest.is_failed(name) and not retry_failed

    def _next_deadline(self, in_flight: Dict[Future[ComponentOutcome], _InFlight]) -> Optional[float]:
        timeout = self.settings.component_timeout
        if timeout is None:
            return None
        running = [dispatched for _, _, dispatched, claim in in_flight.values() if not claim.committed]
        if not running:
            return None
        return max(0.0, min(running) + timeout - time.monotonic())

    def _expired(self, dispatched: float) -> bool:
        timeout = self.settings.component_timeout
        return timeout is not None and time.monotonic() - dispatched >= timeout

    def _run_config(self) -> Dict[str, Any]:
        return {
            "baselinePath": str(self.config.baseline_path) if self.config.baseline_path else None,
            "outputPath": str(self.output_root),
            "dryRun": self.settings.dry_run,
            "skipTests": self.settings.skip_tests,
            "maxWorkers": self.settings.max_workers,
            "componentTimeout": self.settings.component_timeout,
        }


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


__all__ = ["BatchOrchestrator", "BatchReport", "Compiler", "CompletionClaim", "ComponentOutcome"]
