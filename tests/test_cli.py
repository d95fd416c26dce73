"""CLI behaviour tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from compmigrate.cli import (
    EXIT_COMPILATION,
    EXIT_LOGIC_INCOMPLETE,
    EXIT_OK,
    EXIT_STORE,
    EXIT_VALIDATION,
    _build_parser,
    exit_code_for,
    main,
    summarize_manifest,
)
from compmigrate.orchestrator import ComponentOutcome
from compmigrate.stores import ManifestStore
from compmigrate.validators import BUSINESS_LOGIC_NOT_PRESERVED, ValidationIssue, ValidationOutcome
from tests._fixtures.baselines import ALPHA_SOURCE, GAMMA_SOURCE, NO_EXPORT_SOURCE, BaselineBuilder


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("compmigrate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def _manifest_path(root: Path) -> Path:
    return root.resolve() / ".compmigrate" / "logs" / "generation-manifest.json"


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()

    before = parser.parse_args(["--verbose", "status"])
    after = parser.parse_args(["status", "--verbose"])

    assert before.verbose is True
    assert after.verbose is True
    assert after.command == "status"


def test_cli_parses_batch_options() -> None:
    args = _build_parser().parse_args(
        ["batch", "legacy", "--workers", "4", "--timeout", "2.5", "--force", "--retry-failed", "--dry-run"]
    )

    assert args.command == "batch"
    assert args.baseline_dir == "legacy"
    assert args.workers == 4
    assert args.timeout == 2.5
    assert args.force is True
    assert args.retry_failed is True
    assert args.dry_run is True
    assert args.skip_tests is False


def test_status_without_manifest(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--config", str(tmp_path), "status"])

    assert "No manifest found" in capsys.readouterr().out


def test_migrate_writes_component(
    tmp_path: Path, baseline_builder: BaselineBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE})
    output = tmp_path / "out"

    main(["--config", str(tmp_path), "migrate", str(paths["Alpha.tsx"]), "-o", str(output)])

    captured = capsys.readouterr().out
    assert "[ok] Alpha (score 100)" in captured
    assert (output / "Alpha" / "Alpha.tsx").is_file()
    assert (output / "Alpha" / "README.md").is_file()


def test_migrate_name_override_and_dry_run(
    tmp_path: Path, baseline_builder: BaselineBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE})
    output = tmp_path / "out"

    main(
        [
            "--config",
            str(tmp_path),
            "migrate",
            str(paths["Alpha.tsx"]),
            "--name",
            "EmailForm",
            "-o",
            str(output),
            "--dry-run",
        ]
    )

    assert "[ok] EmailForm" in capsys.readouterr().out
    assert not output.exists()


def test_migrate_missing_baseline_exits_with_store_code(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "migrate", str(tmp_path / "Missing.tsx")])

    assert excinfo.value.code == EXIT_STORE


def test_migrate_rejects_invalid_name(tmp_path: Path, baseline_builder: BaselineBuilder) -> None:
    paths = baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE})

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "migrate", str(paths["Alpha.tsx"]), "--name", "../evil"])

    assert excinfo.value.code == EXIT_VALIDATION


def test_batch_status_and_rollback_round_trip(
    tmp_path: Path, baseline_builder: BaselineBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE, "Gamma.tsx": GAMMA_SOURCE, "Orphan.tsx": NO_EXPORT_SOURCE})
    output = tmp_path / "out"

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "batch", str(baseline_builder.root), "-o", str(output)])

    assert excinfo.value.code == EXIT_VALIDATION
    batch_output = capsys.readouterr().out
    assert "2 succeeded, 1 failed, 0 skipped" in batch_output
    manifest = ManifestStore(_manifest_path(tmp_path)).load()
    assert manifest is not None
    assert manifest.successful == ("Alpha", "Gamma")
    assert manifest.failed_names == ("Orphan",)

    main(["--config", str(tmp_path), "status"])
    status_output = capsys.readouterr().out
    assert "Successful: 2" in status_output
    assert "Failed: 1" in status_output
    assert "  fail  Orphan:" in status_output

    main(["--config", str(tmp_path), "rollback"])
    assert "Rolled back 2 component(s)" in capsys.readouterr().out
    assert not (output / "Alpha").exists()
    assert not (output / "Gamma").exists()
    assert not _manifest_path(tmp_path).exists()


def test_batch_after_rollback_regenerates_components(
    tmp_path: Path, baseline_builder: BaselineBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE})
    output = tmp_path / "out"
    batch = ["--config", str(tmp_path), "batch", str(baseline_builder.root), "-o", str(output)]
    main(batch)
    main(["--config", str(tmp_path), "rollback", "-o", str(output)])
    capsys.readouterr()

    main(batch)

    assert "[ok] Alpha" in capsys.readouterr().out
    assert (output / "Alpha" / "Alpha.tsx").is_file()
    assert ManifestStore(_manifest_path(tmp_path)).load().successful == ("Alpha",)


def test_batch_resume_skips_recorded_components(
    tmp_path: Path, baseline_builder: BaselineBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE})
    args = ["--config", str(tmp_path), "batch", str(baseline_builder.root), "-o", str(tmp_path / "out")]

    main(args)
    capsys.readouterr()
    main(args)

    assert "[skip] Alpha" in capsys.readouterr().out


def test_batch_with_corrupt_manifest_exits_with_store_code(
    tmp_path: Path, baseline_builder: BaselineBuilder
) -> None:
    baseline_builder.write({"Alpha.tsx": ALPHA_SOURCE})
    manifest_path = _manifest_path(tmp_path)
    manifest_path.parent.mkdir(parents=True)
    manifest_path.write_text("{broken", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "batch", str(baseline_builder.root)])

    assert excinfo.value.code == EXIT_STORE


def test_invalid_config_exits_with_validation_code(tmp_path: Path) -> None:
    (tmp_path / ".compmigrate.yml").write_text("batch:\n  max_workers: 0\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "status"])

    assert excinfo.value.code == EXIT_VALIDATION


def _validation(*codes: str) -> ValidationOutcome:
    return ValidationOutcome(
        component_name="Alpha",
        valid=not codes,
        errors=tuple(ValidationIssue(code=code, message=code) for code in codes),
        warnings=(),
        score=50,
        business_logic_preserved=BUSINESS_LOGIC_NOT_PRESERVED not in codes,
        types_safe=True,
        tests_pass=True,
    )


@pytest.mark.parametrize(
    ("outcome", "expected"),
    [
        (ComponentOutcome(name="Alpha", status="success"), EXIT_OK),
        (ComponentOutcome(name="Alpha", status="skipped"), EXIT_OK),
        (ComponentOutcome(name="Alpha", status="failure", phase="compilation"), EXIT_COMPILATION),
        (
            ComponentOutcome(
                name="Alpha",
                status="failure",
                phase="validation",
                validation=_validation(BUSINESS_LOGIC_NOT_PRESERVED),
            ),
            EXIT_LOGIC_INCOMPLETE,
        ),
        (ComponentOutcome(name="Alpha", status="failure", phase="analysis"), EXIT_VALIDATION),
    ],
    ids=["success", "skipped", "compilation", "logic-incomplete", "analysis"],
)
def test_exit_code_for_outcome(outcome: ComponentOutcome, expected: int) -> None:
    assert exit_code_for(outcome) == expected


def test_summarize_manifest_lists_every_component() -> None:
    lines = summarize_manifest(["Alpha"], [("Beta", "boom")])

    assert lines == ["Successful: 1", "Failed: 1", "  ok    Alpha", "  fail  Beta: boom"]
