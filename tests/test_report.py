"""Tests for the console summary and the spreadsheet report."""

import sys
from pathlib import Path

import pytest
from openpyxl import load_workbook

import cli
from modfuser.logging_utils import LogSink
from modfuser.manifest import ManifestAttributes
from modfuser.models import (
    DuplicatePackageRegistry,
    FusionResult,
    RelocationRule,
    RenamedResource,
    ResourceKind,
    VariantSpec,
    VariantStage,
)
from modfuser.report import export_report, print_fusion_summary


@pytest.fixture
def result(tmp_path: Path) -> FusionResult:
    staging = tmp_path / "work" / "fabric-temp"
    stage = VariantStage(
        spec=VariantSpec("fabric", tmp_path / "work" / "fabric-relocated.jar"),
        staging_dir=staging,
        manifest=ManifestAttributes(),
        bytecode_rules=[RelocationRule("com.example", "fabric.com.example")],
        text_rules=[
            RelocationRule("example.mixins.json", "fabric-example.mixins.json"),
            RelocationRule("com.example", "fabric.com.example"),
        ],
        renamed=[
            RenamedResource(
                kind=ResourceKind.MIXIN_CONFIG,
                source=staging / "example.mixins.json",
                target=staging / "fabric-example.mixins.json",
            )
        ],
    )
    return FusionResult(
        output=tmp_path / "out.jar",
        stages=[stage],
        registry=DuplicatePackageRegistry(
            packages=["com.example.shared"],
            class_rules=[RelocationRule("fabric.com.example.shared", "com.example.shared")],
            path_rules=[RelocationRule("fabric/com/example/shared", "com/example/shared")],
        ),
        manifest=ManifestAttributes({"Manifest-Version": "1.0", "Fabric-Only": "yes"}),
        pack_rules=[RelocationRule("fabric.com.example.shared", "com.example.shared")],
    )


def test_export_report_sheets(tmp_path: Path, result: FusionResult) -> None:
    """Verify every ledger sheet is written with its rows."""
    path = tmp_path / "reports" / "fusion_report.xlsx"
    export_report(path, result)

    workbook = load_workbook(path)
    assert workbook.sheetnames == ["variants", "relocations", "resources", "manifest"]

    variants = list(workbook["variants"].iter_rows(values_only=True))
    assert variants[1][0] == "fabric"
    assert variants[1][3:6] == (1, 2, 1)

    relocations = list(workbook["relocations"].iter_rows(values_only=True))[1:]
    assert ("fabric", "bytecode", "com.example", "fabric.com.example") in relocations
    assert ("shared", "packaging", "fabric.com.example.shared", "com.example.shared") in relocations
    assert len(relocations) == 6

    resources = list(workbook["resources"].iter_rows(values_only=True))[1:]
    assert resources == [("fabric", "mixin_config", "example.mixins.json", "fabric-example.mixins.json")]

    manifest = list(workbook["manifest"].iter_rows(values_only=True))[1:]
    assert manifest == [("Manifest-Version", "1.0"), ("Fabric-Only", "yes")]
    workbook.close()


def test_print_fusion_summary(result: FusionResult, capsys: pytest.CaptureFixture[str]) -> None:
    """Verify the summary names variants, shared packages and packaging rules."""
    print_fusion_summary(result, LogSink())
    out = capsys.readouterr().out
    assert "  [info] fabric: 1 relocation(s), 1 renamed resource(s), 2 text rule(s)" in out
    assert "Shared packages: com.example.shared" in out
    assert "fabric.com.example.shared -> com.example.shared" in out


def test_print_fusion_summary_for_skipped_run(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Verify a skipped run only reports the reused output."""
    print_fusion_summary(FusionResult(output=tmp_path / "out.jar", skipped=True), LogSink())
    assert "Reused existing fused jar" in capsys.readouterr().out


def test_cli_runs_fusion_and_exports_report(
    tmp_path: Path, make_jar, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Verify the command line loads the config, fuses and writes the report."""
    make_jar(tmp_path / "forge.jar", {"com/example/A.class": b"\xca\xfe\x00"})
    config = tmp_path / "fusion.toml"
    config.write_text(
        'group = "com.example"\noutput = "out/fused.jar"\n[variants.forge]\ninput = "forge.jar"\n',
        encoding="utf-8",
    )
    monkeypatch.setattr(
        sys,
        "argv",
        ["cli.py", "--config", str(config), "--export-path", str(tmp_path / "reports")],
    )

    cli.main()

    assert (tmp_path / "out" / "fused.jar").exists()
    assert (tmp_path / "reports" / "fusion_report.xlsx").exists()


def test_cli_reports_configuration_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify configuration problems exit with a message."""
    monkeypatch.setattr(sys, "argv", ["cli.py", "--config", str(tmp_path / "missing.toml")])
    with pytest.raises(SystemExit):
        cli.main()


def test_cli_reports_filesystem_errors(tmp_path: Path, make_jar, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify an OSError during the run exits with a message instead of a traceback."""
    make_jar(tmp_path / "forge.jar", {"com/example/A.class": b"\xca\xfe\x00"})
    config = tmp_path / "fusion.toml"
    config.write_text('group = "com.example"\n[variants.forge]\ninput = "forge.jar"\n', encoding="utf-8")

    def _failing_fuse(config, sink=None):
        raise PermissionError("output directory is read-only")

    monkeypatch.setattr(cli, "fuse", _failing_fuse)
    monkeypatch.setattr(sys, "argv", ["cli.py", "--config", str(config)])

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert "Fusion failed: output directory is read-only" in str(excinfo.value)
