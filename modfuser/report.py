from __future__ import annotations

from pathlib import Path
from typing import Any, List

from openpyxl import Workbook

from .logging_utils import LogSink
from .models import FusionResult


def print_fusion_summary(result: FusionResult, sink: LogSink) -> None:
    if result.skipped:
        sink.info(f"Reused existing fused jar: {result.output}")
        return

    sink.info("Variants fused:")
    for stage in result.stages:
        sink.info(
            f"{stage.name}: {len(stage.bytecode_rules)} relocation(s), "
            f"{len(stage.renamed)} renamed resource(s), {len(stage.text_rules)} text rule(s)",
            indent=2,
        )
        if stage.mixins:
            sink.info(f"mixins: {', '.join(stage.mixins)}", indent=4)
    if result.registry:
        sink.info(f"Shared packages: {', '.join(result.registry.packages)}")
    if result.pack_rules:
        sink.info("Packaging relocations:")
        for rule in result.pack_rules:
            sink.info(str(rule), indent=2)
    sink.ok(f"Output: {result.output}")


def _variant_rows(result: FusionResult) -> List[List[Any]]:
    rows: List[List[Any]] = []
    for stage in result.stages:
        rows.append([
            stage.name,
            "custom" if stage.spec.custom else "platform",
            str(stage.spec.input_archive) if stage.spec.input_archive else "",
            len(stage.bytecode_rules),
            len(stage.text_rules),
            len(stage.renamed),
            ", ".join(stage.mixins),
        ])
    return rows


def _relocation_rows(result: FusionResult) -> List[List[Any]]:
    rows: List[List[Any]] = []
    for stage in result.stages:
        rows.extend([stage.name, "bytecode", rule.source, rule.destination] for rule in stage.bytecode_rules)
        rows.extend([stage.name, "text", rule.source, rule.destination] for rule in stage.text_rules)
    rows.extend(["shared", "text", rule.source, rule.destination] for rule in result.registry.text_rules)
    rows.extend(["shared", "packaging", rule.source, rule.destination] for rule in result.pack_rules)
    return rows


def _resource_rows(result: FusionResult) -> List[List[Any]]:
    rows: List[List[Any]] = []
    for stage in result.stages:
        for resource in stage.renamed:
            relative = resource.source.relative_to(stage.staging_dir)
            rows.append([stage.name, resource.kind.value, relative.as_posix(), resource.target.name])
    return rows


def export_report(output_path: Path, result: FusionResult) -> None:
    """Write a spreadsheet ledger of every rule and rename applied during a fusion run."""

    output_path.parent.mkdir(parents=True, exist_ok=True)

    workbook = Workbook()

    variants_sheet = workbook.active
    if not variants_sheet:
        variants_sheet = workbook.create_sheet("variants")
    else:
        variants_sheet.title = "variants"
    variants_sheet.append([
        "variant",
        "kind",
        "relocated jar",
        "bytecode rules",
        "text rules",
        "renamed resources",
        "mixins",
    ])
    for row in _variant_rows(result):
        variants_sheet.append(row)

    relocations_sheet = workbook.create_sheet("relocations")
    relocations_sheet.append(["scope", "applies to", "source", "destination"])
    for row in _relocation_rows(result):
        relocations_sheet.append(row)

    resources_sheet = workbook.create_sheet("resources")
    resources_sheet.append(["variant", "kind", "original path", "renamed to"])
    for row in _resource_rows(result):
        resources_sheet.append(row)

    manifest_sheet = workbook.create_sheet("manifest")
    manifest_sheet.append(["key", "value"])
    for key, value in (result.manifest or {}).items():
        manifest_sheet.append([key, value])

    workbook.save(output_path)
    workbook.close()


__all__ = ["print_fusion_summary", "export_report"]
