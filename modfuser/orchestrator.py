from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

from .archive_codec import ZipArchiveCodec, ZipPathRelocator
from .collaborators import ArchiveCodec, BytecodeRelocator, ContentClassifier, NulByteClassifier
from .duplicate_resolver import build_duplicate_registry, collapse_shared_packages, rewrite_shared_references
from .errors import ConfigurationError
from .file_utils import ensure_directory, fresh_directory, move_file, move_tree, remove_tree, set_output_permissions
from .load_config import FusionConfig, check_work_dir
from .logging_utils import LogSink
from .manifest import fuse_manifests, take_manifest, write_manifest
from .models import FusionContext, FusionResult, VariantSpec, VariantStage
from .resource_relinker import relink_resources
from .tooling import ExternalRelocator
from .variant_relocator import relocate_variant


def active_variants(variants: List[VariantSpec], sink: LogSink) -> List[VariantSpec]:
    """Drop declared variants whose input archive is missing, warning about each."""

    active: List[VariantSpec] = []
    for spec in variants:
        if spec.is_active:
            active.append(spec)
            continue
        where = spec.input_archive if spec.input_archive is not None else "no archive found"
        sink.warn(f"{spec.name} jar does not exist ({where}). Ignoring it for this run.")
    return active


def build_context(
    config: FusionConfig,
    sink: LogSink,
    codec: ArchiveCodec | None = None,
    relocator: BytecodeRelocator | None = None,
    classifier: ContentClassifier | None = None,
) -> FusionContext:
    if relocator is None:
        relocator = ExternalRelocator(config.relocator_tool) if config.relocator_tool else ZipPathRelocator()
    return FusionContext(
        temp_root=config.work_dir,
        group=config.group,
        sink=sink,
        codec=codec or ZipArchiveCodec(relocator),
        relocator=relocator,
        classifier=classifier or NulByteClassifier(),
        privileged=config.privileged,
    )


def process_variant(spec: VariantSpec, ctx: FusionContext) -> VariantStage:
    """Relocate, extract and re-link one variant inside its own staging directory."""

    staging_dir = ensure_directory(ctx.staging_dir(spec))
    relocated, bytecode_rules = relocate_variant(spec, ctx)
    ctx.codec.unpack(relocated.input_archive, staging_dir)
    manifest = take_manifest(staging_dir)
    text_rules, renamed, detected = relink_resources(relocated, staging_dir, ctx)

    mixins: List[str] = []
    if relocated.is_privileged(ctx.privileged):
        configured = [f"{spec.name}-{name}" for name in spec.mixins]
        mixins = list(dict.fromkeys([*configured, *detected]))
        if not detected:
            ctx.sink.debug(
                f"Couldn't detect {spec.name} mixins. Configure them manually if the variant uses mixins.",
                indent=2,
            )

    return VariantStage(
        spec=relocated,
        staging_dir=staging_dir,
        manifest=manifest,
        bytecode_rules=bytecode_rules,
        text_rules=text_rules,
        renamed=renamed,
        mixins=mixins,
    )


def _run_stages(variants: List[VariantSpec], ctx: FusionContext, workers: int) -> List[VariantStage]:
    if workers <= 1 or len(variants) <= 1:
        return [process_variant(spec, ctx) for spec in variants]
    with ThreadPoolExecutor(max_workers=min(workers, len(variants))) as pool:
        futures = [pool.submit(process_variant, spec, ctx) for spec in variants]
        return [future.result() for future in futures]


def fuse(
    config: FusionConfig,
    sink: LogSink | None = None,
    codec: ArchiveCodec | None = None,
    relocator: BytecodeRelocator | None = None,
    classifier: ContentClassifier | None = None,
) -> FusionResult:
    """Fuse every active variant archive described by ``config`` into one archive."""

    sink = sink or LogSink()
    started = time.monotonic()
    output = config.output
    check_work_dir(config)

    if config.skip_if_exists and output.exists():
        sink.info(f"Fused jar {output} already exists. Skipping.")
        return FusionResult(output=output, skipped=True)

    variants = active_variants(config.variants, sink)
    if not variants:
        raise ConfigurationError("No input jars were provided.")

    ctx = build_context(config, sink, codec=codec, relocator=relocator, classifier=classifier)
    sink.info("Start fusing jars")
    sink.info("Cleaning work directory", indent=2)
    fresh_directory(ctx.temp_root)
    try:
        sink.info(f"Processing {len(variants)} variant(s): {', '.join(spec.name for spec in variants)}")
        stages = _run_stages(variants, ctx, config.workers)

        merge_dir = ensure_directory(ctx.merge_dir)
        privileged_stage = next((stage for stage in stages if stage.spec.is_privileged(ctx.privileged)), None)
        manifest = fuse_manifests(
            [stage.manifest for stage in stages],
            privileged=privileged_stage.name if privileged_stage else None,
            privileged_mixins=privileged_stage.mixins if privileged_stage else (),
        )
        write_manifest(manifest, merge_dir)

        for stage in stages:
            move_tree(stage.staging_dir, merge_dir)

        sink.info("Processing duplicate packages and resources")
        registry = build_duplicate_registry(config.duplicates, [stage.name for stage in stages])
        pack_rules = collapse_shared_packages(registry, merge_dir, sink)
        rewritten = rewrite_shared_references(registry, merge_dir, ctx.classifier)
        if registry:
            sink.info(f"Shared {len(registry.packages)} package(s), rewrote {rewritten} text file(s)", indent=2)

        sink.info("Fusing jars into single jar")
        packed = ctx.codec.pack(merge_dir, ctx.temp_root / output.name, pack_rules)
        ensure_directory(output.parent)
        move_file(packed, output)
        set_output_permissions(output)
    finally:
        sink.info("Finishing up", indent=2)
        remove_tree(ctx.temp_root)

    elapsed = time.monotonic() - started
    sink.ok(f"Fused jar created in {elapsed:.2f} seconds.")
    return FusionResult(
        output=output,
        stages=stages,
        registry=registry,
        manifest=manifest,
        pack_rules=pack_rules,
        elapsed=elapsed,
    )
