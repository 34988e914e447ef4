from __future__ import annotations

import dataclasses
import zipfile
from pathlib import Path
from typing import List

from .errors import FusionError
from .models import FusionContext, RelocationRule, VariantSpec, rules_from_mapping
from .text_utils import first_directory

BOOTSTRAP_MARKER = "architectury_inject"


def find_bootstrap_directory(archive: Path, marker: str = BOOTSTRAP_MARKER) -> str | None:
    """Return the injected bootstrap directory at the top of ``archive``, if any.

    Directory entries win over file entries; among each kind the first match
    in archive order is used.
    """

    from_file: str | None = None
    try:
        with zipfile.ZipFile(archive) as jar:
            for info in jar.infolist():
                if info.is_dir():
                    top = info.filename.split("/", 1)[0]
                    if top.startswith(marker):
                        return top
                elif from_file is None:
                    top = first_directory(info.filename)
                    if top.startswith(marker):
                        from_file = top
    except (OSError, zipfile.BadZipFile) as exc:
        raise FusionError(f"Cannot read archive {archive}: {exc}") from exc
    return from_file


def build_relocation_rules(spec: VariantSpec, group: str, bootstrap: str | None = None) -> List[RelocationRule]:
    rules = [RelocationRule(group, f"{spec.name}.{group}")]
    rules.extend(rules_from_mapping(spec.relocations))
    if bootstrap:
        rules.append(RelocationRule(bootstrap, f"{spec.name}.{bootstrap}"))
    return rules


def relocated_archive_path(spec: VariantSpec, ctx: FusionContext) -> Path:
    return ctx.temp_root / f"{spec.name}-relocated.jar"


def relocate_variant(spec: VariantSpec, ctx: FusionContext) -> tuple[VariantSpec, List[RelocationRule]]:
    """Namespace ``spec``'s archive under its variant name.

    Returns a copy of ``spec`` pointing at the relocated archive together with
    the rules that were applied.
    """

    if spec.input_archive is None:
        raise FusionError(f"Variant '{spec.name}' has no input archive to relocate")

    bootstrap = find_bootstrap_directory(spec.input_archive)
    if bootstrap:
        ctx.sink.debug(f"{spec.name}: found injected bootstrap directory {bootstrap}", indent=2)
    rules = build_relocation_rules(spec, ctx.group, bootstrap)

    output = relocated_archive_path(spec, ctx)
    output.unlink(missing_ok=True)
    ctx.relocator.relocate(spec.input_archive, output, rules)
    ctx.sink.info(f"{spec.name}: relocated {spec.input_archive.name} with {len(rules)} rule(s)", indent=2)
    return dataclasses.replace(spec, input_archive=output), rules
