from __future__ import annotations

from pathlib import Path
from typing import List

from .models import FusionContext, RelocationRule, RenamedResource, ResourceKind, VariantSpec, rules_from_mapping
from .resource_scanner import access_wideners, embedded_libraries, mixin_resources, platform_services, text_files
from .text_utils import rewrite_text_file, to_path_form


def _rename(path: Path, new_name: str, kind: ResourceKind) -> RenamedResource:
    target = path.with_name(new_name)
    path.rename(target)
    return RenamedResource(kind=kind, source=path, target=target)


def relink_resources(
    spec: VariantSpec,
    staging_dir: Path,
    ctx: FusionContext,
) -> tuple[List[RelocationRule], List[RenamedResource], List[str]]:
    """Rename variant-owned resources and rewrite text references to them.

    Returns the variant's text rule table, the renames performed and, for the
    privileged variant, the renamed mixin config names.
    """

    name = spec.name
    privileged = spec.is_privileged(ctx.privileged)
    renamed: List[RenamedResource] = []

    for path in embedded_libraries(staging_dir):
        renamed.append(_rename(path, f"{name}-{path.name}", ResourceKind.EMBEDDED_LIBRARY))

    for path in platform_services(staging_dir, ctx.group):
        renamed.append(_rename(path, f"{name}.{path.name}", ResourceKind.PLATFORM_SERVICE))

    mixins: List[str] = []
    for path, kind in mixin_resources(staging_dir, ctx.classifier, include_refmaps=not privileged):
        resource = _rename(path, f"{name}-{path.name}", kind)
        renamed.append(resource)
        if privileged and kind is ResourceKind.MIXIN_CONFIG:
            mixins.append(resource.target.name)

    if not privileged:
        for path in access_wideners(staging_dir, ctx.classifier):
            renamed.append(_rename(path, f"{name}-{path.name}", ResourceKind.ACCESS_WIDENER))

    rules = rules_from_mapping(spec.relocations)
    rules.extend(resource.as_rule() for resource in renamed)
    rules.append(RelocationRule(ctx.group, f"{name}.{ctx.group}"))
    rules.append(RelocationRule(to_path_form(ctx.group), f"{name}/{to_path_form(ctx.group)}"))

    rewritten = 0
    for path in text_files(staging_dir, ctx.classifier):
        if rewrite_text_file(path, rules):
            rewritten += 1

    ctx.sink.info(
        f"{name}: renamed {len(renamed)} resource(s), rewrote {rewritten} text file(s)",
        indent=2,
    )
    return rules, renamed, mixins


__all__ = ["relink_resources"]
