from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .collaborators import ContentClassifier
from .file_utils import move_tree, prune_empty_directories
from .logging_utils import LogSink
from .models import DuplicatePackageRegistry, RelocationRule
from .resource_scanner import text_files
from .text_utils import rewrite_text_file, to_path_form


def build_duplicate_registry(packages: Iterable[str], variants: Iterable[str]) -> DuplicatePackageRegistry:
    """Register ``V.P -> P`` and ``V/P -> P`` for every shared package and active variant."""

    variant_names = list(variants)
    registry = DuplicatePackageRegistry()
    for package in packages:
        package = package.strip()
        if not package or package in registry.packages:
            continue
        registry.packages.append(package)
        package_path = to_path_form(package)
        for variant in variant_names:
            registry.class_rules.append(RelocationRule(f"{variant}.{package}", package))
            registry.path_rules.append(RelocationRule(f"{variant}/{package_path}", package_path))
    return registry


def collapse_shared_packages(
    registry: DuplicatePackageRegistry,
    merge_dir: Path,
    sink: LogSink | None = None,
) -> List[RelocationRule]:
    """Fold each variant's copy of a shared package into one directory.

    The first copy moved creates the shared directory; later copies merge into
    it and overwrite same-named files. Returns the rules the final packaging
    step has to apply to class files.
    """

    pack_rules: List[RelocationRule] = []
    for rule in registry.class_rules:
        source = merge_dir / to_path_form(rule.source)
        destination = merge_dir / to_path_form(rule.destination)
        if source.is_dir():
            move_tree(source, destination)
            prune_empty_directories(source, merge_dir)
            if sink:
                sink.debug(f"Collapsed {rule.source} into {rule.destination}", indent=2)
        pack_rules.append(rule)
    return pack_rules


def rewrite_shared_references(
    registry: DuplicatePackageRegistry,
    merge_dir: Path,
    classifier: ContentClassifier,
) -> int:
    """Point text references at variant-prefixed shared packages back to the shared name."""

    if not registry:
        return 0
    rules = registry.text_rules
    rewritten = 0
    for path in text_files(merge_dir, classifier):
        if rewrite_text_file(path, rules, keep_final_newline=True):
            rewritten += 1
    return rewritten


__all__ = ["build_duplicate_registry", "collapse_shared_packages", "rewrite_shared_references"]
