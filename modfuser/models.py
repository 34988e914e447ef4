from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List

from .text_utils import to_path_form

if TYPE_CHECKING:
    from .collaborators import ArchiveCodec, BytecodeRelocator, ContentClassifier
    from .logging_utils import LogSink
    from .manifest import ManifestAttributes

PRIVILEGED_VARIANT = "forge"
KNOWN_VARIANTS = ("forge", "neoforge", "fabric", "quilt")
MERGE_DIR_NAME = "merged-temp"


class ResourceKind(str, Enum):
    EMBEDDED_LIBRARY = "embedded_library"
    PLATFORM_SERVICE = "platform_service"
    MIXIN_CONFIG = "mixin_config"
    REFERENCE_MAP = "reference_map"
    ACCESS_WIDENER = "access_widener"


@dataclass(frozen=True, slots=True)
class RelocationRule:
    source: str
    destination: str

    def path_form(self) -> "RelocationRule":
        return RelocationRule(to_path_form(self.source), to_path_form(self.destination))

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination}"


def rules_from_mapping(mapping: Dict[str, str] | None) -> List[RelocationRule]:
    return [RelocationRule(source, destination) for source, destination in (mapping or {}).items()]


@dataclass(slots=True)
class VariantSpec:
    name: str
    input_archive: Path | None = None
    relocations: Dict[str, str] = field(default_factory=dict)
    mixins: List[str] = field(default_factory=list)
    custom: bool = False

    @property
    def staging_dir_name(self) -> str:
        return f"{self.name}-temp"

    @property
    def is_active(self) -> bool:
        return self.input_archive is not None and self.input_archive.is_file()

    def is_privileged(self, privileged: str) -> bool:
        return self.name.lower() == privileged.lower()


@dataclass(slots=True)
class RenamedResource:
    kind: ResourceKind
    source: Path
    target: Path

    def as_rule(self) -> RelocationRule:
        return RelocationRule(self.source.name, self.target.name)


@dataclass(slots=True)
class VariantStage:
    """Everything one variant's relocate/extract/re-link unit produced."""

    spec: VariantSpec
    staging_dir: Path
    manifest: "ManifestAttributes"
    bytecode_rules: List[RelocationRule] = field(default_factory=list)
    text_rules: List[RelocationRule] = field(default_factory=list)
    renamed: List[RenamedResource] = field(default_factory=list)
    mixins: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.spec.name


@dataclass(slots=True)
class DuplicatePackageRegistry:
    packages: List[str] = field(default_factory=list)
    class_rules: List[RelocationRule] = field(default_factory=list)
    path_rules: List[RelocationRule] = field(default_factory=list)

    @property
    def text_rules(self) -> List[RelocationRule]:
        """Class then path rules, longest source first.

        A variant name can end with another one (``neoforge`` / ``forge``), so
        the shorter prefix must not get a chance to match inside the longer.
        """

        rules = [*self.class_rules, *self.path_rules]
        return sorted(rules, key=lambda rule: len(rule.source), reverse=True)

    def __bool__(self) -> bool:
        return bool(self.packages)


@dataclass(slots=True)
class FusionContext:
    """State shared by every component call of a single fusion run."""

    temp_root: Path
    group: str
    sink: "LogSink"
    codec: "ArchiveCodec"
    relocator: "BytecodeRelocator"
    classifier: "ContentClassifier"
    privileged: str = PRIVILEGED_VARIANT

    @property
    def merge_dir(self) -> Path:
        return self.temp_root / MERGE_DIR_NAME

    def staging_dir(self, spec: VariantSpec) -> Path:
        return self.temp_root / spec.staging_dir_name


@dataclass(slots=True)
class FusionResult:
    output: Path
    skipped: bool = False
    stages: List[VariantStage] = field(default_factory=list)
    registry: DuplicatePackageRegistry = field(default_factory=DuplicatePackageRegistry)
    manifest: "ManifestAttributes | None" = None
    pack_rules: List[RelocationRule] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def variant_names(self) -> List[str]:
        return [stage.name for stage in self.stages]
