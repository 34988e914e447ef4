"""Core package for the modfuser jar fusion tooling."""

from .archive_codec import ZipArchiveCodec, ZipPathRelocator
from .collaborators import NulByteClassifier
from .duplicate_resolver import build_duplicate_registry, collapse_shared_packages, rewrite_shared_references
from .errors import ConfigurationError, FusionError
from .file_utils import ensure_directory, fresh_directory, move_tree
from .load_config import FusionConfig, load_fusion_config
from .logging_utils import LogSink
from .manifest import ManifestAttributes, fuse_manifests, read_manifest, write_manifest
from .models import DuplicatePackageRegistry, FusionResult, RelocationRule, VariantSpec, VariantStage
from .orchestrator import fuse
from .report import export_report, print_fusion_summary
from .resource_relinker import relink_resources
from .variant_relocator import build_relocation_rules, find_bootstrap_directory, relocate_variant

__all__ = [
    "ConfigurationError",
    "DuplicatePackageRegistry",
    "FusionConfig",
    "FusionError",
    "FusionResult",
    "LogSink",
    "ManifestAttributes",
    "NulByteClassifier",
    "RelocationRule",
    "VariantSpec",
    "VariantStage",
    "ZipArchiveCodec",
    "ZipPathRelocator",
    "load_fusion_config",
    "fuse",
    "find_bootstrap_directory",
    "build_relocation_rules",
    "relocate_variant",
    "relink_resources",
    "read_manifest",
    "write_manifest",
    "fuse_manifests",
    "build_duplicate_registry",
    "collapse_shared_packages",
    "rewrite_shared_references",
    "print_fusion_summary",
    "export_report",
    "ensure_directory",
    "fresh_directory",
    "move_tree",
]
