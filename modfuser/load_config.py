from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import toml

from .collaborators import is_zip_file
from .errors import ConfigurationError
from .file_utils import is_within
from .models import KNOWN_VARIANTS, PRIVILEGED_VARIANT, VariantSpec
from .tooling import ExternalTool

DEFAULT_WORK_DIR = ".fusioner"
DEFAULT_MERGED_NAME = "MergedJar"
DEFAULT_VERSION = "1.0"
DEFAULT_OUTPUT_DIR = Path("artifacts") / "fused"


@dataclass(slots=True)
class FusionConfig:
    group: str
    output: Path
    variants: List[VariantSpec] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    work_dir: Path = Path(DEFAULT_WORK_DIR)
    privileged: str = PRIVILEGED_VARIANT
    skip_if_exists: bool = False
    workers: int = 1
    relocator_tool: ExternalTool | None = None


def order_variants(variants: List[VariantSpec]) -> List[VariantSpec]:
    """Known platforms first in their fixed order, custom variants after in declaration order."""

    rank = {name: index for index, name in enumerate(KNOWN_VARIANTS)}
    known = sorted((v for v in variants if not v.custom), key=lambda v: rank[v.name])
    return [*known, *(v for v in variants if v.custom)]


def find_input_archive(libs_dir: Path) -> Path | None:
    """Pick the archive with the shortest file name in a build output directory."""

    if not libs_dir.is_dir():
        return None
    candidates = [path for path in libs_dir.iterdir() if is_zip_file(path)]
    if not candidates:
        return None
    return min(candidates, key=lambda path: (len(path.name), path.name))


def check_work_dir(config: FusionConfig, config_path: Path | None = None) -> None:
    """Reject a work directory that holds anything the run has to keep.

    The work directory is wiped before and after every run.
    """

    guarded = [("output", config.output)]
    guarded.extend(
        (f"{spec.name} input", spec.input_archive) for spec in config.variants if spec.input_archive is not None
    )
    if config_path is not None:
        guarded.append(("config file", config_path))
    for label, path in guarded:
        if is_within(path, config.work_dir):
            raise ConfigurationError(
                f"work_dir {config.work_dir} contains the {label} {path} and would be deleted by the run"
            )


def _resolve(base_dir: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else base_dir / path


def _string_map(raw: Any, context: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"'{context}' must be a table of old = new names")
    return {str(key): str(value) for key, value in raw.items()}


def _load_variant(name: str, table: Dict[str, Any], base_dir: Path) -> VariantSpec:
    if not isinstance(table, dict):
        raise ConfigurationError(f"Variant '{name}' must be a table")
    if "input" in table:
        input_archive: Path | None = _resolve(base_dir, str(table["input"]))
    elif "libs_dir" in table:
        input_archive = find_input_archive(_resolve(base_dir, str(table["libs_dir"])))
    else:
        raise ConfigurationError(f"Variant '{name}' needs either 'input' or 'libs_dir'")

    return VariantSpec(
        name=name,
        input_archive=input_archive,
        relocations=_string_map(table.get("relocations"), f"variants.{name}.relocations"),
        mixins=[str(mixin) for mixin in table.get("mixins", [])],
        custom=name not in KNOWN_VARIANTS,
    )


def _load_relocator(raw: Any, base_dir: Path) -> ExternalTool | None:
    if raw is None:
        return None
    if not isinstance(raw, dict) or "executable" not in raw:
        raise ConfigurationError("'relocator' needs an 'executable'")
    executable = str(raw["executable"])
    if "/" in executable or "\\" in executable:
        executable_path = _resolve(base_dir, executable)
    else:
        executable_path = Path(executable)
    return ExternalTool(executable=executable_path, args=tuple(str(arg) for arg in raw.get("args", [])))


def load_fusion_config(config_path: Path) -> FusionConfig:
    """Load a fusion run description from a TOML file.

    Relative paths are resolved against the directory holding the file.
    """

    if not config_path.exists():
        raise ConfigurationError(f"Config file {config_path} not found.")

    raw_text = config_path.read_text(encoding="utf-8")
    try:
        config = toml.loads(raw_text)
    except toml.TomlDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in config file: {config_path}") from exc

    base_dir = config_path.parent
    group = str(config.get("group", "")).strip()
    if not group:
        raise ConfigurationError('"group" is not defined in the config file')

    if "output" in config:
        output = _resolve(base_dir, str(config["output"]))
    else:
        merged_name = config.get("merged_name", DEFAULT_MERGED_NAME)
        version = config.get("version", DEFAULT_VERSION)
        output = base_dir / DEFAULT_OUTPUT_DIR / f"{merged_name}-{version}.jar"

    variants_table = config.get("variants", {})
    if not isinstance(variants_table, dict):
        raise ConfigurationError("'variants' must be a table of variant tables")
    variants = [_load_variant(name, table, base_dir) for name, table in variants_table.items()]

    workers = int(config.get("workers", 1))
    if workers < 1:
        raise ConfigurationError("'workers' must be at least 1")

    fusion_config = FusionConfig(
        group=group,
        output=output,
        variants=order_variants(variants),
        duplicates=[str(package) for package in config.get("duplicates", [])],
        work_dir=_resolve(base_dir, str(config.get("work_dir", DEFAULT_WORK_DIR))),
        privileged=str(config.get("privileged", PRIVILEGED_VARIANT)),
        skip_if_exists=bool(config.get("skip_if_exists", False)),
        workers=workers,
        relocator_tool=_load_relocator(config.get("relocator"), base_dir),
    )
    check_work_dir(fusion_config, config_path)
    return fusion_config
