from __future__ import annotations

from pathlib import Path
from typing import Iterator, List

from .collaborators import ContentClassifier
from .models import ResourceKind
from .text_utils import TEXT_ENCODING, TEXT_ERRORS

META_DIR = "META-INF"
JARS_DIR = "jars"
JARJAR_DIR = "jarjar"
SERVICES_DIR = "services"

CLASS_SUFFIX = ".class"
LIBRARY_SUFFIX = ".jar"
JSON_SUFFIX = ".json"
ACCESS_WIDENER_SUFFIX = ".accesswidener"
ACCESS_WIDENER_HEADER = "accessWidener"

MIXIN_MARKER = '"package":'
REFMAP_MARKERS = ('"mappings":', '"data":')


def _is_class_file(path: Path) -> bool:
    return path.suffix.lower() == CLASS_SUFFIX


def _walk_files(root: Path) -> Iterator[Path]:
    if not root.is_dir():
        return
    for path in sorted(root.rglob("*")):
        if path.is_file() and not _is_class_file(path):
            yield path


def _read_text(path: Path) -> str:
    return path.read_text(encoding=TEXT_ENCODING, errors=TEXT_ERRORS)


def _first_line(path: Path) -> str:
    with path.open("r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as handle:
        return handle.readline()


def embedded_libraries(root: Path) -> List[Path]:
    """Return nested jars shipped under ``META-INF/jars`` and ``META-INF/jarjar``."""

    libraries: List[Path] = []
    for folder in (JARS_DIR, JARJAR_DIR):
        location = root / META_DIR / folder
        if not location.is_dir():
            continue
        libraries.extend(
            path for path in sorted(location.iterdir())
            if path.is_file() and path.suffix.lower() == LIBRARY_SUFFIX
        )
    return libraries


def platform_services(root: Path, group: str) -> List[Path]:
    """Return service descriptors whose base name mentions the shared group."""

    location = root / META_DIR / SERVICES_DIR
    if not location.is_dir():
        return []
    return [
        path for path in sorted(location.iterdir())
        if path.is_file() and not _is_class_file(path) and group in path.stem
    ]


def text_files(root: Path, classifier: ContentClassifier) -> List[Path]:
    return [path for path in _walk_files(root) if not classifier.is_binary(path)]


def classify_json(text: str, include_refmaps: bool) -> ResourceKind | None:
    if include_refmaps and any(marker in text for marker in REFMAP_MARKERS):
        return ResourceKind.REFERENCE_MAP
    if MIXIN_MARKER in text:
        return ResourceKind.MIXIN_CONFIG
    return None


def mixin_resources(
    root: Path,
    classifier: ContentClassifier,
    include_refmaps: bool,
) -> List[tuple[Path, ResourceKind]]:
    """Find mixin configs and, when asked, mixin reference maps."""

    found: List[tuple[Path, ResourceKind]] = []
    for path in text_files(root, classifier):
        if path.suffix.lower() != JSON_SUFFIX:
            continue
        kind = classify_json(_read_text(path), include_refmaps)
        if kind is not None:
            found.append((path, kind))
    return found


def access_wideners(root: Path, classifier: ContentClassifier) -> List[Path]:
    wideners: List[Path] = []
    for path in text_files(root, classifier):
        if path.suffix == ACCESS_WIDENER_SUFFIX:
            wideners.append(path)
            continue
        if _first_line(path).startswith(ACCESS_WIDENER_HEADER):
            wideners.append(path)
    return wideners


__all__ = [
    "embedded_libraries",
    "platform_services",
    "text_files",
    "classify_json",
    "mixin_resources",
    "access_wideners",
]
