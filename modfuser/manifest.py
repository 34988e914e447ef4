from __future__ import annotations

from collections.abc import MutableMapping
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Sequence

from .file_utils import ensure_directory
from .text_utils import split_list

MANIFEST_PATH = Path("META-INF") / "MANIFEST.MF"
MANIFEST_VERSION = "Manifest-Version"
DEFAULT_MANIFEST_VERSION = "1.0"
MIXIN_CONFIGS = "MixinConfigs"
LINE_LIMIT = 72
LINE_END = "\r\n"


class ManifestAttributes(MutableMapping):
    """Main-section manifest attributes.

    Keys compare case-insensitively; the spelling used the first time a key is
    set is the one written back out.
    """

    def __init__(self, initial: Iterable[tuple[str, str]] | Dict[str, str] = ()) -> None:
        self._data: Dict[str, tuple[str, str]] = {}
        items = initial.items() if isinstance(initial, dict) else initial
        for key, value in items:
            self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        folded = key.lower()
        name = self._data[folded][0] if folded in self._data else key
        self._data[folded] = (name, value)

    def __delitem__(self, key: str) -> None:
        del self._data[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def __repr__(self) -> str:
        return f"ManifestAttributes({dict(self.items())!r})"


def parse_manifest(text: str) -> ManifestAttributes:
    """Parse the main section of a jar manifest."""

    attributes = ManifestAttributes()
    current_key: str | None = None
    for raw_line in text.splitlines():
        if not raw_line.strip():
            if attributes or current_key:
                break
            continue
        if raw_line.startswith(" ") and current_key is not None:
            attributes[current_key] += raw_line[1:]
            continue
        if ":" not in raw_line:
            current_key = None
            continue
        key, value = raw_line.split(":", 1)
        current_key = key.strip()
        attributes[current_key] = value[1:] if value.startswith(" ") else value
    return attributes


def read_manifest(path: Path) -> ManifestAttributes:
    if not path.is_file():
        return ManifestAttributes()
    return parse_manifest(path.read_text(encoding="utf-8"))


def _wrap_line(line: str) -> List[str]:
    encoded = line.encode("utf-8")
    if len(encoded) <= LINE_LIMIT:
        return [line]

    pieces: List[str] = []
    chunk = ""
    limit = LINE_LIMIT
    for char in line:
        if len((chunk + char).encode("utf-8")) > limit:
            pieces.append(chunk)
            chunk = ""
            limit = LINE_LIMIT - 1
        chunk += char
    pieces.append(chunk)
    return [pieces[0], *(" " + piece for piece in pieces[1:])]


def render_manifest(attributes: ManifestAttributes) -> str:
    lines: List[str] = []
    version = attributes.get(MANIFEST_VERSION, DEFAULT_MANIFEST_VERSION)
    lines.extend(_wrap_line(f"{MANIFEST_VERSION}: {version}"))
    for key, value in attributes.items():
        if key.lower() == MANIFEST_VERSION.lower():
            continue
        lines.extend(_wrap_line(f"{key}: {value}"))
    return LINE_END.join(lines) + LINE_END + LINE_END


def write_manifest(attributes: ManifestAttributes, root: Path) -> Path:
    path = root / MANIFEST_PATH
    ensure_directory(path.parent)
    with path.open("w", encoding="utf-8", newline="") as writer:
        writer.write(render_manifest(attributes))
    return path


def take_manifest(staging_dir: Path) -> ManifestAttributes:
    """Read a variant's manifest and remove it from the staging directory."""

    path = staging_dir / MANIFEST_PATH
    attributes = read_manifest(path)
    path.unlink(missing_ok=True)
    return attributes


def _dedupe(names: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for name in names:
        seen.setdefault(name, None)
    return list(seen)


def fuse_manifests(
    manifests: Sequence[ManifestAttributes],
    privileged: str | None = None,
    privileged_mixins: Sequence[str] = (),
) -> ManifestAttributes:
    """Merge manifests in order; later manifests win on key clashes.

    ``privileged`` is the name of the privileged variant when it took part in
    the run. Its mixin names are expected to carry the variant prefix already.
    """

    fused = ManifestAttributes()
    for manifest in manifests:
        for key, value in manifest.items():
            fused[key] = value

    if privileged is None:
        return fused

    existing = fused.get(MIXIN_CONFIGS)
    if existing is not None:
        prefixed = [f"{privileged}-{name}" for name in split_list(existing)]
        fused[MIXIN_CONFIGS] = ",".join(_dedupe([*prefixed, *privileged_mixins]))
    elif privileged_mixins:
        fused[MIXIN_CONFIGS] = ",".join(_dedupe(privileged_mixins))
    return fused
