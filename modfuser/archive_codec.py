from __future__ import annotations

import zipfile
from pathlib import Path
from typing import List, Sequence

from .collaborators import BytecodeRelocator
from .errors import FusionError
from .file_utils import ensure_directory
from .models import RelocationRule
from .text_utils import to_path_form

MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
COMPRESSION = zipfile.ZIP_DEFLATED
COMPRESS_LEVEL = 9


def relocate_entry_name(name: str, rules: Sequence[RelocationRule]) -> str:
    """Rewrite the leading path of an entry with the first rule whose source prefix matches."""

    for rule in rules:
        source = to_path_form(rule.source).strip("/")
        if not source:
            continue
        if name == source or name.startswith(source + "/"):
            return to_path_form(rule.destination).strip("/") + name[len(source):]
    return name


class ZipPathRelocator:
    """Relocate archive entry paths, copying every entry's bytes unchanged.

    Class constant pools are left alone; a real bytecode relocation tool can
    be plugged in through :class:`modfuser.tooling.ExternalRelocator`.
    """

    def relocate(self, source: Path, destination: Path, rules: Sequence[RelocationRule]) -> None:
        ensure_directory(destination.parent)
        seen: set[str] = set()
        try:
            with zipfile.ZipFile(source) as reader, zipfile.ZipFile(
                destination, "w", compression=COMPRESSION, compresslevel=COMPRESS_LEVEL
            ) as writer:
                for info in reader.infolist():
                    name = relocate_entry_name(info.filename, rules)
                    if name in seen:
                        continue
                    seen.add(name)
                    if info.is_dir():
                        writer.writestr(zipfile.ZipInfo(name, date_time=info.date_time), b"")
                        continue
                    target = zipfile.ZipInfo(name, date_time=info.date_time)
                    target.compress_type = COMPRESSION
                    target.external_attr = info.external_attr
                    writer.writestr(target, reader.read(info), compresslevel=COMPRESS_LEVEL)
        except zipfile.BadZipFile as exc:
            raise FusionError(f"Cannot read archive {source}: {exc}") from exc


class ZipArchiveCodec:
    def __init__(self, relocator: BytecodeRelocator | None = None) -> None:
        self.relocator = relocator or ZipPathRelocator()

    def unpack(self, archive: Path, destination: Path) -> None:
        ensure_directory(destination)
        root = destination.resolve()
        try:
            with zipfile.ZipFile(archive) as reader:
                for info in reader.infolist():
                    target = (destination / info.filename).resolve()
                    if not target.is_relative_to(root):
                        raise FusionError(f"Refusing to extract {info.filename} outside {destination}")
                    reader.extract(info, destination)
        except zipfile.BadZipFile as exc:
            raise FusionError(f"Cannot read archive {archive}: {exc}") from exc

    def pack(self, source_dir: Path, archive: Path, rules: Sequence[RelocationRule]) -> Path:
        ensure_directory(archive.parent)
        if not rules:
            _write_directory(source_dir, archive)
            return archive

        unrelocated = archive.with_name(archive.name + ".unrelocated")
        _write_directory(source_dir, unrelocated)
        try:
            self.relocator.relocate(unrelocated, archive, list(rules))
        finally:
            unrelocated.unlink(missing_ok=True)
        return archive


def _archive_entries(source_dir: Path) -> List[str]:
    entries = sorted(
        path.relative_to(source_dir).as_posix()
        for path in source_dir.rglob("*")
        if path.is_file()
    )
    if MANIFEST_ENTRY in entries:
        entries.remove(MANIFEST_ENTRY)
        entries.insert(0, MANIFEST_ENTRY)
    return entries


def _write_directory(source_dir: Path, archive: Path) -> None:
    with zipfile.ZipFile(archive, "w", compression=COMPRESSION, compresslevel=COMPRESS_LEVEL) as writer:
        for entry in _archive_entries(source_dir):
            writer.write(source_dir / entry, entry)
