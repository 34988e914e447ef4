from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from .models import RelocationRule

BINARY_SNIFF_BYTES = 4096
ZIP_LOCAL_HEADER = b"PK\x03\x04"


class ArchiveCodec(Protocol):
    def unpack(self, archive: Path, destination: Path) -> None: ...

    def pack(self, source_dir: Path, archive: Path, rules: Sequence[RelocationRule]) -> Path: ...


class BytecodeRelocator(Protocol):
    def relocate(self, source: Path, destination: Path, rules: Sequence[RelocationRule]) -> None: ...


class ContentClassifier(Protocol):
    def is_binary(self, path: Path) -> bool: ...


class NulByteClassifier:
    """Treat a file as binary when a NUL byte shows up near its start.

    This is a sniffing heuristic, not a format parser; some valid text
    encodings (UTF-16 for instance) are reported as binary.
    """

    def __init__(self, sniff_bytes: int = BINARY_SNIFF_BYTES) -> None:
        self.sniff_bytes = sniff_bytes

    def is_binary(self, path: Path) -> bool:
        with path.open("rb") as handle:
            chunk = handle.read(self.sniff_bytes)
        return b"\x00" in chunk


def is_zip_file(path: Path) -> bool:
    if not path.is_file():
        return False
    try:
        with path.open("rb") as handle:
            return handle.read(len(ZIP_LOCAL_HEADER)) == ZIP_LOCAL_HEADER
    except OSError:
        return False
