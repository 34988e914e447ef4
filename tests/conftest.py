from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable, Dict

import pytest

from modfuser.archive_codec import ZipArchiveCodec, ZipPathRelocator
from modfuser.collaborators import NulByteClassifier
from modfuser.logging_utils import LogSink
from modfuser.models import FusionContext

GROUP = "com.example"
CLASS_BYTES = b"\xca\xfe\xba\xbe\x00\x00\x00\x34"

JarFactory = Callable[[Path, Dict[str, bytes | str]], Path]
TreeFactory = Callable[[Path, Dict[str, bytes | str]], Path]


def _write_entries(root: Path, entries: Dict[str, bytes | str]) -> None:
    for name, data in entries.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, bytes):
            path.write_bytes(data)
        else:
            path.write_text(data, encoding="utf-8", newline="")


@pytest.fixture
def make_jar() -> JarFactory:
    def _make(path: Path, entries: Dict[str, bytes | str]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as jar:
            for name, data in entries.items():
                jar.writestr(name, data)
        return path

    return _make


@pytest.fixture
def make_tree() -> TreeFactory:
    def _make(root: Path, entries: Dict[str, bytes | str]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        _write_entries(root, entries)
        return root

    return _make


@pytest.fixture
def sink() -> LogSink:
    return LogSink(verbose=True)


@pytest.fixture
def ctx(tmp_path: Path, sink: LogSink) -> FusionContext:
    relocator = ZipPathRelocator()
    work = tmp_path / "work"
    work.mkdir()
    return FusionContext(
        temp_root=work,
        group=GROUP,
        sink=sink,
        codec=ZipArchiveCodec(relocator),
        relocator=relocator,
        classifier=NulByteClassifier(),
    )


def jar_entries(path: Path) -> Dict[str, bytes]:
    with zipfile.ZipFile(path) as jar:
        return {info.filename: jar.read(info) for info in jar.infolist() if not info.is_dir()}


@pytest.fixture
def read_jar() -> Callable[[Path], Dict[str, bytes]]:
    return jar_entries
