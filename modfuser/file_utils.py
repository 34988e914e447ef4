from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from .errors import FusionError
from .logging_utils import log

OUTPUT_PERMISSIONS = 0o777


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def fresh_directory(path: Path) -> Path:
    """Delete ``path`` if present and recreate it empty."""

    if path.exists():
        remove_tree(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def move_tree(source: Path, destination: Path) -> None:
    """Move every child of ``source`` into ``destination``.

    Existing entries in ``destination`` that do not share a name with a moved
    child are left alone. Files with the same name are overwritten.
    """

    if not source.is_dir():
        return
    children = sorted(source.iterdir())
    if not children:
        return

    ensure_directory(destination)
    for child in children:
        target = destination / child.name
        if child.is_dir():
            move_directory(child, target)
        elif child.is_file():
            move_file(child, target)


def move_directory(source: Path, destination: Path) -> None:
    if not source.exists():
        raise FileNotFoundError(f"Source '{source}' does not exist")
    if not source.is_dir():
        raise NotADirectoryError(f"Source '{source}' is not a directory")

    try:
        os.rename(source, destination)
        return
    except OSError:
        pass

    if destination.resolve().is_relative_to(source.resolve()):
        raise FusionError(f"Cannot move directory: {source} to a subdirectory of itself: {destination}")
    shutil.copytree(source, destination, dirs_exist_ok=True)
    shutil.rmtree(source)
    if source.exists():
        raise FusionError(f"Failed to delete original directory '{source}' after copy to '{destination}'")


def move_file(source: Path, destination: Path) -> None:
    if not source.exists():
        raise FileNotFoundError(f"Source '{source}' does not exist")
    if not source.is_file():
        raise IsADirectoryError(f"Source '{source}' is not a file")

    try:
        os.replace(source, destination)
        return
    except OSError:
        pass

    shutil.copy2(source, destination)
    try:
        source.unlink()
    except OSError as exc:
        destination.unlink(missing_ok=True)
        raise FusionError(f"Failed to delete original file '{source}' after copy to '{destination}'") from exc


def prune_empty_directories(path: Path, stop_at: Path) -> None:
    """Remove ``path`` and its empty parents, never touching ``stop_at``."""

    current = path
    stop = stop_at.resolve()
    while current.is_dir() and current.resolve() != stop and not any(current.iterdir()):
        current.rmdir()
        current = current.parent


def is_within(path: Path, root: Path) -> bool:
    """True when ``path`` is ``root`` itself or lies anywhere below it."""

    return path.resolve().is_relative_to(root.resolve())


def set_output_permissions(path: Path) -> None:
    try:
        os.chmod(path, OUTPUT_PERMISSIONS)
    except (OSError, NotImplementedError):
        pass


def run_command(command: Sequence[str], cwd: Path | None = None) -> None:
    log(f"Running: {' '.join(command)}", indent=2)
    try:
        subprocess.run(list(command), check=True, cwd=cwd)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise FusionError(f"Command failed: {' '.join(command)}") from exc
