from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .models import RelocationRule

TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def to_path_form(name: str) -> str:
    return name.replace(".", "/")


def first_directory(entry_name: str) -> str:
    """Return the first path segment of an archive entry name, or "" for top-level files."""

    head, sep, _ = entry_name.replace("\\", "/").partition("/")
    return head if sep else ""


def split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def apply_rules(text: str, rules: Iterable["RelocationRule"]) -> str:
    for rule in rules:
        text = text.replace(rule.source, rule.destination)
    return text


def rewrite_text_file(path: Path, rules: Iterable["RelocationRule"], keep_final_newline: bool = False) -> bool:
    """Apply ``rules`` to ``path`` in place. Returns True when the file content changed."""

    with path.open("r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="") as reader:
        original = reader.read()

    updated = apply_rules(original, rules).rstrip()
    if keep_final_newline:
        updated += "\n"

    with path.open("w", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="") as writer:
        writer.write(updated)
    return updated != original
