from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

LEVEL_DEFAULT = "info"


def log(message: str, level: str = LEVEL_DEFAULT, indent: int = 0) -> None:
    prefix = " " * max(indent, 0)
    print(f"{prefix}[{level.strip().lower() or LEVEL_DEFAULT}] {message}")


@dataclass(slots=True)
class LogSink:
    """Per-run logging sink handed to every pipeline component.

    Warnings are kept so callers can inspect them after the run; debug lines
    only show up for verbose runs.
    """

    verbose: bool = False
    warnings: List[str] = field(default_factory=list)

    def info(self, message: str, indent: int = 0) -> None:
        log(message, "info", indent)

    def warn(self, message: str, indent: int = 0) -> None:
        self.warnings.append(message)
        log(message, "warn", indent)

    def error(self, message: str, indent: int = 0) -> None:
        log(message, "error", indent)

    def debug(self, message: str, indent: int = 0) -> None:
        if self.verbose:
            log(message, "debug", indent)

    def ok(self, message: str, indent: int = 0) -> None:
        log(message, "ok", indent)
