from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .file_utils import ensure_directory, run_command
from .models import RelocationRule


@dataclass(slots=True)
class ExternalTool:
    """A program declared under ``[relocator]`` in the fusion config."""

    executable: Path
    args: Sequence[str] = ()

    def command(self, extra_args: Sequence[str] = ()) -> List[str]:
        return [str(self.executable), *self.args, *extra_args]

    def run(self, extra_args: Sequence[str] = (), *, cwd: Path | None = None) -> None:
        run_command(self.command(extra_args), cwd=cwd)


def rule_arguments(rules: Sequence[RelocationRule]) -> List[str]:
    arguments: List[str] = []
    for rule in rules:
        arguments.extend(["--rule", f"{rule.source}={rule.destination}"])
    return arguments


@dataclass(slots=True)
class ExternalRelocator:
    """Delegate bytecode relocation to an external tool.

    The tool is called as ``executable args... <input> <output> --rule src=dst ...``.
    """

    tool: ExternalTool

    def relocate(self, source: Path, destination: Path, rules: Sequence[RelocationRule]) -> None:
        ensure_directory(destination.parent)
        self.tool.run([str(source), str(destination), *rule_arguments(rules)])
