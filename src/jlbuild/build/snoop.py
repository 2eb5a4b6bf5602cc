"""Snoop Pre-pass.

Runs a user-supplied script with julia's `--trace-compile` option to record
the methods it compiles, then writes a main script that includes the program
and replays those `precompile` statements after it, so the functions they
name are defined by then. Each statement is guarded so one naming a type
that is not loaded cannot abort the build. Compiling the main script
instead of the program bakes the recorded methods into the image.
"""

import os
from pathlib import Path
from typing import List

from ..errors import CompilationError
from .artifact_stager import ArtifactStager
from .compilation_executor import CompilationExecutor
from .object_compiler import julia_string_literal

PRECOMPILE_SCRIPT = "precompiled.jl"
MAIN_SCRIPT = "julia_main.jl"


def guard_statements(trace: str) -> List[str]:
    """Wrap each traced statement in try/catch, dropping blanks and comments."""
    return [
        f"try; {line}; catch; end"
        for line in (raw.strip() for raw in trace.splitlines())
        if line and not line.startswith("#")
    ]


def _relative_to(path: Path, start: Path) -> str:
    try:
        return os.path.relpath(path, start)
    except ValueError:
        # different drives on Windows
        return str(path)


class Snooper:
    """Generates a precompilation script from a snoop run."""

    def __init__(self, executor: CompilationExecutor, julia: str = "julia", verbose: bool = False):
        self.executor = executor
        self.julia = julia
        self.verbose = verbose

    def compose_command(self, snoop_file: Path) -> list:
        return [
            self.julia,
            "--startup-file=no",
            f"--trace-compile={PRECOMPILE_SCRIPT}",
            str(snoop_file),
        ]

    def snoop(self, snoop_file: Path, build_dir: Path) -> Path:
        """Run the snoop script and return the generated precompile script.

        Raises:
            CompilationError: If the snoop run fails or writes nothing
        """
        command = self.compose_command(snoop_file)
        if self.verbose:
            print(f"Snoop \"{snoop_file.name}\":\n  {' '.join(command)}")
        self.executor.run(
            command,
            cwd=build_dir,
            error_cls=CompilationError,
            description=f"Snoop \"{snoop_file.name}\"",
        )
        precompile_file = build_dir / PRECOMPILE_SCRIPT
        if not precompile_file.exists():
            raise CompilationError(
                f"Snoop run did not produce {PRECOMPILE_SCRIPT}", command=command
            )
        return precompile_file

    def prepare_main(self, snoop_file: Path, program: Path, stager: ArtifactStager) -> Path:
        """Snoop, then write the main script that wraps the program.

        Returns:
            Path of the main script to compile in place of the program
        """
        build_dir = stager.build_dir
        precompile_file = self.snoop(snoop_file, build_dir)
        program_ref = julia_string_literal(_relative_to(program, build_dir))
        lines = [f"include({program_ref})"]
        lines.extend(guard_statements(precompile_file.read_text(encoding="utf-8")))
        return stager.write_text(MAIN_SCRIPT, "\n".join(lines) + "\n")
