"""Object Compiler.

This module compiles the julia program into a linkable object file
(julia < 0.7) or static archive (julia >= 0.7) by running julia with
`--output-o` and an inline `-e` expression that includes the program.

Design:
    - The julia command line comes from JuliaCommandSerializer
    - An optional cache priming run (same command, no --output-o) builds
      precompiled modules in a local cache directory first
    - Every run uses the build directory as working directory
"""

from pathlib import Path
from typing import List, Optional

from ..errors import CompilationError
from ..runtime.command import JuliaCommandSerializer, JuliaCompileRequest
from ..runtime.probe import RuntimeInfo
from .compilation_executor import CompilationExecutor


def julia_string_literal(text: str) -> str:
    """Quote text as a Julia string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


def include_expression(program: str, runtime: RuntimeInfo) -> str:
    """Build the `-e` expression that loads the program into the image.

    The local cache directory is put first on the module search path so
    precompiled modules land in (and are read from) the build directory.
    """
    cache_dir = julia_string_literal(runtime.cache_dir_name)
    program_ref = julia_string_literal(program)
    if runtime.uses_archive:
        lines = [
            "Base.__init__(); Sys.__init__()",
            f"pushfirst!(Base.DEPOT_PATH, {cache_dir})",
            f"include({program_ref})",
        ]
    else:
        lines = [
            "empty!(Base.LOAD_CACHE_PATH)",
            f"push!(Base.LOAD_CACHE_PATH, {cache_dir})",
            "Sys.__init__(); Base.early_init();",
            f"include({program_ref})",
            "empty!(Base.LOAD_CACHE_PATH)",
        ]
    return "\n" + "\n".join(f"  {line}" for line in lines)


class ObjectCompiler:
    """Runs julia to produce the object/archive file.

    Example:
        compiler = ObjectCompiler(executor, runtime, verbose=True)
        compiler.compile(Path("/abs/hello.jl"), "hello.a", build_dir, request)
    """

    def __init__(
        self,
        executor: CompilationExecutor,
        runtime: RuntimeInfo,
        verbose: bool = False,
    ):
        self.executor = executor
        self.runtime = runtime
        self.verbose = verbose
        self.serializer = JuliaCommandSerializer(runtime.julia_cmd)

    def should_prime_cache(self, request: JuliaCompileRequest) -> bool:
        """Cache priming only runs when requested and meaningful for the runtime."""
        return self.runtime.supports_cache_priming and request.compilecache == "yes"

    def compose_priming_command(self, program: Path, request: JuliaCompileRequest) -> Optional[List[str]]:
        if not self.should_prime_cache(request):
            return None
        julia_cmd = self.serializer.render(request)
        return julia_cmd + ["-e", include_expression(str(program), self.runtime)]

    def compose_command(self, program: Path, object_file: str, request: JuliaCompileRequest) -> List[str]:
        julia_cmd = self.serializer.render(request)
        return julia_cmd + [
            "--output-o",
            object_file,
            "-e",
            include_expression(str(program), self.runtime),
        ]

    def compile(
        self,
        program: Path,
        object_file: str,
        build_dir: Path,
        request: JuliaCompileRequest,
    ) -> Path:
        """Compile the program into build_dir/object_file.

        Raises:
            CompilationError: If julia exits non-zero
        """
        priming = self.compose_priming_command(program, request)
        if priming is not None:
            if self.verbose:
                print(f"Build \".ji\" local cache:\n  {' '.join(priming)}")
            self.executor.run(
                priming,
                cwd=build_dir,
                error_cls=CompilationError,
                description="Build .ji local cache",
            )

        command = self.compose_command(program, object_file, request)
        kind = "static library" if self.runtime.uses_archive else "object file"
        if self.verbose:
            print(f"Build {kind} \"{object_file}\":\n  {' '.join(command)}")
        self.executor.run(
            command,
            cwd=build_dir,
            error_cls=CompilationError,
            description=f"Build {kind} \"{object_file}\"",
        )
        return build_dir / object_file
