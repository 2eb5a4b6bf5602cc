"""
Build orchestration for jlbuild.

This module coordinates a complete jlbuild run, from the user configuration
to the staged native artifacts. Stages run in a fixed order and only when
selected:

    clean -> build directory -> object -> shared -> executable
          -> remove temp files -> copy julia libraries -> copy user files

Every input and tool is checked before the first stage runs, so a
configuration or environment problem never leaves a half-built directory.
A stage failure stops the pipeline; artifacts of earlier stages stay on disk.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.build_config import BuildConfiguration, ResolvedConfiguration, resolve
from ..errors import MissingInputError, ToolchainNotFoundError
from ..platforms import LinkStrategy, get_link_strategy
from ..runtime.command import validate_base_command
from ..runtime.probe import RuntimeInfo, RuntimeProbe
from .artifact_stager import ArtifactPaths, ArtifactStager
from .compilation_executor import CompilationExecutor
from .flag_builder import bitness_flag, build_flags
from .linker import ExecutableLinker, SharedLibraryLinker
from .object_compiler import ObjectCompiler
from .snoop import Snooper


@dataclass
class PipelineResult:
    """Result of a completed pipeline run; failures raise a JlbuildError instead."""

    build_dir: Path
    stages_run: List[str] = field(default_factory=list)
    object_file: Optional[Path] = None
    shared_library: Optional[Path] = None
    executable: Optional[Path] = None
    removed_files: List[str] = field(default_factory=list)
    copied_files: List[str] = field(default_factory=list)
    build_time: float = 0.0
    message: str = ""


class BuildOrchestrator:
    """
    Orchestrates the jlbuild pipeline.

    Collaborators can be injected for testing; by default the orchestrator
    probes the configured julia executable, uses the host platform's link
    strategy and runs commands with a CompilationExecutor.

    Example usage:
        orchestrator = BuildOrchestrator()
        result = orchestrator.build(
            BuildConfiguration(program=Path("hello.jl"), executable=True, auto_deps=True)
        )
        print(result.executable)
    """

    def __init__(
        self,
        executor: Optional[CompilationExecutor] = None,
        runtime_probe: Optional[RuntimeProbe] = None,
        strategy: Optional[LinkStrategy] = None,
    ):
        """
        Initialize build orchestrator.

        Args:
            executor: Command executor (default: CompilationExecutor)
            runtime_probe: Julia runtime probe (default: probe the configured julia)
            strategy: Link strategy (default: detected from the host platform)
        """
        self.executor = executor
        self.runtime_probe = runtime_probe
        self.strategy = strategy

    def build(self, config: BuildConfiguration) -> PipelineResult:
        """
        Run the pipeline for a configuration.

        Args:
            config: User configuration; resolved once before anything runs

        Returns:
            PipelineResult describing the stages that ran and their outputs

        Raises:
            JlbuildError: If validation, the environment, or any stage fails
        """
        start_time = time.time()
        resolved = resolve(config)
        stages = resolved.stages
        say = self._printer(not resolved.quiet)

        self._validate_inputs(resolved, say)
        say(f"Build directory:\n  \"{resolved.build_dir}\"")

        result = PipelineResult(build_dir=resolved.build_dir)

        if stages.nothing_selected:
            say("Nothing to do")
            result.message = "Nothing to do"
            return result

        executor = self.executor or CompilationExecutor(show_output=resolved.verbose)
        strategy = self.strategy or get_link_strategy(toolchain_root=resolved.toolchain_root)
        runtime = self._check_environment(resolved, executor, strategy)

        stager = ArtifactStager(resolved.build_dir, verbose=resolved.verbose)

        if stages.clean:
            stager.clean()
            result.stages_run.append("clean")

        if stages.only_clean:
            say("Clean completed")
            result.message = "Clean completed"
            result.build_time = time.time() - start_time
            return result

        stager.ensure_build_dir()

        paths = ArtifactPaths.derive(resolved.output_name, runtime, strategy) if runtime else None

        if stages.object:
            result.object_file = self._build_object(resolved, executor, runtime, stager, paths)
            result.stages_run.append("object")

        if stages.shared or stages.executable:
            flags = build_flags(
                strategy.base_flags(runtime),
                bitness_flag(runtime.word_size, runtime.arch),
                optimize=resolved.optimize,
                debug=resolved.debug,
                extra_flags=resolved.cc_flags,
            )

            if stages.shared:
                linker = SharedLibraryLinker(
                    executor, strategy, runtime, cc=resolved.cc, verbose=resolved.verbose
                )
                result.shared_library = linker.link(
                    paths, stager, flags, shared_init=resolved.shared_init
                )
                result.stages_run.append("shared")

            if stages.executable:
                linker = ExecutableLinker(
                    executor, strategy, runtime, cc=resolved.cc, verbose=resolved.verbose
                )
                result.executable = linker.link(
                    paths, resolved.build_dir, resolved.driver_program, flags
                )
                result.stages_run.append("executable")

        if stages.remove_temp:
            result.removed_files = stager.remove_temp_files()
            result.stages_run.append("remove_temp")

        if stages.copy_runtime_libs:
            result.copied_files.extend(stager.copy_runtime_libraries(runtime, strategy))
            result.stages_run.append("copy_runtime_libs")

        if stages.copy_user_files:
            result.copied_files.extend(
                stager.copy_files(
                    resolved.copy_files, "Copy user-specified files to build directory:"
                )
            )
            result.stages_run.append("copy_user_files")

        say("All done")
        result.message = "All done"
        result.build_time = time.time() - start_time
        return result

    @staticmethod
    def _printer(enabled: bool):
        def say(message: str) -> None:
            if enabled:
                print(message)
        return say

    def _validate_inputs(self, resolved: ResolvedConfiguration, say) -> None:
        """
        Check that every input file exists.

        Raises:
            MissingInputError: If the program, driver program, or snoop file is missing
        """
        if not resolved.program.is_file():
            raise MissingInputError(resolved.program)
        say(f"Julia program file:\n  \"{resolved.program}\"")

        if resolved.stages.executable:
            if not resolved.driver_program.is_file():
                raise MissingInputError(resolved.driver_program)
            say(f"C program file:\n  \"{resolved.driver_program}\"")

        if resolved.stages.object and resolved.snoop_file is not None:
            if not resolved.snoop_file.is_file():
                raise MissingInputError(resolved.snoop_file)

    def _check_environment(
        self,
        resolved: ResolvedConfiguration,
        executor: CompilationExecutor,
        strategy: LinkStrategy,
    ) -> Optional[RuntimeInfo]:
        """
        Check the tools the selected stages need.

        Returns:
            RuntimeInfo when a selected stage needs the julia runtime, else None

        Raises:
            ToolchainNotFoundError: If the C compiler does not run
            RuntimeProbeError: If julia cannot be queried
            IncompatibleRuntimeError: If Base.julia_cmd() has an unexpected shape
        """
        stages = resolved.stages

        if stages.needs_c_compiler:
            env = strategy.subprocess_env()
            if not executor.check_tool([resolved.cc, "-v"], env=env):
                raise ToolchainNotFoundError(resolved.cc)

        if not stages.needs_runtime:
            return None

        probe = self.runtime_probe or RuntimeProbe(resolved.julia)
        runtime = probe.probe()
        if stages.object:
            validate_base_command(runtime.julia_cmd)
        return runtime

    def _build_object(
        self,
        resolved: ResolvedConfiguration,
        executor: CompilationExecutor,
        runtime: RuntimeInfo,
        stager: ArtifactStager,
        paths: ArtifactPaths,
    ) -> Path:
        program = resolved.program
        if resolved.snoop_file is not None:
            snooper = Snooper(executor, julia=resolved.julia, verbose=resolved.verbose)
            program = snooper.prepare_main(resolved.snoop_file, program, stager)

        compiler = ObjectCompiler(executor, runtime, verbose=resolved.verbose)
        return compiler.compile(
            program, paths.object_file, resolved.build_dir, resolved.julia_request
        )
