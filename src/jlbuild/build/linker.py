"""
C compiler link stages for jlbuild.

This module links the julia object/archive into a shared library and links
a C driver program against that shared library into an executable. Both
stages use the system C compiler and the platform's LinkStrategy.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import LinkingError
from ..platforms import LinkStrategy
from ..runtime.probe import RuntimeInfo
from .artifact_stager import ArtifactPaths, ArtifactStager
from .compilation_executor import CompilationExecutor

PROGRAM_LIBNAME_DEFINE = "JULIAC_PROGRAM_LIBNAME"

# Exposes init_jl_runtime() / exit_jl_runtime() for hosts that load the
# shared library directly instead of going through a driver program.
INIT_SOURCE_TEMPLATE = """\
// Julia headers (for initialization and gc commands)
#include "uv.h"
#include "julia.h"

#ifdef JULIA_DEFINE_FAST_TLS
JULIA_DEFINE_FAST_TLS()
#endif

int init_jl_runtime()
{
    libsupport_init();
    // JULIAC_PROGRAM_LIBNAME is defined on the compiler command line
    jl_options.image_file = JULIAC_PROGRAM_LIBNAME;
    julia_init(JL_IMAGE_JULIA_HOME);
    return 0;
}

int exit_jl_runtime()
{
    int retcode = 0;
    jl_atexit_hook(retcode);
    return retcode;
}
"""


def libname_define(shared_library: str) -> str:
    return f'-D{PROGRAM_LIBNAME_DEFINE}="{shared_library}"'


class SharedLibraryLinker:
    """Links the julia object/archive into a shared library."""

    def __init__(
        self,
        executor: CompilationExecutor,
        strategy: LinkStrategy,
        runtime: RuntimeInfo,
        cc: str = "gcc",
        verbose: bool = False,
    ):
        self.executor = executor
        self.strategy = strategy
        self.runtime = runtime
        self.cc = cc
        self.verbose = verbose

    def object_arguments(self, object_file: str) -> List[str]:
        """Archives need every member linked in, plain objects do not."""
        if self.runtime.uses_archive:
            return self.strategy.whole_archive(object_file)
        return [object_file]

    def compose_command(
        self,
        paths: ArtifactPaths,
        flags: Sequence[str],
        init_source: Optional[str] = None,
    ) -> List[str]:
        cmd = [
            self.cc,
            "-shared",
            libname_define(paths.shared_library),
            "-o",
            paths.shared_library,
        ]
        cmd.extend(self.object_arguments(paths.object_file))
        if init_source:
            cmd.append(init_source)
        cmd.extend(flags)
        cmd.extend(self.strategy.shared_link_flags(paths.shared_library))
        return cmd

    def link(
        self,
        paths: ArtifactPaths,
        stager: ArtifactStager,
        flags: Sequence[str],
        shared_init: bool = False,
    ) -> Path:
        """Build the shared library in the build directory.

        Raises:
            LinkingError: If the object file is missing or the compiler fails
            StagingError: If the init source cannot be written
        """
        build_dir = stager.build_dir
        if not (build_dir / paths.object_file).exists():
            raise LinkingError(
                f"Build shared library \"{paths.shared_library}\": "
                f"object file \"{paths.object_file}\" not found in {build_dir}"
            )

        init_source = None
        if shared_init:
            stager.write_text(paths.init_source, INIT_SOURCE_TEMPLATE)
            init_source = paths.init_source

        command = self.compose_command(paths, flags, init_source)
        if self.verbose:
            print(f"Build shared library \"{paths.shared_library}\":\n  {' '.join(command)}")
        self.executor.run(
            command,
            cwd=build_dir,
            error_cls=LinkingError,
            description=f"Build shared library \"{paths.shared_library}\"",
            env=self.strategy.subprocess_env(),
        )
        return build_dir / paths.shared_library


class ExecutableLinker:
    """Links a C driver program against the shared library."""

    # gcc on 32-bit x86 julia builds needs this to accept the generated
    # code; only applied to that configuration.
    X86_32_ARCH_FLAG = "-march=pentium4"

    def __init__(
        self,
        executor: CompilationExecutor,
        strategy: LinkStrategy,
        runtime: RuntimeInfo,
        cc: str = "gcc",
        verbose: bool = False,
    ):
        self.executor = executor
        self.strategy = strategy
        self.runtime = runtime
        self.cc = cc
        self.verbose = verbose

    def compose_command(
        self,
        paths: ArtifactPaths,
        driver_program: Path,
        flags: Sequence[str],
    ) -> List[str]:
        cmd = [
            self.cc,
            libname_define(paths.shared_library),
            "-o",
            paths.executable,
            str(driver_program),
            paths.shared_library,
        ]
        cmd.extend(flags)
        cmd.extend(self.strategy.executable_link_flags())
        if self.runtime.is_32bit_x86:
            cmd.append(self.X86_32_ARCH_FLAG)
        return cmd

    def link(
        self,
        paths: ArtifactPaths,
        build_dir: Path,
        driver_program: Path,
        flags: Sequence[str],
    ) -> Path:
        """Build the executable in the build directory.

        Raises:
            LinkingError: If the shared library is missing or the compiler fails
        """
        if not (build_dir / paths.shared_library).exists():
            raise LinkingError(
                f"Build executable \"{paths.executable}\": "
                f"shared library \"{paths.shared_library}\" not found in {build_dir}"
            )

        command = self.compose_command(paths, driver_program, flags)
        if self.verbose:
            print(f"Build executable \"{paths.executable}\":\n  {' '.join(command)}")
        self.executor.run(
            command,
            cwd=build_dir,
            error_cls=LinkingError,
            description=f"Build executable \"{paths.executable}\"",
            env=self.strategy.subprocess_env(),
        )
        return build_dir / paths.executable
