"""Julia Command Composition.

This module renders a typed description of the julia compiler options into
the exact argument list julia expects.

Design:
    - JuliaCompileRequest names every option logically (None = not requested)
    - JuliaCommandSerializer starts from Base.julia_cmd(), which has the fixed
      shape `julia -C<cpu> -J<image> --compile=<mode> --depwarn=<mode>`
    - The four positional slots are overridden in place, everything else is
      appended in a stable order
    - The shape check is done once, in validate_base_command()
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import IncompatibleRuntimeError

CANONICAL_PREFIXES = ("-C", "-J", "--compile", "--depwarn")

CPU_TARGET_SLOT = 1
SYSIMAGE_SLOT = 2
COMPILE_SLOT = 3
DEPWARN_SLOT = 4


@dataclass(frozen=True)
class JuliaCompileRequest:
    """Logical julia options for the object compilation stage."""

    cpu_target: Optional[str] = None
    sysimage: Optional[str] = None
    compile: Optional[str] = None
    depwarn: Optional[str] = None
    precompiled: Optional[str] = None
    compilecache: Optional[str] = None
    home: Optional[str] = None
    startup_file: Optional[str] = None
    handle_signals: Optional[str] = None
    optimize: Optional[int] = None
    debug: Optional[int] = None
    inline: Optional[str] = None
    check_bounds: Optional[str] = None
    math_mode: Optional[str] = None


def validate_base_command(base_command: Sequence[str]) -> None:
    """Check that Base.julia_cmd() has the five-element canonical shape.

    Raises:
        IncompatibleRuntimeError: If the shape differs
    """
    if len(base_command) != 5:
        raise IncompatibleRuntimeError(base_command)
    for arg, prefix in zip(base_command[1:], CANONICAL_PREFIXES):
        if not arg.startswith(prefix):
            raise IncompatibleRuntimeError(base_command)


class JuliaCommandSerializer:
    """Renders JuliaCompileRequest objects on top of Base.julia_cmd().

    Example:
        serializer = JuliaCommandSerializer(runtime.julia_cmd)
        cmd = serializer.render(JuliaCompileRequest(optimize=3, debug=0))
        # ['julia', '-Cnative', '-J.../sys.so', '--compile=yes',
        #  '--depwarn=no', '-O3', '-g0']
    """

    def __init__(self, base_command: Sequence[str]):
        validate_base_command(base_command)
        self.base_command = list(base_command)

    def render(self, request: JuliaCompileRequest) -> List[str]:
        """Render the julia invocation for a request.

        Options left as None do not appear on the command line at all.
        """
        cmd = list(self.base_command)

        if request.cpu_target is not None:
            cmd[CPU_TARGET_SLOT] = f"-C{request.cpu_target}"
        if request.sysimage is not None:
            cmd[SYSIMAGE_SLOT] = f"-J{request.sysimage}"
        if request.compile is not None:
            cmd[COMPILE_SLOT] = f"--compile={request.compile}"
        if request.depwarn is not None:
            cmd[DEPWARN_SLOT] = f"--depwarn={request.depwarn}"

        appended = [
            ("--precompiled=", request.precompiled),
            ("--compilecache=", request.compilecache),
            ("-H=", request.home),
            ("--startup-file=", request.startup_file),
            ("--handle-signals=", request.handle_signals),
            ("-O", request.optimize),
            ("-g", request.debug),
            ("--inline=", request.inline),
            ("--check-bounds=", request.check_bounds),
            ("--math-mode=", request.math_mode),
        ]
        for prefix, value in appended:
            if value is not None:
                cmd.append(f"{prefix}{value}")

        return cmd
