"""Julia Runtime Probe.

This module queries an installed julia executable for the facts the build
pipeline needs: version, installation directories, shared library extension,
word size and the canonical `Base.julia_cmd()` invocation.

Design:
    - One subprocess per probe, printing `key=value` lines
    - Parsed into an immutable RuntimeInfo consumed by every later stage
    - Lines that are not `key=value` (e.g. startup file output) are ignored
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..errors import RuntimeProbeError

PROBE_EXPRESSION = """
bindir = isdefined(Sys, :BINDIR) ? Sys.BINDIR : JULIA_HOME
dlext = isdefined(Base, :Libdl) ? Base.Libdl.dlext : Base.Libc.Libdl.dlext
threading = try ccall(:jl_threading_enabled, Cint, ()) != 0 catch; true end
println("version=", VERSION)
println("bindir=", bindir)
println("libdir=", Base.LIBDIR)
println("private_libdir=", Base.PRIVATE_LIBDIR)
println("includedir=", Base.INCLUDEDIR)
println("dlext=", dlext)
println("word_size=", Sys.WORD_SIZE)
println("arch=", Sys.ARCH)
println("threading=", threading)
for arg in Base.julia_cmd().exec
    println("cmd=", arg)
end
"""

REQUIRED_KEYS = (
    "version",
    "bindir",
    "libdir",
    "private_libdir",
    "includedir",
    "dlext",
    "word_size",
    "arch",
)

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version(text: str) -> Tuple[int, int, int]:
    """Parse a Julia VERSION string into a (major, minor, patch) tuple.

    Example:
        >>> parse_version("1.10.0-rc1")
        (1, 10, 0)
    """
    match = _VERSION_RE.match(text.strip())
    if not match:
        raise RuntimeProbeError(f"Cannot parse julia version: {text!r}")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


@dataclass(frozen=True)
class RuntimeInfo:
    """Facts about a julia installation.

    Directory fields ending in `_rel` are relative to `bindir`, exactly as
    Base.LIBDIR, Base.PRIVATE_LIBDIR and Base.INCLUDEDIR report them.
    """

    version_string: str
    bindir: Path
    libdir_rel: str
    private_libdir_rel: str
    includedir_rel: str
    dlext: str
    word_size: int
    arch: str
    julia_cmd: Tuple[str, ...]
    threading: bool = True

    @property
    def version(self) -> Tuple[int, int, int]:
        return parse_version(self.version_string)

    @property
    def uses_archive(self) -> bool:
        """Julia 0.7 and later emit a static archive instead of an object file."""
        return self.version >= (0, 7, 0)

    @property
    def supports_cache_priming(self) -> bool:
        """Whether a `.ji` cache priming run is meaningful on this runtime."""
        return not self.uses_archive

    @property
    def object_extension(self) -> str:
        return ".a" if self.uses_archive else ".o"

    @property
    def cache_dir_name(self) -> str:
        return f"cache_ji_v{self.version_string}"

    @property
    def is_32bit_x86(self) -> bool:
        return self.word_size == 32 and self.arch in ("i686", "i386", "x86")

    @property
    def libdir(self) -> Path:
        return (self.bindir / self.libdir_rel).resolve()

    @property
    def private_libdir(self) -> Path:
        return (self.bindir / self.private_libdir_rel).resolve()

    @property
    def include_dir(self) -> Path:
        return (self.bindir / self.includedir_rel / "julia").resolve()


class RuntimeProbe:
    """Runs julia once and turns its answers into a RuntimeInfo."""

    def __init__(self, julia: str = "julia"):
        self.julia = julia
        self._cached: Optional[RuntimeInfo] = None

    def probe(self) -> RuntimeInfo:
        """Query the runtime, caching the result for the lifetime of the probe.

        Raises:
            RuntimeProbeError: If julia cannot be run or its answer is incomplete
        """
        if self._cached is None:
            self._cached = self.parse_output(self._run())
        return self._cached

    def _run(self) -> str:
        cmd = [self.julia, "-e", PROBE_EXPRESSION]
        logging.debug(f"Probing julia runtime: {self.julia}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise RuntimeProbeError(f"Cannot run julia executable '{self.julia}': {e}") from e

        if result.returncode != 0:
            raise RuntimeProbeError(
                f"julia executable '{self.julia}' exited with status {result.returncode}\n"
                f"stderr: {result.stderr}"
            )
        return result.stdout

    @staticmethod
    def parse_output(output: str) -> RuntimeInfo:
        """Parse the `key=value` lines printed by PROBE_EXPRESSION.

        Raises:
            RuntimeProbeError: If a required key is missing
        """
        values: Dict[str, str] = {}
        cmd: List[str] = []
        for line in output.splitlines():
            key, sep, value = line.partition("=")
            if not sep:
                continue
            key = key.strip()
            if key == "cmd":
                cmd.append(value)
            elif key in REQUIRED_KEYS or key == "threading":
                values[key] = value.strip()

        missing = [key for key in REQUIRED_KEYS if key not in values]
        if missing:
            raise RuntimeProbeError(
                f"julia runtime probe did not report: {', '.join(missing)}"
            )
        if not cmd:
            raise RuntimeProbeError("julia runtime probe did not report Base.julia_cmd()")

        try:
            word_size = int(values["word_size"])
        except ValueError as e:
            raise RuntimeProbeError(f"Invalid word size: {values['word_size']!r}") from e

        parse_version(values["version"])

        return RuntimeInfo(
            version_string=values["version"],
            bindir=Path(values["bindir"]),
            libdir_rel=values["libdir"],
            private_libdir_rel=values["private_libdir"],
            includedir_rel=values["includedir"],
            dlext=values["dlext"],
            word_size=word_size,
            arch=values["arch"],
            julia_cmd=tuple(cmd),
            threading=values.get("threading", "true").lower() == "true",
        )
