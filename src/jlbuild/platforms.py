"""Platform Detection and Link Strategies.

This module detects the host platform and provides the platform-specific
rules for linking julia programs into native artifacts.

Supported Platforms:
    - linux (and other Unix-likes): ELF, $ORIGIN rpath, versioned lib*.so.N
    - darwin: Mach-O, @rpath install names, .dylib
    - windows: MinGW gcc, .dll, toolchain bin dir on PATH
"""

import os
import platform
import re
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional

from .runtime.probe import RuntimeInfo

PlatformName = Literal["linux", "darwin", "windows"]

_UNIX_LIBRARY_RE = re.compile(r"^lib.+\.so(?:\.\d+)*$")


class PlatformDetector:
    """Detects the current platform for link strategy selection."""

    @staticmethod
    def detect_platform() -> PlatformName:
        """Detect the host platform.

        Returns:
            'windows', 'darwin', or 'linux' (any other Unix-like)
        """
        system = platform.system().lower()
        if system == "windows" or sys.platform.startswith(("win32", "cygwin", "msys")):
            return "windows"
        if system == "darwin":
            return "darwin"
        return "linux"

    @staticmethod
    def get_platform_info() -> dict:
        """Get detailed information about the current platform."""
        return {
            "system": platform.system(),
            "machine": platform.machine(),
            "python_version": platform.python_version(),
            "is_64bit": sys.maxsize > 2**32,
            "jlbuild_platform": PlatformDetector.detect_platform(),
        }


class LinkStrategy(ABC):
    """Platform-specific rules for compiling and linking against libjulia.

    One subclass per platform family. The shared-library and executable
    stages call the same methods regardless of platform.
    """

    name: PlatformName
    library_extension: str
    executable_extension: str = ""

    def __init__(self, toolchain_root: Optional[Path] = None):
        self.toolchain_root = toolchain_root

    # Runtime-derived base flags (julia-config.jl --allflags)

    def base_flags(self, runtime: RuntimeInfo) -> List[str]:
        """Compile and link flags needed to build against libjulia."""
        return self.cflags(runtime) + self.ldflags(runtime) + self.ldlibs(runtime)

    def cflags(self, runtime: RuntimeInfo) -> List[str]:
        flags = ["-std=gnu99", f"-I{runtime.include_dir}"]
        if runtime.threading:
            flags.append("-DJULIA_ENABLE_THREADING=1")
        flags.append("-fPIC")
        return flags

    def runtime_libdir(self, runtime: RuntimeInfo) -> Path:
        return runtime.libdir

    def ldflags(self, runtime: RuntimeInfo) -> List[str]:
        return [f"-L{self.runtime_libdir(runtime)}"]

    def ldlibs(self, runtime: RuntimeInfo) -> List[str]:
        return [
            f"-Wl,-rpath,{self.runtime_libdir(runtime)}",
            f"-Wl,-rpath,{runtime.private_libdir}",
            "-ljulia",
        ]

    # Link stage adjustments

    def whole_archive(self, archive: str) -> List[str]:
        """Link every member of a static archive, referenced or not."""
        return ["-Wl,--whole-archive", archive, "-Wl,--no-whole-archive"]

    @abstractmethod
    def shared_link_flags(self, shared_name: str) -> List[str]:
        """Extra flags for the shared library link."""
        pass

    @abstractmethod
    def executable_link_flags(self) -> List[str]:
        """Extra flags for the executable link."""
        pass

    def subprocess_env(self, base_env: Optional[Mapping[str, str]] = None) -> Optional[Dict[str, str]]:
        """Environment for C compiler subprocesses, or None to inherit."""
        return None

    # Runtime library staging

    def runtime_library_dirs(self, runtime: RuntimeInfo) -> List[Path]:
        return [self.runtime_libdir(runtime), runtime.private_libdir]

    def is_runtime_library(self, name: str) -> bool:
        return name.endswith(f".{self.library_extension}") and not name.startswith("sys")

    def select_runtime_libraries(self, directory: Path) -> List[Path]:
        """List the shared libraries in a runtime directory worth shipping."""
        selected = []
        for entry in sorted(directory.iterdir()):
            if not entry.is_file():
                continue
            if not self.is_runtime_library(entry.name):
                continue
            if "debug" in entry.name:
                continue
            selected.append(entry)
        return selected


class UnixLinkStrategy(LinkStrategy):
    """Linux and other ELF platforms."""

    name: PlatformName = "linux"
    library_extension = "so"

    def ldflags(self, runtime: RuntimeInfo) -> List[str]:
        return super().ldflags(runtime) + ["-Wl,--export-dynamic"]

    def shared_link_flags(self, shared_name: str) -> List[str]:
        return []

    def executable_link_flags(self) -> List[str]:
        return ["-Wl,-rpath,$ORIGIN"]

    def is_runtime_library(self, name: str) -> bool:
        return bool(_UNIX_LIBRARY_RE.match(name))


class AppleLinkStrategy(LinkStrategy):
    """macOS (Mach-O) platform."""

    name: PlatformName = "darwin"
    library_extension = "dylib"

    def whole_archive(self, archive: str) -> List[str]:
        return ["-Wl,-all_load", archive]

    def shared_link_flags(self, shared_name: str) -> List[str]:
        return [f"-Wl,-install_name,@rpath/{shared_name}"]

    def executable_link_flags(self) -> List[str]:
        return ["-Wl,-rpath,@executable_path"]


class WindowsLinkStrategy(LinkStrategy):
    """Windows with a MinGW gcc toolchain.

    When a toolchain root (the MinGW sysroot) is given, its `bin` directory is
    appended to PATH for the compiler subprocess only, and its `include`
    directory is added to the include path.
    """

    name: PlatformName = "windows"
    library_extension = "dll"
    executable_extension = ".exe"

    def cflags(self, runtime: RuntimeInfo) -> List[str]:
        flags = ["-std=gnu99", f"-I{runtime.include_dir}"]
        if runtime.threading:
            flags.append("-DJULIA_ENABLE_THREADING=1")
        return flags

    def runtime_libdir(self, runtime: RuntimeInfo) -> Path:
        return runtime.bindir

    def ldflags(self, runtime: RuntimeInfo) -> List[str]:
        return super().ldflags(runtime) + ["-Wl,--stack,8388608"]

    def ldlibs(self, runtime: RuntimeInfo) -> List[str]:
        return ["-ljulia", "-lopenlibm"]

    def _toolchain_include(self) -> List[str]:
        if self.toolchain_root is None:
            return []
        return [f"-I{self.toolchain_root / 'include'}"]

    def shared_link_flags(self, shared_name: str) -> List[str]:
        return self._toolchain_include() + ["-Wl,--export-all-symbols"]

    def executable_link_flags(self) -> List[str]:
        return self._toolchain_include()

    def subprocess_env(self, base_env: Optional[Mapping[str, str]] = None) -> Optional[Dict[str, str]]:
        if self.toolchain_root is None:
            return None
        env = dict(os.environ if base_env is None else base_env)
        bin_dir = str(self.toolchain_root / "bin")
        current = env.get("PATH", "")
        env["PATH"] = f"{current};{bin_dir}" if current else bin_dir
        return env


STRATEGIES = {
    "linux": UnixLinkStrategy,
    "darwin": AppleLinkStrategy,
    "windows": WindowsLinkStrategy,
}


def get_link_strategy(
    platform_name: Optional[PlatformName] = None,
    toolchain_root: Optional[Path] = None,
) -> LinkStrategy:
    """Create the link strategy for a platform (default: the host)."""
    name = platform_name or PlatformDetector.detect_platform()
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unsupported platform: {name}")
    return strategy_cls(toolchain_root=toolchain_root)
