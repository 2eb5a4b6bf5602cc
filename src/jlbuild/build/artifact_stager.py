"""Artifact Stager.

This module performs the filesystem side of the pipeline: creating and
cleaning the build directory, removing temporary files, and copying user
files and julia runtime libraries next to the built artifacts.

Design:
    - Every operation is idempotent
    - Copies are skipped when the destination is up to date (staleness check)
    - Filesystem failures are raised as StagingError, never retried
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from ..errors import StagingError
from ..platforms import LinkStrategy
from ..runtime.probe import RuntimeInfo

INIT_SOURCE_NAME = "lib_init.c"
CACHE_DIR_PREFIX = "cache_ji_v"
TEMP_EXTENSIONS = (".o", ".a")


@dataclass(frozen=True)
class ArtifactPaths:
    """Names of the files the pipeline produces, relative to the build directory."""

    object_file: str
    shared_library: str
    executable: str
    init_source: str = INIT_SOURCE_NAME

    @classmethod
    def derive(cls, output_name: str, runtime: RuntimeInfo, strategy: LinkStrategy) -> "ArtifactPaths":
        """Derive artifact names from the output base name and platform conventions."""
        return cls(
            object_file=f"{output_name}{runtime.object_extension}",
            shared_library=f"{output_name}.{runtime.dlext}",
            executable=f"{output_name}{strategy.executable_extension}",
        )


def needs_copy(src: Path, dst: Path) -> bool:
    """Staleness check: copy when dst is missing, differs in size, or is older.

    "Older" compares both modification time and creation (change) time.
    """
    if not dst.exists():
        return True
    src_stat = src.stat()
    dst_stat = dst.stat()
    return (
        src_stat.st_size != dst_stat.st_size
        or src_stat.st_ctime > dst_stat.st_ctime
        or src_stat.st_mtime > dst_stat.st_mtime
    )


class ArtifactStager:
    """Filesystem operations on the build directory.

    Example:
        stager = ArtifactStager(build_dir, verbose=True)
        stager.ensure_build_dir()
        stager.copy_files([Path("data.txt")], "Copy user-specified files to build directory:")
    """

    def __init__(self, build_dir: Path, verbose: bool = False):
        """Initialize the stager.

        Args:
            build_dir: Absolute path of the build directory
            verbose: Report each file removed or copied
        """
        self.build_dir = build_dir
        self.verbose = verbose

    def clean(self) -> bool:
        """Remove the build directory recursively.

        Returns:
            True if a directory was removed, False if it did not exist
        """
        if not self.build_dir.is_dir():
            if self.verbose:
                print("Build directory does not exist")
            return False

        if self.verbose:
            print("Remove build directory")
        try:
            shutil.rmtree(self.build_dir)
        except OSError as e:
            raise StagingError(f"Failed to remove build directory {self.build_dir}: {e}") from e
        return True

    def ensure_build_dir(self) -> bool:
        """Create the build directory if absent.

        Returns:
            True if the directory was created
        """
        if self.build_dir.is_dir():
            return False
        if self.verbose:
            print("Make build directory")
        try:
            self.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StagingError(f"Failed to create build directory {self.build_dir}: {e}") from e
        return True

    def write_text(self, name: str, content: str) -> Path:
        """Write a generated file into the build directory."""
        path = self.build_dir / name
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StagingError(f"Failed to write {path}: {e}") from e
        return path

    def remove_temp_files(self) -> List[str]:
        """Delete object/archive files and local precompile cache directories.

        Returns:
            Names of the removed entries
        """
        if self.verbose:
            print("Remove temporary files:")

        removed = []
        for entry in sorted(self.build_dir.iterdir()):
            name = entry.name
            if not (name.endswith(TEMP_EXTENSIONS) or name.startswith(CACHE_DIR_PREFIX)):
                continue
            if self.verbose:
                print(f"  {name}")
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                raise StagingError(f"Failed to remove {entry}: {e}") from e
            removed.append(name)

        if self.verbose and not removed:
            print("  none")
        return removed

    def copy_files(self, sources: Iterable[Path], message: str) -> List[str]:
        """Copy files into the build directory, skipping up-to-date ones.

        Args:
            sources: Files to copy
            message: Heading printed in verbose mode

        Returns:
            Names of the files actually copied

        Raises:
            StagingError: If a source file does not exist or a copy fails
        """
        if self.verbose:
            print(message)

        copied = []
        for src in sources:
            src = Path(src)
            if not src.is_file():
                raise StagingError(f"Cannot find file: \"{src}\"")
            dst = self.build_dir / src.name
            if not needs_copy(src, dst):
                continue
            if self.verbose:
                print(f"  {src.name}")
            try:
                if dst.exists() or dst.is_symlink():
                    os.remove(dst)
                shutil.copy2(src, dst, follow_symlinks=False)
            except OSError as e:
                raise StagingError(f"Failed to copy {src} to {dst}: {e}") from e
            copied.append(src.name)

        if self.verbose and not copied:
            print("  none")
        return copied

    def copy_runtime_libraries(self, runtime: RuntimeInfo, strategy: LinkStrategy) -> List[str]:
        """Copy the julia shared libraries needed to run the artifacts."""
        libraries: List[Path] = []
        for directory in strategy.runtime_library_dirs(runtime):
            if not directory.is_dir():
                raise StagingError(f"Julia library directory not found: {directory}")
            libraries.extend(strategy.select_runtime_libraries(directory))
        return self.copy_files(libraries, "Copy Julia libraries to build directory:")
