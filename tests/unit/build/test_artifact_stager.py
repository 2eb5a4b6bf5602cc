"""
Unit tests for ArtifactStager.
"""

import os
from dataclasses import replace

import pytest

from jlbuild.build.artifact_stager import ArtifactStager, needs_copy
from jlbuild.errors import StagingError
from jlbuild.platforms import UnixLinkStrategy


class TestNeedsCopy:
    """Test suite for the staleness check."""

    def test_missing_destination(self, tmp_path):
        src = tmp_path / "a.txt"
        src.write_text("data")
        assert needs_copy(src, tmp_path / "b.txt") is True

    def test_size_differs(self, tmp_path):
        src = tmp_path / "a.txt"
        dst = tmp_path / "b.txt"
        dst.write_text("old")
        src.write_text("newer data")
        assert needs_copy(src, dst) is True

    def test_source_newer(self, tmp_path):
        src = tmp_path / "a.txt"
        dst = tmp_path / "b.txt"
        src.write_text("data")
        dst.write_text("data")
        os.utime(dst, (1_000_000, 1_000_000))
        assert needs_copy(src, dst) is True

    def test_up_to_date(self, tmp_path):
        src = tmp_path / "a.txt"
        dst = tmp_path / "b.txt"
        src.write_text("data")
        stat = src.stat()
        os.utime(src, (stat.st_atime, stat.st_mtime - 100))
        dst.write_text("data")
        assert needs_copy(src, dst) is False


class TestClean:
    """Test suite for ArtifactStager.clean."""

    def test_removes_directory(self, tmp_path):
        build_dir = tmp_path / "builddir"
        (build_dir / "nested").mkdir(parents=True)
        (build_dir / "nested" / "file.o").write_text("x")

        assert ArtifactStager(build_dir).clean() is True
        assert not build_dir.exists()

    def test_idempotent(self, tmp_path, capsys):
        stager = ArtifactStager(tmp_path / "builddir", verbose=True)

        assert stager.clean() is False
        assert stager.clean() is False
        assert "Build directory does not exist" in capsys.readouterr().out


class TestEnsureBuildDir:
    """Test suite for ArtifactStager.ensure_build_dir."""

    def test_creates_nested(self, tmp_path):
        build_dir = tmp_path / "a" / "b"
        stager = ArtifactStager(build_dir)

        assert stager.ensure_build_dir() is True
        assert stager.ensure_build_dir() is False
        assert build_dir.is_dir()


class TestRemoveTempFiles:
    """Test suite for ArtifactStager.remove_temp_files."""

    def test_removes_objects_archives_and_caches(self, tmp_path):
        for name in ["hello.o", "hello.a", "hello.so", "hello", "lib_init.c"]:
            (tmp_path / name).write_text("x")
        cache = tmp_path / "cache_ji_v1.0.3" / "compiled"
        cache.mkdir(parents=True)
        (cache / "Foo.ji").write_text("x")

        removed = ArtifactStager(tmp_path).remove_temp_files()

        assert removed == ["cache_ji_v1.0.3", "hello.a", "hello.o"]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["hello", "hello.so", "lib_init.c"]

    def test_nothing_to_remove(self, tmp_path, capsys):
        (tmp_path / "hello.so").write_text("x")

        assert ArtifactStager(tmp_path, verbose=True).remove_temp_files() == []
        out = capsys.readouterr().out
        assert "Remove temporary files:" in out
        assert "  none" in out


class TestCopyFiles:
    """Test suite for ArtifactStager.copy_files."""

    def test_copies_and_skips_up_to_date(self, tmp_path):
        src_dir = tmp_path / "src"
        build_dir = tmp_path / "build"
        src_dir.mkdir()
        build_dir.mkdir()
        data = src_dir / "data.txt"
        data.write_text("payload")
        stager = ArtifactStager(build_dir)

        assert stager.copy_files([data], "Copy:") == ["data.txt"]
        first_mtime = (build_dir / "data.txt").stat().st_mtime

        assert stager.copy_files([data], "Copy:") == []
        assert (build_dir / "data.txt").stat().st_mtime == first_mtime
        assert (build_dir / "data.txt").read_text() == "payload"

    def test_replaces_stale_copy(self, tmp_path):
        build_dir = tmp_path / "build"
        build_dir.mkdir()
        data = tmp_path / "data.txt"
        data.write_text("new payload")
        (build_dir / "data.txt").write_text("old")

        assert ArtifactStager(build_dir).copy_files([data], "Copy:") == ["data.txt"]
        assert (build_dir / "data.txt").read_text() == "new payload"

    def test_preserves_symlinks(self, tmp_path):
        build_dir = tmp_path / "build"
        build_dir.mkdir()
        target = tmp_path / "libfoo.so.1"
        target.write_text("lib")
        link = tmp_path / "libfoo.so"
        link.symlink_to(target.name)

        ArtifactStager(build_dir).copy_files([link], "Copy:")

        assert (build_dir / "libfoo.so").is_symlink()

    def test_missing_source(self, tmp_path):
        missing = tmp_path / "nope.txt"

        with pytest.raises(StagingError) as exc_info:
            ArtifactStager(tmp_path).copy_files([missing], "Copy:")

        assert str(exc_info.value) == f'Cannot find file: "{missing}"'

    def test_verbose_listing(self, tmp_path, capsys):
        build_dir = tmp_path / "build"
        build_dir.mkdir()
        data = tmp_path / "data.txt"
        data.write_text("x")

        ArtifactStager(build_dir, verbose=True).copy_files([data], "Copy user-specified files to build directory:")

        out = capsys.readouterr().out.splitlines()
        assert out == ["Copy user-specified files to build directory:", "  data.txt"]


class TestCopyRuntimeLibraries:
    """Test suite for ArtifactStager.copy_runtime_libraries."""

    def test_copies_libraries(self, tmp_path, runtime_info):
        julia_root = tmp_path / "julia"
        (julia_root / "bin").mkdir(parents=True)
        (julia_root / "lib" / "julia").mkdir(parents=True)
        (julia_root / "lib" / "libjulia.so.1").write_text("x")
        (julia_root / "lib" / "julia" / "libLLVM.so").write_text("x")
        (julia_root / "lib" / "julia" / "sys.so").write_text("x")
        (julia_root / "lib" / "julia" / "libjulia-debug.so").write_text("x")
        runtime = replace(runtime_info, bindir=julia_root / "bin")
        build_dir = tmp_path / "build"
        build_dir.mkdir()

        copied = ArtifactStager(build_dir).copy_runtime_libraries(runtime, UnixLinkStrategy())

        assert copied == ["libjulia.so.1", "libLLVM.so"]
        assert (build_dir / "libLLVM.so").exists()
        assert not (build_dir / "sys.so").exists()

    def test_missing_library_dir(self, tmp_path, runtime_info):
        runtime = replace(runtime_info, bindir=tmp_path / "nowhere" / "bin")

        with pytest.raises(StagingError, match="Julia library directory not found"):
            ArtifactStager(tmp_path).copy_runtime_libraries(runtime, UnixLinkStrategy())
