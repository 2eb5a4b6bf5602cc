"""
Unit tests for the C compiler flag builder.
"""

from jlbuild.build.flag_builder import bitness_flag, build_flags, parse_flag_string

BASE = ["-std=gnu99", "-I/opt/julia/include/julia", "-ljulia"]


class TestBitnessFlag:
    """Test suite for bitness_flag."""

    def test_64bit(self):
        assert bitness_flag(64, "x86_64") is None

    def test_32bit(self):
        assert bitness_flag(32, "i686") == "-m32"

    def test_aarch64(self):
        assert bitness_flag(64, "aarch64") is None
        assert bitness_flag(32, "aarch64") is None


class TestBuildFlags:
    """Test suite for build_flags."""

    def test_base_only(self):
        assert build_flags(BASE, None) == BASE

    def test_order(self):
        flags = build_flags(BASE, "-m32", optimize=3, debug=2, extra_flags=["-Wall", "-O0"])
        assert flags == BASE + ["-m32", "-O3", "-g", "-Wall", "-O0"]

    def test_release_levels(self):
        flags = build_flags(BASE, None, optimize=3, debug=0)
        assert flags[-1] == "-O3"
        assert "-g" not in flags

    def test_debug_level_one_adds_nothing(self):
        assert build_flags(BASE, None, debug=1) == BASE

    def test_does_not_mutate_base(self):
        base = list(BASE)
        build_flags(base, "-m32", optimize=2)
        assert base == BASE


class TestParseFlagString:
    """Test suite for parse_flag_string."""

    def test_simple(self):
        assert parse_flag_string("-Wall -march=native") == ["-Wall", "-march=native"]

    def test_quoted(self):
        assert parse_flag_string('-DFOO="bar baz" -DTEST') == ["-DFOO=bar baz", "-DTEST"]

    def test_unbalanced_quote_falls_back_to_split(self):
        assert parse_flag_string('-DFOO="bar -DTEST') == ['-DFOO="bar', "-DTEST"]

    def test_empty(self):
        assert parse_flag_string("") == []
