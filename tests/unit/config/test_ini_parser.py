"""
Unit tests for the jlbuild.ini parser.
"""

from pathlib import Path

import pytest

from jlbuild.config.ini_parser import BuildConfigFile, find_config_file
from jlbuild.errors import ConfigFileError


class TestBuildConfigFile:
    """Test suite for BuildConfigFile."""

    @pytest.fixture
    def tmp_ini_path(self, tmp_path):
        """Fixture to provide a temporary INI file path."""
        return tmp_path / "jlbuild.ini"

    @pytest.fixture
    def profile_config(self, tmp_ini_path):
        """Create a config with a base section and two profiles."""
        content = """
[jlbuild]
build_dir = build
cc = clang
cc_flags = -Wall
    -Wextra
verbose = no
optimize = 2

[profile:release]
full_release = yes
cpu_target = x86-64
optimize = 3

[profile:dev]
verbose
copy_files = data.txt config.toml
"""
        tmp_ini_path.write_text(content)
        return tmp_ini_path

    def test_missing_file(self, tmp_ini_path):
        with pytest.raises(ConfigFileError, match="not found"):
            BuildConfigFile(tmp_ini_path)

    def test_malformed_file(self, tmp_ini_path):
        tmp_ini_path.write_text("this is not an ini file\n")
        with pytest.raises(ConfigFileError, match="Failed to parse"):
            BuildConfigFile(tmp_ini_path)

    def test_get_profiles(self, profile_config):
        assert BuildConfigFile(profile_config).get_profiles() == ["release", "dev"]

    def test_base_options(self, profile_config):
        options = BuildConfigFile(profile_config).get_options()

        assert options == {
            "build_dir": "build",
            "cc": "clang",
            "cc_flags": ("-Wall", "-Wextra"),
            "verbose": False,
            "optimize": 2,
        }

    def test_profile_overrides_base(self, profile_config):
        options = BuildConfigFile(profile_config).get_options("release")

        assert options["full_release"] is True
        assert options["cpu_target"] == "x86-64"
        assert options["optimize"] == 3
        assert options["cc"] == "clang"

    def test_bare_boolean_key(self, profile_config):
        options = BuildConfigFile(profile_config).get_options("dev")

        assert options["verbose"] is True
        assert options["copy_files"] == ("data.txt", "config.toml")

    def test_unknown_profile(self, profile_config):
        with pytest.raises(ConfigFileError) as exc_info:
            BuildConfigFile(profile_config).get_options("nightly")
        assert "Available profiles: release, dev" in str(exc_info.value)

    def test_unknown_key(self, tmp_ini_path):
        tmp_ini_path.write_text("[jlbuild]\nbuilddirectory = out\n")
        with pytest.raises(ConfigFileError, match="builddirectory"):
            BuildConfigFile(tmp_ini_path).get_options()

    def test_bad_boolean(self, tmp_ini_path):
        tmp_ini_path.write_text("[jlbuild]\nclean = maybe\n")
        with pytest.raises(ConfigFileError, match="clean"):
            BuildConfigFile(tmp_ini_path).get_options()

    def test_bad_integer(self, tmp_ini_path):
        tmp_ini_path.write_text("[jlbuild]\noptimize = high\n")
        with pytest.raises(ConfigFileError, match="optimize"):
            BuildConfigFile(tmp_ini_path).get_options()

    def test_interpolation(self, tmp_ini_path):
        tmp_ini_path.write_text("[jlbuild]\noutput_name = app\nbuild_dir = out/${output_name}\n")
        assert BuildConfigFile(tmp_ini_path).get_options()["build_dir"] == "out/app"

    def test_escaped_dollar(self, tmp_ini_path):
        tmp_ini_path.write_text("[jlbuild]\ncc_flags = -Wl,-rpath,$$ORIGIN/lib\n")
        assert BuildConfigFile(tmp_ini_path).get_options()["cc_flags"] == ("-Wl,-rpath,$ORIGIN/lib",)

    def test_bare_dollar_explains_escape(self, tmp_ini_path):
        tmp_ini_path.write_text("[jlbuild]\ncc_flags = -Wl,-rpath,$ORIGIN/lib\n")
        with pytest.raises(ConfigFileError, match=r"write a literal \$ as \$\$"):
            BuildConfigFile(tmp_ini_path).get_options()

    def test_no_base_section(self, tmp_ini_path):
        tmp_ini_path.write_text("[profile:ci]\nquiet = true\n")
        assert BuildConfigFile(tmp_ini_path).get_options("ci") == {"quiet": True}


class TestFindConfigFile:
    """Test suite for find_config_file."""

    def test_found(self, tmp_path):
        (tmp_path / "jlbuild.ini").write_text("[jlbuild]\n")
        assert find_config_file(tmp_path) == tmp_path / "jlbuild.ini"

    def test_not_found(self, tmp_path):
        assert find_config_file(Path(tmp_path)) is None
