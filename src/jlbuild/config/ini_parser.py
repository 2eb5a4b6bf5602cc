"""
jlbuild.ini configuration parser.

This module reads build defaults from an INI file so that long option lists
do not have to be repeated on every command line.

Example jlbuild.ini:
    [jlbuild]
    build_dir = build
    cc = gcc
    cc_flags = -Wall -Wl,-rpath,$$ORIGIN/lib

    [profile:release]
    full_release = yes
    cpu_target = x86-64

Values use ${section:option} interpolation, so a literal `$` (as in
`$ORIGIN`) must be written `$$`.

Usage:
    config_file = BuildConfigFile(Path("jlbuild.ini"))
    options = config_file.get_options("release")
"""

import configparser
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigFileError
from .build_config import BuildConfiguration

BASE_SECTION = "jlbuild"
PROFILE_PREFIX = "profile:"
DEFAULT_CONFIG_NAME = "jlbuild.ini"

BOOLEAN_KEYS = {
    "verbose",
    "quiet",
    "clean",
    "auto_deps",
    "object",
    "shared",
    "shared_init",
    "executable",
    "remove_temp",
    "copy_runtime_libs",
    "release",
    "full_release",
}
INTEGER_KEYS = {"optimize", "debug"}
LIST_KEYS = {"cc_flags", "copy_files"}


class BuildConfigFile:
    """
    Parser for jlbuild.ini configuration files.

    The [jlbuild] section holds defaults; [profile:<name>] sections inherit
    from it and override individual keys.
    """

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a jlbuild.ini file.

        Args:
            ini_path: Path to the jlbuild.ini file

        Raises:
            ConfigFileError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise ConfigFileError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigFileError(f"Failed to parse {ini_path}: {e}") from e

    def get_profiles(self) -> List[str]:
        """
        Get list of all profile names defined in the config.

        Example:
            For [profile:debug], [profile:release], returns ['debug', 'release']
        """
        return [
            section[len(PROFILE_PREFIX):]
            for section in self.config.sections()
            if section.startswith(PROFILE_PREFIX)
        ]

    def get_options(self, profile: Optional[str] = None) -> Dict[str, Any]:
        """
        Get typed BuildConfiguration keyword arguments.

        Args:
            profile: Optional profile name layered over [jlbuild]

        Returns:
            Dictionary of option name to typed value

        Raises:
            ConfigFileError: If the profile is missing, a key is unknown, or a
                value has the wrong type
        """
        raw: Dict[str, Optional[str]] = {}
        if BASE_SECTION in self.config:
            raw.update(self._section_items(BASE_SECTION))

        if profile:
            section = f"{PROFILE_PREFIX}{profile}"
            if section not in self.config:
                available = ", ".join(self.get_profiles())
                raise ConfigFileError(
                    f"Profile '{profile}' not found in {self.ini_path}. "
                    + f"Available profiles: {available or 'none'}"
                )
            raw.update(self._section_items(section))

        known = set(BuildConfiguration.field_names())
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigFileError(
                f"Unknown option(s) in {self.ini_path}: {', '.join(unknown)}"
            )

        return {key: self._convert(key, value) for key, value in raw.items()}

    def _section_items(self, section: str) -> Dict[str, Optional[str]]:
        try:
            return {key: self.config[section][key] for key in self.config[section]}
        except configparser.InterpolationSyntaxError as e:
            raise ConfigFileError(
                f"Failed to read [{section}] in {self.ini_path}: {e} (write a literal $ as $$)"
            ) from e
        except configparser.Error as e:
            raise ConfigFileError(f"Failed to read [{section}] in {self.ini_path}: {e}") from e

    def _convert(self, key: str, value: Optional[str]) -> Any:
        text = (value or "").strip()
        if key in BOOLEAN_KEYS:
            if not text:
                return True
            lowered = text.lower()
            if lowered not in configparser.ConfigParser.BOOLEAN_STATES:
                raise ConfigFileError(f"Option '{key}' expects a boolean, got {text!r}")
            return configparser.ConfigParser.BOOLEAN_STATES[lowered]
        if key in INTEGER_KEYS:
            try:
                return int(text)
            except ValueError:
                raise ConfigFileError(f"Option '{key}' expects an integer, got {text!r}")
        if key in LIST_KEYS:
            return tuple(item for item in text.split() if item)
        return text or None


def find_config_file(start_dir: Path) -> Optional[Path]:
    """Return start_dir/jlbuild.ini if it exists."""
    candidate = start_dir / DEFAULT_CONFIG_NAME
    return candidate if candidate.exists() else None
