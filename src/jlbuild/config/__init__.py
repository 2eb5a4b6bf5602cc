"""Configuration modules for jlbuild."""

from .build_config import (
    DEFAULT_DRIVER_PROGRAM,
    BuildConfiguration,
    ResolvedConfiguration,
    StageSelection,
    resolve,
)
from .ini_parser import BuildConfigFile, find_config_file

__all__ = [
    "BuildConfiguration",
    "ResolvedConfiguration",
    "StageSelection",
    "DEFAULT_DRIVER_PROGRAM",
    "resolve",
    "BuildConfigFile",
    "find_config_file",
]
