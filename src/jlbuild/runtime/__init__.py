"""Julia runtime discovery and command composition for jlbuild."""

from .command import JuliaCommandSerializer, JuliaCompileRequest
from .probe import RuntimeInfo, RuntimeProbe

__all__ = [
    "JuliaCommandSerializer",
    "JuliaCompileRequest",
    "RuntimeInfo",
    "RuntimeProbe",
]
