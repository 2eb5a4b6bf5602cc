"""
Build pipeline components for jlbuild.

This module provides the pipeline implementation including:
- C compiler flag building
- Command execution in the build directory
- Julia object/archive compilation (and the optional snoop pre-pass)
- Shared library and executable linking
- Build directory staging (clean, temp removal, file copies)
- Pipeline orchestration
"""

from .artifact_stager import ArtifactPaths, ArtifactStager, needs_copy
from .compilation_executor import CompilationExecutor
from .flag_builder import bitness_flag, build_flags, parse_flag_string
from .linker import ExecutableLinker, SharedLibraryLinker
from .object_compiler import ObjectCompiler
from .orchestrator import BuildOrchestrator, PipelineResult
from .snoop import Snooper

__all__ = [
    "ArtifactPaths",
    "ArtifactStager",
    "needs_copy",
    "CompilationExecutor",
    "bitness_flag",
    "build_flags",
    "parse_flag_string",
    "ExecutableLinker",
    "SharedLibraryLinker",
    "ObjectCompiler",
    "BuildOrchestrator",
    "PipelineResult",
    "Snooper",
]
