"""jlbuild - compile Julia programs into native objects, shared libraries and executables."""

__version__ = "0.1.0"

from jlbuild.build import BuildOrchestrator, PipelineResult
from jlbuild.config import BuildConfiguration
from jlbuild.errors import JlbuildError

__all__ = [
    "__version__",
    "BuildConfiguration",
    "BuildOrchestrator",
    "JlbuildError",
    "PipelineResult",
]
