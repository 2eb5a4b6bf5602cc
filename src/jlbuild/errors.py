"""Exception hierarchy for jlbuild.

All errors raised by the pipeline inherit from JlbuildError so callers can
catch a single type. The subclasses tell the caller which phase failed:

    BuildEnvironmentError  - a required tool is missing or not runnable
    ConfigurationError     - bad input, detected before any stage runs
    StageFailure           - julia or the C compiler exited non-zero
    StagingError           - filesystem failure while staging artifacts

Nothing is retried; every error is fatal to the current invocation.
"""

from pathlib import Path
from typing import List, Optional, Sequence


class JlbuildError(Exception):
    """Base class for all jlbuild exceptions."""
    pass


class BuildEnvironmentError(JlbuildError):
    """Raised when the build environment cannot run the pipeline."""
    pass


class ToolchainNotFoundError(BuildEnvironmentError):
    """Raised when the system C compiler is missing or not runnable."""

    def __init__(self, compiler: str, detail: str = ""):
        self.compiler = compiler
        message = (
            f"C compiler '{compiler}' wasn't found or is not runnable. "
            "Make sure it is on the PATH or pass --cc."
        )
        if detail:
            message += f"\n{detail}"
        super().__init__(message)


class RuntimeProbeError(BuildEnvironmentError):
    """Raised when the julia runtime cannot be queried."""
    pass


class ConfigurationError(JlbuildError):
    """Raised for invalid or inconsistent build configuration."""
    pass


class MissingInputError(ConfigurationError):
    """Raised when a required input file does not exist."""

    def __init__(self, path: Path, what: str = "file"):
        self.path = path
        super().__init__(f"Cannot find {what}: \"{path}\"")


class IncompatibleRuntimeError(ConfigurationError):
    """Raised when Base.julia_cmd() does not have the expected shape."""

    def __init__(self, command: Sequence[str]):
        self.command = list(command)
        super().__init__(
            "Unexpected format of \"Base.julia_cmd()\", you may be using an "
            f"incompatible version of Julia: {' '.join(self.command)}"
        )


class ConfigFileError(ConfigurationError):
    """Raised when a jlbuild.ini file cannot be read or is invalid."""
    pass


class StageFailure(JlbuildError):
    """Raised when an external build command exits with a non-zero status.

    Attributes:
        command: The command line that failed
        returncode: Exit status of the command
        stderr: Captured standard error output
    """

    stage_label = "Stage"

    def __init__(
        self,
        description: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.description = description
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        message = f"{self.stage_label} failed: {self.description}"
        if self.returncode is not None:
            message += f" (exit status {self.returncode})"
        if self.command:
            message += f"\ncommand: {' '.join(self.command)}"
        if self.stderr:
            message += f"\nstderr: {self.stderr.rstrip()}"
        return message


class CompilationError(StageFailure):
    """Raised when the julia object compilation (or its helpers) fails."""

    stage_label = "Compilation"


class LinkingError(StageFailure):
    """Raised when the C compiler fails to link a shared library or executable."""

    stage_label = "Linking"


class StagingError(JlbuildError):
    """Raised for filesystem failures while cleaning or staging artifacts."""
    pass
