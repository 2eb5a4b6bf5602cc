"""Stage Executor.

This module runs the external commands of the build pipeline (julia and the
system C compiler) and turns non-zero exits into pipeline failures.

Design:
    - Every command runs with the build directory as working directory
    - Environment overrides are passed to that one subprocess only
    - No timeout: a hung compiler hangs the pipeline
    - On KeyboardInterrupt the child process tree is terminated
"""

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Type

from ..errors import StageFailure
from ..interrupt_utils import handle_keyboard_interrupt_properly, terminate_process_tree


class CompilationExecutor:
    """Runs build commands inside the build directory.

    Example:
        executor = CompilationExecutor(show_output=True)
        executor.run(["gcc", "-shared", ...], cwd=build_dir,
                     error_cls=LinkingError, description='Build shared library "app.so"')
    """

    def __init__(self, show_output: bool = False):
        """Initialize the executor.

        Args:
            show_output: Echo the captured output of successful commands
        """
        self.show_output = show_output

    def run(
        self,
        cmd: List[str],
        cwd: Path,
        error_cls: Type[StageFailure] = StageFailure,
        description: str = "",
        env: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            cwd: Working directory (the build directory)
            error_cls: StageFailure subclass raised on failure
            description: Human-readable description for error messages
            env: Complete environment for this subprocess, or None to inherit

        Returns:
            CompletedProcess with captured stdout and stderr

        Raises:
            StageFailure: (as error_cls) if the command cannot start or exits non-zero
        """
        description = description or Path(cmd[0]).name
        logging.debug(f"Running in {cwd}: {' '.join(cmd)}")
        if env is not None:
            logging.debug(f"PATH override for {Path(cmd[0]).name}: {env.get('PATH', '')}")

        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise error_cls(f"{description}: cannot start {cmd[0]}: {e}", command=cmd) from e

        try:
            stdout, stderr = proc.communicate()
        except KeyboardInterrupt as ke:
            terminate_process_tree(proc.pid)
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker

        if proc.returncode != 0:
            raise error_cls(
                description,
                command=cmd,
                returncode=proc.returncode,
                stderr=stderr or "",
            )

        if self.show_output:
            if stdout:
                print(stdout.rstrip())
            if stderr:
                print(stderr.rstrip())

        return subprocess.CompletedProcess(cmd, proc.returncode, stdout, stderr)

    def check_tool(self, cmd: List[str], env: Optional[Dict[str, str]] = None) -> bool:
        """Return True if a tool command runs and exits zero."""
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, env=env)
        except OSError as e:
            logging.debug(f"{cmd[0]} is not runnable: {e}")
            return False
        return result.returncode == 0
