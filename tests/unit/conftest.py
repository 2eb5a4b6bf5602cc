"""Shared fixtures for jlbuild unit tests."""

from dataclasses import replace
from pathlib import Path

import pytest

from jlbuild.runtime import RuntimeInfo

JULIA_CMD = (
    "/opt/julia/bin/julia",
    "-Cnative",
    "-J/opt/julia/lib/julia/sys.so",
    "--compile=yes",
    "--depwarn=yes",
)


@pytest.fixture
def runtime_info():
    """A 64-bit Linux julia 1.x runtime."""
    return RuntimeInfo(
        version_string="1.0.3",
        bindir=Path("/opt/julia/bin"),
        libdir_rel="../lib",
        private_libdir_rel="../lib/julia",
        includedir_rel="../include",
        dlext="so",
        word_size=64,
        arch="x86_64",
        julia_cmd=JULIA_CMD,
    )


@pytest.fixture
def legacy_runtime_info(runtime_info):
    """A julia 0.6 runtime, which emits .o files."""
    return replace(runtime_info, version_string="0.6.4")


class FakeExecutor:
    """Records commands and creates the files they would have produced."""

    def __init__(self, tools_available=True, fail_on=None, failure=None):
        self.tools_available = tools_available
        self.fail_on = fail_on
        self.failure = failure
        self.calls = []
        self.checked = []

    def run(self, cmd, cwd, error_cls=None, description="", env=None):
        self.calls.append({"cmd": list(cmd), "cwd": Path(cwd), "env": env, "description": description})
        if self.fail_on is not None and self.fail_on in cmd:
            raise (self.failure or error_cls(description, command=cmd, returncode=1))

        outputs = []
        if "--output-o" in cmd:
            outputs.append(cmd[cmd.index("--output-o") + 1])
        elif "-o" in cmd:
            outputs.append(cmd[cmd.index("-o") + 1])
        outputs.extend(arg.split("=", 1)[1] for arg in cmd if arg.startswith("--trace-compile="))
        for name in outputs:
            (Path(cwd) / name).write_text("built")

    def check_tool(self, cmd, env=None):
        self.checked.append(list(cmd))
        return self.tools_available

    def commands(self):
        return [call["cmd"] for call in self.calls]


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def make_executor():
    """Factory for executors that fail or lack tools."""
    return FakeExecutor
