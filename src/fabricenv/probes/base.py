# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Process invocation shared by every system probe."""

import logging
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
MISSING_EXECUTABLE_RC = 127


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(cmd: list[str]) -> CommandResult:
    """Run a command to completion and capture its output.

    Never raises for a missing executable or a non-zero exit status.

    Args:
        cmd: Command and arguments

    Returns:
        CommandResult with return code, stdout and stderr
    """
    logger.debug("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        logger.debug("Executable not found: %s", cmd[0])
        return CommandResult(MISSING_EXECUTABLE_RC, "", f"{cmd[0]}: command not found")
    return CommandResult(result.returncode, result.stdout, result.stderr)


def which(command: str) -> bool:
    """Check whether a command is on the execution path."""
    return shutil.which(command) is not None


class SystemProbe:
    """Base for capabilities backed by one external tool.

    Subclasses expose a typed query interface and keep all process
    invocation behind it, so detectors can be tested with fakes.
    """

    tool: str = ""

    def available(self) -> bool:
        """Whether the backing tool can be found on the execution path."""
        return which(self.tool)

    def run(self, *args: str) -> CommandResult:
        return run_command([self.tool, *args])
