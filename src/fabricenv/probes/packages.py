# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Package installation through the host's package manager.

Installing mutates system package state and runs with elevated privileges.
"""

import logging
import os
from dataclasses import dataclass

from fabricenv.probes.base import SystemProbe, run_command, which

logger = logging.getLogger(__name__)

# The command that must be present, and the package family that provides it
REQUIRED_COMMAND = "ip"
REQUIRED_PACKAGE = "iproute2"


@dataclass(frozen=True)
class PackageManager:
    """A package manager and the commands that install iproute2 with it."""

    name: str
    description: str
    commands: tuple[tuple[str, ...], ...]


# Probed in this order; the first one found wins
PACKAGE_MANAGERS: tuple[PackageManager, ...] = (
    PackageManager(
        name="apt-get",
        description="apt package manager (Debian/Ubuntu)",
        commands=(
            ("apt-get", "update", "-qq"),
            ("apt-get", "install", "-y", "-qq", "iproute2"),
        ),
    ),
    PackageManager(
        name="yum",
        description="yum package manager (RHEL/CentOS)",
        commands=(("yum", "install", "-y", "-q", "iproute"),),
    ),
    PackageManager(
        name="dnf",
        description="dnf package manager (Fedora/RHEL 8+)",
        commands=(("dnf", "install", "-y", "-q", "iproute"),),
    ),
    PackageManager(
        name="pacman",
        description="pacman package manager (Arch Linux)",
        commands=(("pacman", "-S", "--noconfirm", "--quiet", "iproute2"),),
    ),
    PackageManager(
        name="zypper",
        description="zypper package manager (openSUSE)",
        commands=(("zypper", "install", "-y", "-q", "iproute2"),),
    ),
)

MANUAL_INSTALL_HINTS = (
    "On Debian/Ubuntu: sudo apt-get install iproute2",
    "On RHEL/CentOS: sudo yum install iproute",
    "On Fedora: sudo dnf install iproute",
    "On Arch: sudo pacman -S iproute2",
    "On openSUSE: sudo zypper install iproute2",
)


class PackageInstaller(SystemProbe):
    """Finds the host package manager and installs iproute2 with it."""

    tool = REQUIRED_COMMAND

    def __init__(self, use_sudo: bool | None = None):
        # Default: escalate only when not already root
        self.use_sudo = os.geteuid() != 0 if use_sudo is None else use_sudo

    def find_manager(self) -> PackageManager | None:
        for manager in PACKAGE_MANAGERS:
            if which(manager.name):
                return manager
        return None

    def install(self, manager: PackageManager) -> bool:
        """Run the manager's install commands in order, stopping at the first failure."""
        for command in manager.commands:
            cmd = ["sudo", *command] if self.use_sudo else list(command)
            result = run_command(cmd)
            if not result.ok:
                logger.debug("Install step failed (rc=%d): %s", result.returncode, result.stderr.strip())
                return False
        return True
