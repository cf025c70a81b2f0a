# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Make sure iproute2 is installed before any interface detection runs."""

import logging

from rich.console import Console

from fabricenv.probes.packages import MANUAL_INSTALL_HINTS, REQUIRED_PACKAGE, PackageInstaller

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def ensure_tool_present(installer: PackageInstaller | None = None) -> bool:
    """Check for the ``ip`` command and install iproute2 if it is missing.

    Package managers are probed in a fixed order (apt-get, yum, dnf, pacman,
    zypper) and the first one found is used.

    Args:
        installer: Package installer probe (default: a real one)

    Returns:
        True if the command is present or was installed, False otherwise
    """
    installer = installer or PackageInstaller()
    logger.info(f"Checking for {REQUIRED_PACKAGE}...")

    if installer.available():
        logger.info(f"{REQUIRED_PACKAGE} is already installed (ip command found)")
        return True

    logger.info(f"{REQUIRED_PACKAGE} not found, attempting to install...")

    manager = installer.find_manager()
    if manager is None:
        console.print(f"[red]ERROR:[/] Could not detect package manager. Please install {REQUIRED_PACKAGE} manually.")
        for hint in MANUAL_INSTALL_HINTS:
            console.print(f"  {hint}")
        return False

    logger.info(f"Detected {manager.description}")
    if not installer.install(manager):
        console.print(f"[red]ERROR:[/] Failed to install {REQUIRED_PACKAGE}")
        return False

    logger.info(f"Successfully installed {REQUIRED_PACKAGE}")
    return True
