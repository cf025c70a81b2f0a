# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""System probes wrapping the external inspection and installation tools."""

from .base import CommandResult, SystemProbe, run_command, which
from .infiniband import SYSFS_ACTIVE_STATE, InfiniBandProbe, SysfsPort, parse_ibstat
from .link import LinkProbe
from .packages import MANUAL_INSTALL_HINTS, PACKAGE_MANAGERS, PackageInstaller, PackageManager

__all__ = [
    "CommandResult",
    "SystemProbe",
    "run_command",
    "which",
    "InfiniBandProbe",
    "SysfsPort",
    "SYSFS_ACTIVE_STATE",
    "parse_ibstat",
    "LinkProbe",
    "PackageInstaller",
    "PackageManager",
    "PACKAGE_MANAGERS",
    "MANUAL_INSTALL_HINTS",
]
