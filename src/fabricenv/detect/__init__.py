# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Fabric detection: dependency check, InfiniBand devices, Ethernet interfaces."""

from .dependencies import ensure_tool_present
from .ethernet import detect_ethernet, is_excluded_interface
from .infiniband import detect_infiniband, device_ports, is_active_infiniband

__all__ = [
    "ensure_tool_present",
    "detect_infiniband",
    "detect_ethernet",
    "is_active_infiniband",
    "is_excluded_interface",
    "device_ports",
]
