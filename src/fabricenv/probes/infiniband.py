# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
InfiniBand device inspection.

Primary source is ``ibstat``; when it is not installed the device-class tree
under ``/sys/class/infiniband`` is read directly.
"""

import logging
import re
from pathlib import Path
from typing import NamedTuple

from fabricenv.core.schema import DEFAULT_INFINIBAND_SYSFS, LinkLayer, LinkState, NetworkDevice
from fabricenv.probes.base import SystemProbe

logger = logging.getLogger(__name__)

# Content of ports/<n>/state for an active port
SYSFS_ACTIVE_STATE = "4: ACTIVE"

_LINK_LAYER_RE = re.compile(r"^\s*Link layer:\s*(\S+)", re.MULTILINE)
# Case-sensitive so "Physical state:" never matches
_STATE_RE = re.compile(r"^\s*State:\s*(\S+)", re.MULTILINE)
_PORT_COUNT_RE = re.compile(r"^\s*Number of ports:\s*(\S+)", re.MULTILINE)


class SysfsPort(NamedTuple):
    """One port directory found under the device-class tree."""

    device_name: str
    port_index: int
    state: str


def parse_ibstat(name: str, output: str) -> NetworkDevice | None:
    """Build a NetworkDevice from ``ibstat <device>`` output.

    Link layer and state come from the first port block reported. Returns None
    when the port count is missing or not an integer.
    """
    ports_match = _PORT_COUNT_RE.search(output)
    if not ports_match:
        logger.debug("  - No port count reported for %s", name)
        return None
    try:
        port_count = int(ports_match.group(1))
    except ValueError:
        logger.debug("  - Unparseable port count for %s: %s", name, ports_match.group(1))
        return None

    link_layer_match = _LINK_LAYER_RE.search(output)
    state_match = _STATE_RE.search(output)

    return NetworkDevice(
        name=name,
        link_layer=LinkLayer.from_text(link_layer_match.group(1) if link_layer_match else None),
        state=LinkState.from_text(state_match.group(1) if state_match else None),
        port_count=port_count,
    )


class InfiniBandProbe(SystemProbe):
    """Typed queries over ibstat and the InfiniBand sysfs tree."""

    tool = "ibstat"

    def __init__(self, sysfs_root: Path = Path(DEFAULT_INFINIBAND_SYSFS)):
        self.sysfs_root = sysfs_root

    def list_devices(self) -> list[str]:
        """Device names in the order ibstat reports them."""
        result = self.run("-l")
        if not result.ok:
            return []
        return result.stdout.split()

    def query_device(self, name: str) -> NetworkDevice | None:
        result = self.run(name)
        if not result.ok:
            logger.debug("  - ibstat %s failed: %s", name, result.stderr.strip())
            return None
        return parse_ibstat(name, result.stdout)

    def list_sysfs_ports(self) -> list[SysfsPort]:
        """Every readable port under the device-class tree.

        Devices are visited in name order and ports in numeric order.
        """
        if not self.sysfs_root.is_dir():
            logger.debug("No InfiniBand sysfs tree at %s", self.sysfs_root)
            return []

        ports = []
        for device_dir in sorted(self.sysfs_root.iterdir()):
            logger.debug("Found potential IB device: %s", device_dir.name)
            ports_dir = device_dir / "ports"
            if not ports_dir.is_dir():
                continue

            indexed = []
            for port_dir in ports_dir.iterdir():
                if port_dir.name.isdigit():
                    indexed.append((int(port_dir.name), port_dir))

            for port_index, port_dir in sorted(indexed):
                state_file = port_dir / "state"
                try:
                    state = state_file.read_text().strip()
                except OSError:
                    continue
                ports.append(SysfsPort(device_dir.name, port_index, state))
        return ports
