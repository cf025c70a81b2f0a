# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Detection of true InfiniBand adapters.

With ibstat, a device qualifies only when its link layer is InfiniBand and its
state is Active; every port 1..N of a qualifying device is then listed. RoCE
adapters (Ethernet link layer) are excluded.

Without ibstat, the sysfs tree is used and inclusion is port-driven: each port
whose state file reads ``4: ACTIVE`` is listed, and a device is listed once if
any of its ports is active. Link layer is not checked on this path.
"""

import logging

from fabricenv.core.schema import DetectionResult, IBPort, LinkLayer, LinkState, NetworkDevice
from fabricenv.probes.infiniband import SYSFS_ACTIVE_STATE, InfiniBandProbe

logger = logging.getLogger(__name__)


def is_active_infiniband(device: NetworkDevice) -> bool:
    return device.link_layer == LinkLayer.INFINIBAND and device.state == LinkState.ACTIVE


def device_ports(device: NetworkDevice) -> tuple[IBPort, ...]:
    """Ports 1..port_count of a device, ascending."""
    return tuple(IBPort(device_name=device.name, port_index=k) for k in range(1, device.port_count + 1))


def _detect_with_ibstat(probe: InfiniBandProbe) -> DetectionResult:
    logger.info("Scanning devices with ibstat...")

    devices: list[str] = []
    ports: list[IBPort] = []
    for name in probe.list_devices():
        logger.debug("Checking device: %s", name)
        device = probe.query_device(name)
        if device is None:
            logger.debug("  ✗ Could not parse ibstat output for %s", name)
            continue

        logger.debug("  - Link layer: %s", device.link_layer.value)
        logger.debug("  - State: %s", device.state.value)
        logger.debug("  - Ports: %d", device.port_count)

        if not is_active_infiniband(device):
            if device.link_layer != LinkLayer.INFINIBAND:
                logger.debug("  ✗ Not an InfiniBand device (Link layer: %s)", device.link_layer.value)
            else:
                logger.debug("  ✗ Device is not active (State: %s)", device.state.value)
            continue

        logger.debug("  ✓ Active InfiniBand device")
        devices.append(device.name)
        ports.extend(device_ports(device))

    return DetectionResult(ib_devices=tuple(devices), ib_ports=tuple(ports))


def _detect_with_sysfs(probe: InfiniBandProbe) -> DetectionResult:
    logger.info("ibstat not available, trying sysfs detection under %s...", probe.sysfs_root)

    devices: list[str] = []
    ports: list[IBPort] = []
    for port in probe.list_sysfs_ports():
        if port.state != SYSFS_ACTIVE_STATE:
            logger.debug("  ✗ %s port %d is not active (%s)", port.device_name, port.port_index, port.state)
            continue

        logger.debug("  ✓ %s port %d is active", port.device_name, port.port_index)
        if port.device_name not in devices:
            devices.append(port.device_name)
        ports.append(IBPort(device_name=port.device_name, port_index=port.port_index))

    return DetectionResult(ib_devices=tuple(devices), ib_ports=tuple(ports))


def detect_infiniband(probe: InfiniBandProbe | None = None) -> DetectionResult:
    """Detect active InfiniBand devices and their ports.

    Args:
        probe: InfiniBand probe (default: a real one on /sys/class/infiniband)

    Returns:
        DetectionResult with ib_devices and ib_ports set; eth_interfaces empty
    """
    probe = probe or InfiniBandProbe()
    logger.info("=== Detecting True InfiniBand Devices ===")

    if probe.available():
        result = _detect_with_ibstat(probe)
    else:
        result = _detect_with_sysfs(probe)

    logger.info("InfiniBand devices found: %s", result.ib_devices_csv or "none")
    logger.info("With port specification: %s", result.ib_ports_csv or "none")
    return result
