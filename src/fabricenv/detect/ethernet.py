# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Detection of usable Ethernet interfaces (up, addressed, not virtual)."""

import logging
from collections.abc import Iterable

from fabricenv.core.schema import DEFAULT_EXCLUDED_PREFIXES, DetectionResult
from fabricenv.probes.link import LinkProbe

logger = logging.getLogger(__name__)

# Marks VLAN and other sub-interfaces (eth0.100@eth0)
SUBINTERFACE_MARKER = "@"


def is_excluded_interface(name: str, extra_prefixes: Iterable[str] = ()) -> bool:
    """Loopback, container, bridge, veth, IPoIB and sub-interfaces are never Ethernet fabric.

    Extra prefixes only widen the built-in exclusions.
    """
    prefixes = DEFAULT_EXCLUDED_PREFIXES + tuple(extra_prefixes)
    return name.startswith(prefixes) or SUBINTERFACE_MARKER in name


def detect_ethernet(
    probe: LinkProbe | None = None,
    extra_excluded_prefixes: Iterable[str] = (),
    sort_interfaces: bool = False,
) -> DetectionResult:
    """Detect interfaces that are UP and carry at least one IPv4 address.

    Args:
        probe: Link probe (default: a real one backed by ``ip``)
        extra_excluded_prefixes: Interface name prefixes to skip on top of the built-in ones
        sort_interfaces: Order candidates by name instead of enumeration order

    Returns:
        DetectionResult with eth_interfaces set; IB fields empty
    """
    probe = probe or LinkProbe()
    extra = tuple(extra_excluded_prefixes)
    logger.info("=== Detecting Ethernet Interfaces ===")

    candidates = [name for name in probe.list_interfaces() if not is_excluded_interface(name, extra)]
    if sort_interfaces:
        candidates.sort()

    interfaces: list[str] = []
    for name in candidates:
        # Interfaces can disappear between enumeration and inspection
        if not probe.exists(name):
            logger.debug("Skipping non-existent interface: %s", name)
            continue

        state = probe.state(name)
        has_ip = probe.has_ipv4(name)
        if state == "UP" and has_ip:
            logger.debug("Found active Ethernet interface: %s", name)
            interfaces.append(name)
        else:
            logger.debug("Skipping interface %s (state: %s, has_ip: %s)", name, state, "yes" if has_ip else "no")

    result = DetectionResult(eth_interfaces=tuple(interfaces))
    logger.info("Ethernet interfaces found: %s", result.eth_interfaces_csv or "none")
    return result
