# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Link-layer interface inspection through iproute2's ``ip``."""

import logging
import re

from fabricenv.probes.base import SystemProbe

logger = logging.getLogger(__name__)

_LINK_HEADER_RE = re.compile(r"^\d+:\s+(\S+)")
_STATE_RE = re.compile(r"state ([A-Z]+)")


class LinkProbe(SystemProbe):
    """Typed queries over ``ip link`` and ``ip addr``."""

    tool = "ip"

    def list_interfaces(self) -> list[str]:
        """Interface names in enumeration order.

        VLAN and sub-interfaces keep their ``@parent`` suffix (``eth0.100@eth0``).
        """
        result = self.run("link", "show")
        if not result.ok:
            logger.debug("ip link show failed: %s", result.stderr.strip())
            return []

        names = []
        for line in result.stdout.splitlines():
            match = _LINK_HEADER_RE.match(line)
            if match:
                names.append(match.group(1).replace(":", "", 1))
        return names

    def exists(self, name: str) -> bool:
        return self.run("link", "show", name).ok

    def state(self, name: str) -> str | None:
        """Operational state (``UP``, ``DOWN``, ``UNKNOWN``...), or None."""
        result = self.run("link", "show", name)
        if not result.ok:
            return None
        match = _STATE_RE.search(result.stdout)
        return match.group(1) if match else None

    def has_ipv4(self, name: str) -> bool:
        """Whether at least one IPv4 address is bound to the interface."""
        result = self.run("addr", "show", name)
        if not result.ok:
            return False
        return any(line.strip().startswith("inet ") for line in result.stdout.splitlines())
