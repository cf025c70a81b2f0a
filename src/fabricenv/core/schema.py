# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Pydantic models shared by the probes, detectors and formatter.

All models are frozen: a detection snapshot is taken once per run and handed
explicitly from the detectors to the formatter.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_EXCLUDED_PREFIXES = ("lo", "docker", "ib", "veth", "br-")
DEFAULT_INFINIBAND_SYSFS = "/sys/class/infiniband"


# ============================================================================
# Devices
# ============================================================================


class LinkLayer(str, Enum):
    """Link layer technology reported for a network device."""

    INFINIBAND = "InfiniBand"
    ETHERNET = "Ethernet"
    OTHER = "other"

    @classmethod
    def from_text(cls, text: str | None) -> "LinkLayer":
        """Map the tool's link layer string to a member (exact match)."""
        if text == cls.INFINIBAND.value:
            return cls.INFINIBAND
        if text == cls.ETHERNET.value:
            return cls.ETHERNET
        return cls.OTHER


class LinkState(str, Enum):
    """Operational state reported for a network device."""

    ACTIVE = "Active"
    DOWN = "Down"
    UNKNOWN = "Unknown"

    @classmethod
    def from_text(cls, text: str | None) -> "LinkState":
        if text == cls.ACTIVE.value:
            return cls.ACTIVE
        if text == cls.DOWN.value:
            return cls.DOWN
        return cls.UNKNOWN


class NetworkDevice(BaseModel):
    """Snapshot of one host network device taken at detection time."""

    model_config = {"frozen": True}

    name: str = Field(..., description="Device identifier (e.g., mlx5_0)")
    link_layer: LinkLayer = Field(LinkLayer.OTHER, description="Link layer classification")
    state: LinkState = Field(LinkState.UNKNOWN, description="Operational state")
    port_count: int = Field(0, ge=0, description="Number of ports reported")


class IBPort(BaseModel):
    """A single (device, port) pair; serialized as ``name:port`` only when formatting."""

    model_config = {"frozen": True}

    device_name: str
    port_index: int = Field(..., ge=1)

    def __str__(self) -> str:
        return f"{self.device_name}:{self.port_index}"


# ============================================================================
# Detection result
# ============================================================================


class DetectionResult(BaseModel):
    """Immutable outcome of one detection run.

    Holds the qualifying InfiniBand devices, their ``(device, port)`` pairs and
    the qualifying Ethernet interfaces, each in enumeration order.
    """

    model_config = {"frozen": True}

    ib_devices: tuple[str, ...] = ()
    ib_ports: tuple[IBPort, ...] = ()
    eth_interfaces: tuple[str, ...] = ()

    @classmethod
    def combine(cls, infiniband: "DetectionResult", ethernet: "DetectionResult") -> "DetectionResult":
        """Merge the IB half of one result with the Ethernet half of another."""
        return cls(
            ib_devices=infiniband.ib_devices,
            ib_ports=infiniband.ib_ports,
            eth_interfaces=ethernet.eth_interfaces,
        )

    @property
    def ib_devices_csv(self) -> str:
        return ",".join(self.ib_devices)

    @property
    def ib_ports_csv(self) -> str:
        return ",".join(str(port) for port in self.ib_ports)

    @property
    def eth_interfaces_csv(self) -> str:
        return ",".join(self.eth_interfaces)

    @property
    def first_ethernet(self) -> str | None:
        """First Ethernet interface in enumeration order, if any."""
        return self.eth_interfaces[0] if self.eth_interfaces else None


# ============================================================================
# Run configuration
# ============================================================================


class OutputConfig(BaseModel):
    """Invocation options, parsed once from the command line."""

    model_config = {"frozen": True}

    verbose: bool = False
    output_file: Optional[Path] = Field(None, description="Append bare assignments here instead of stdout")
    config_file: Optional[Path] = Field(None, description="Explicit settings file")

    @property
    def exported(self) -> bool:
        """Stdout output is sourced into a live shell, so it carries export directives."""
        return self.output_file is None


class FabricSettings(BaseModel):
    """Node settings from fabricenv.yaml.

    Optional file; every default reproduces the stock variable table.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    # NCCL values
    ib_timeout: int = Field(23, ge=0, description="NCCL_IB_TIMEOUT value")
    ib_retry_cnt: int = Field(7, ge=0, description="NCCL_IB_RETRY_CNT value")
    nccl_debug: str = Field("INFO", description="NCCL_DEBUG value")
    nccl_debug_subsys: str = Field("ALL", description="NCCL_DEBUG_SUBSYS value")

    # Ethernet filtering
    extra_excluded_prefixes: tuple[str, ...] = Field(
        (),
        description="Interface name prefixes skipped in addition to the built-in exclusions",
    )
    sort_interfaces: bool = Field(False, description="Sort Ethernet interfaces by name instead of enumeration order")

    # InfiniBand fallback
    infiniband_sysfs: Path = Field(Path(DEFAULT_INFINIBAND_SYSFS), description="InfiniBand device-class tree")

    # Package installation
    use_sudo: Optional[bool] = Field(None, description="Prefix installs with sudo (None = only when not root)")

    @field_validator("extra_excluded_prefixes")
    @classmethod
    def validate_prefixes(cls, v):
        """Reject empty prefixes, which would exclude every interface."""
        if any(not prefix for prefix in v):
            raise ValueError("extra_excluded_prefixes must not contain empty strings")
        return v
