# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Map a DetectionResult to NCCL and UCX environment variable assignments.

Rule table, applied in order:

    IB devices found       NCCL_IB_HCA, NCCL_IB_DISABLE=0, NCCL_IB_TIMEOUT, NCCL_IB_RETRY_CNT
    no IB devices          NCCL_IB_DISABLE=1
    Ethernet found         NCCL_SOCKET_IFNAME=<first interface>
    always                 NCCL_DEBUG, NCCL_DEBUG_SUBSYS
    IB ports found         UCX_NET_DEVICES=<device:port list>
    no IB ports, Ethernet  UCX_NET_DEVICES=<first interface>

Exported lines (``export KEY=VALUE``) are meant to be sourced into a live
shell; bare lines (``KEY=VALUE``) are appended to files that another step
sources later. Comment lines are only added in verbose mode.
"""

import logging
import shlex
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from fabricenv.core.schema import DetectionResult, FabricSettings

logger = logging.getLogger(__name__)

EXPORT_DIRECTIVE = "export"

VERIFICATION_FOOTER = (
    "# === Verification Commands ===",
    "# To verify NCCL: NCCL_DEBUG=INFO python your_script.py",
    "# To verify UCX: UCX_LOG_LEVEL=info mpirun your_application",
)


class EnvAssignment(NamedTuple):
    """A single ``KEY=VALUE`` pair."""

    key: str
    value: str

    def render(self, exported: bool) -> str:
        line = f"{self.key}={shlex.quote(self.value)}"
        return f"{EXPORT_DIRECTIVE} {line}" if exported else line


@dataclass
class _Section:
    group: str  # "nccl" or "ucx"
    comment: str
    assignments: list[EnvAssignment] = field(default_factory=list)


def _sections(result: DetectionResult, settings: FabricSettings) -> list[_Section]:
    sections = []

    if result.ib_devices:
        sections.append(
            _Section(
                "nccl",
                "InfiniBand devices for NCCL (verified as IB link layer)",
                [
                    EnvAssignment("NCCL_IB_HCA", result.ib_devices_csv),
                    EnvAssignment("NCCL_IB_DISABLE", "0"),
                    EnvAssignment("NCCL_IB_TIMEOUT", str(settings.ib_timeout)),
                    EnvAssignment("NCCL_IB_RETRY_CNT", str(settings.ib_retry_cnt)),
                ],
            )
        )
    else:
        sections.append(
            _Section(
                "nccl",
                "No active InfiniBand devices found, disabling IB",
                [EnvAssignment("NCCL_IB_DISABLE", "1")],
            )
        )

    first_eth = result.first_ethernet
    if first_eth:
        sections.append(_Section("nccl", "Ethernet fallback for NCCL", [EnvAssignment("NCCL_SOCKET_IFNAME", first_eth)]))

    sections.append(
        _Section(
            "nccl",
            "NCCL Debug settings",
            [
                EnvAssignment("NCCL_DEBUG", settings.nccl_debug),
                EnvAssignment("NCCL_DEBUG_SUBSYS", settings.nccl_debug_subsys),
            ],
        )
    )

    if result.ib_ports:
        sections.append(
            _Section(
                "ucx",
                "UCX InfiniBand devices (with port specification)",
                [EnvAssignment("UCX_NET_DEVICES", result.ib_ports_csv)],
            )
        )
    else:
        # Comment is kept even when there is no Ethernet to fall back to
        fallback = [EnvAssignment("UCX_NET_DEVICES", first_eth)] if first_eth else []
        sections.append(_Section("ucx", "No InfiniBand devices for UCX, using Ethernet only", fallback))

    return sections


def build_assignments(result: DetectionResult, settings: FabricSettings | None = None) -> list[EnvAssignment]:
    """Ordered assignments for a detection result."""
    settings = settings or FabricSettings()
    return [assignment for section in _sections(result, settings) for assignment in section.assignments]


def format_env(
    result: DetectionResult,
    exported: bool,
    settings: FabricSettings | None = None,
) -> list[str]:
    """Assignment lines only, without commentary."""
    return [assignment.render(exported) for assignment in build_assignments(result, settings)]


def render_env(
    result: DetectionResult,
    exported: bool,
    verbose: bool = False,
    settings: FabricSettings | None = None,
    generated_at: datetime | None = None,
) -> list[str]:
    """Assignment lines plus, in verbose mode, comment lines documenting them.

    Exported (stdout) output additionally gets section banners and a trailing
    block of verification commands.
    """
    settings = settings or FabricSettings()
    if not verbose:
        return format_env(result, exported, settings)

    generated_at = generated_at or datetime.now()
    lines = [
        "# NCCL and UCX Environment Variables",
        f"# Generated on {generated_at.strftime('%a %b %d %H:%M:%S %Y')}",
        "# Only actual InfiniBand devices are included",
        "",
    ]

    current_group = None
    for section in _sections(result, settings):
        if exported:
            if section.group != current_group:
                if current_group is not None:
                    lines.append("")
                lines.append(f"# === {section.group.upper()} Configuration ===")
                current_group = section.group
            elif section.group == "nccl":
                lines.append("")
        lines.append(f"# {section.comment}")
        lines.extend(assignment.render(exported) for assignment in section.assignments)

    if exported:
        lines.append("")
        lines.extend(VERIFICATION_FOOTER)

    return lines


def append_env_file(path: Path, lines: list[str]) -> None:
    """Append lines to a file, creating it if needed.

    Raises:
        OSError: If the file cannot be opened or written
    """
    with open(path, "a") as f:
        for line in lines:
            f.write(line + "\n")
    logger.info(f"Environment variables successfully appended to: {path}")
