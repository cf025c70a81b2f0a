#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
fabricenv command line entry point.

Usage:
    eval "$(fabricenv)"                  # export variables into this shell
    fabricenv -o job.env                 # append bare KEY=VALUE lines to a file
    fabricenv -v                         # with commentary and diagnostics

Data lines go to stdout (or the output file); diagnostics, the summary and
warnings go to stderr.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from rich.console import Console
from rich.markup import escape

from fabricenv.core.config import load_settings
from fabricenv.core.formatter import append_env_file, render_env
from fabricenv.core.schema import DetectionResult, FabricSettings, OutputConfig
from fabricenv.detect import detect_ethernet, detect_infiniband, ensure_tool_present
from fabricenv.probes import InfiniBandProbe, LinkProbe, PackageInstaller

logger = logging.getLogger(__name__)

console = Console(stderr=True)

NO_IB_CAUSES = (
    "No IB hardware is installed",
    "IB drivers are not loaded",
    "Devices are configured for Ethernet mode",
    "Ports are not connected/active",
)


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


class _UsageParser(argparse.ArgumentParser):
    """Prints the full help text and exits 1 on any parse error."""

    def error(self, message: str):
        logger.debug("Argument error: %s", message)
        self.print_help(sys.stderr)
        self.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = _UsageParser(
        prog="fabricenv",
        description="Detect InfiniBand and Ethernet fabric and emit NCCL/UCX environment variables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        type=Path,
        help="Append variables to specified file (without export commands)",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=Path,
        help="Settings file (default: $FABRICENV_CONFIG or ./fabricenv.yaml)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> OutputConfig:
    """Parse invocation arguments. Exits 0 for --help and 1 for invalid arguments."""
    args = build_parser().parse_args(argv)
    return OutputConfig(verbose=args.verbose, output_file=args.output, config_file=args.config)


@dataclass
class SystemProbes:
    """The probes one run talks to."""

    infiniband: InfiniBandProbe = field(default_factory=InfiniBandProbe)
    link: LinkProbe = field(default_factory=LinkProbe)
    installer: PackageInstaller = field(default_factory=PackageInstaller)

    @classmethod
    def from_settings(cls, settings: FabricSettings) -> "SystemProbes":
        return cls(
            infiniband=InfiniBandProbe(settings.infiniband_sysfs),
            link=LinkProbe(),
            installer=PackageInstaller(use_sudo=settings.use_sudo),
        )


def _print_summary(config: OutputConfig, result: DetectionResult) -> None:
    console.print()
    console.print("[bold]=== Summary ===[/]")
    console.print(f"InfiniBand devices: {result.ib_devices_csv or 'None found'}")
    console.print(f"Ethernet devices: {result.eth_interfaces_csv or 'None found'}")
    if config.output_file is not None:
        console.print(f"Variables appended to: {config.output_file}")


def _print_no_ib_warning() -> None:
    console.print()
    console.print("[yellow]WARNING:[/] No active InfiniBand devices detected!")
    console.print("   This could mean:")
    for i, cause in enumerate(NO_IB_CAUSES, start=1):
        console.print(f"   {i}. {cause}")


def run(config: OutputConfig, settings: FabricSettings, probes: SystemProbes) -> int:
    """Ensure iproute2, detect fabric, then print or append the variables.

    Returns:
        Exit code (0 for success, 1 if iproute2 is unavailable or the output file cannot be written)
    """
    if config.verbose:
        console.print("[bold]InfiniBand Detection[/]")
        console.print("This tool only reports adapters with an InfiniBand link layer")
        console.print()

    if not ensure_tool_present(probes.installer):
        console.print("[red]ERROR:[/] iproute2 is required but could not be installed. Exiting.")
        return 1

    infiniband = detect_infiniband(probes.infiniband)
    ethernet = detect_ethernet(
        probes.link,
        extra_excluded_prefixes=settings.extra_excluded_prefixes,
        sort_interfaces=settings.sort_interfaces,
    )
    result = DetectionResult.combine(infiniband, ethernet)

    logger.info("=== Generating Environment Variables ===")
    lines = render_env(result, exported=config.exported, verbose=config.verbose, settings=settings)

    if config.output_file is None:
        for line in lines:
            print(line)
    else:
        logger.info(f"Appending environment variables to: {config.output_file}")
        try:
            append_env_file(config.output_file, lines)
        except OSError as e:
            console.print(f"[red]ERROR:[/] Cannot write {config.output_file}: {escape(str(e))}")
            return 1

    if config.verbose:
        _print_summary(config, result)
        if not result.ib_devices:
            _print_no_ib_warning()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the fabricenv command."""
    config = parse_args(argv)
    setup_logging(logging.DEBUG if config.verbose else logging.WARNING)

    try:
        settings = load_settings(config.config_file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # pydantic's ValidationError is a ValueError
        console.print(f"[red]ERROR:[/] Invalid configuration: {escape(str(e))}")
        return 1

    return run(config, settings, SystemProbes.from_settings(settings))


if __name__ == "__main__":
    sys.exit(main())
