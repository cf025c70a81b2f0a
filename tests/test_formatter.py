# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Tests for the NCCL/UCX variable rule table and rendering."""

from datetime import datetime

import pytest

from fabricenv.core.formatter import (
    EnvAssignment,
    append_env_file,
    build_assignments,
    format_env,
    render_env,
)
from fabricenv.core.schema import DetectionResult, FabricSettings, IBPort

GENERATED_AT = datetime(2025, 3, 4, 5, 6, 7)


def ib_result(ports: int = 2, eth: tuple[str, ...] = ()) -> DetectionResult:
    return DetectionResult(
        ib_devices=("mlx5_0",),
        ib_ports=tuple(IBPort(device_name="mlx5_0", port_index=k) for k in range(1, ports + 1)),
        eth_interfaces=eth,
    )


ETH_ONLY = DetectionResult(eth_interfaces=("eth0", "eth1"))
NOTHING = DetectionResult()


class TestRuleTable:
    """Tests for build_assignments() ordering and conditions."""

    def test_ethernet_only(self):
        """No IB: IB disabled, first Ethernet used for NCCL and UCX."""
        assert build_assignments(ETH_ONLY) == [
            EnvAssignment("NCCL_IB_DISABLE", "1"),
            EnvAssignment("NCCL_SOCKET_IFNAME", "eth0"),
            EnvAssignment("NCCL_DEBUG", "INFO"),
            EnvAssignment("NCCL_DEBUG_SUBSYS", "ALL"),
            EnvAssignment("UCX_NET_DEVICES", "eth0"),
        ]

    def test_infiniband_only(self):
        """IB with two ports and no Ethernet: no Ethernet fallback lines."""
        assert build_assignments(ib_result(ports=2)) == [
            EnvAssignment("NCCL_IB_HCA", "mlx5_0"),
            EnvAssignment("NCCL_IB_DISABLE", "0"),
            EnvAssignment("NCCL_IB_TIMEOUT", "23"),
            EnvAssignment("NCCL_IB_RETRY_CNT", "7"),
            EnvAssignment("NCCL_DEBUG", "INFO"),
            EnvAssignment("NCCL_DEBUG_SUBSYS", "ALL"),
            EnvAssignment("UCX_NET_DEVICES", "mlx5_0:1,mlx5_0:2"),
        ]

    def test_infiniband_and_ethernet(self):
        """UCX prefers IB ports; NCCL still gets the socket interface."""
        keys = dict(build_assignments(ib_result(ports=1, eth=("ens5",))))
        assert keys["NCCL_SOCKET_IFNAME"] == "ens5"
        assert keys["UCX_NET_DEVICES"] == "mlx5_0:1"

    def test_ib_device_without_ports_falls_back_for_ucx(self):
        result = DetectionResult(ib_devices=("mlx5_0",), eth_interfaces=("eth0",))
        keys = dict(build_assignments(result))
        assert keys["NCCL_IB_HCA"] == "mlx5_0"
        assert keys["UCX_NET_DEVICES"] == "eth0"

    def test_nothing_detected(self):
        """Debug settings are always emitted; UCX is left unset."""
        assert build_assignments(NOTHING) == [
            EnvAssignment("NCCL_IB_DISABLE", "1"),
            EnvAssignment("NCCL_DEBUG", "INFO"),
            EnvAssignment("NCCL_DEBUG_SUBSYS", "ALL"),
        ]

    def test_settings_override_values(self):
        settings = FabricSettings(ib_timeout=20, ib_retry_cnt=3, nccl_debug="WARN", nccl_debug_subsys="INIT,NET")
        keys = dict(build_assignments(ib_result(), settings))
        assert keys["NCCL_IB_TIMEOUT"] == "20"
        assert keys["NCCL_IB_RETRY_CNT"] == "3"
        assert keys["NCCL_DEBUG"] == "WARN"
        assert keys["NCCL_DEBUG_SUBSYS"] == "INIT,NET"


class TestFormatEnv:
    """Tests for exported vs bare rendering."""

    @pytest.mark.parametrize("result", [ETH_ONLY, ib_result(), NOTHING])
    def test_exported_prefixes_every_line(self, result):
        lines = format_env(result, exported=True)
        assert lines
        assert all(line.startswith("export ") for line in lines)

    @pytest.mark.parametrize("result", [ETH_ONLY, ib_result(), NOTHING])
    def test_bare_never_exports(self, result):
        lines = format_env(result, exported=False)
        assert not any(line.startswith("export") for line in lines)

    def test_same_assignments_in_both_modes(self):
        exported = format_env(ib_result(), exported=True)
        bare = format_env(ib_result(), exported=False)
        assert [line.removeprefix("export ") for line in exported] == bare

    def test_bare_lines(self):
        assert format_env(ETH_ONLY, exported=False) == [
            "NCCL_IB_DISABLE=1",
            "NCCL_SOCKET_IFNAME=eth0",
            "NCCL_DEBUG=INFO",
            "NCCL_DEBUG_SUBSYS=ALL",
            "UCX_NET_DEVICES=eth0",
        ]

    def test_unsafe_values_quoted(self):
        assert EnvAssignment("NCCL_DEBUG_SUBSYS", "INIT NET").render(exported=True) == "export NCCL_DEBUG_SUBSYS='INIT NET'"


class TestRenderEnv:
    """Tests for verbose commentary."""

    def test_quiet_has_no_comments(self):
        lines = render_env(ib_result(), exported=True, verbose=False)
        assert lines == format_env(ib_result(), exported=True)

    def test_verbose_exported_layout(self):
        lines = render_env(ETH_ONLY, exported=True, verbose=True, generated_at=GENERATED_AT)
        assert lines == [
            "# NCCL and UCX Environment Variables",
            "# Generated on Tue Mar 04 05:06:07 2025",
            "# Only actual InfiniBand devices are included",
            "",
            "# === NCCL Configuration ===",
            "# No active InfiniBand devices found, disabling IB",
            "export NCCL_IB_DISABLE=1",
            "",
            "# Ethernet fallback for NCCL",
            "export NCCL_SOCKET_IFNAME=eth0",
            "",
            "# NCCL Debug settings",
            "export NCCL_DEBUG=INFO",
            "export NCCL_DEBUG_SUBSYS=ALL",
            "",
            "# === UCX Configuration ===",
            "# No InfiniBand devices for UCX, using Ethernet only",
            "export UCX_NET_DEVICES=eth0",
            "",
            "# === Verification Commands ===",
            "# To verify NCCL: NCCL_DEBUG=INFO python your_script.py",
            "# To verify UCX: UCX_LOG_LEVEL=info mpirun your_application",
        ]

    def test_verbose_bare_has_no_banners(self):
        """File output gets section comments but no banners or verification block."""
        lines = render_env(ib_result(), exported=False, verbose=True, generated_at=GENERATED_AT)
        assert "# InfiniBand devices for NCCL (verified as IB link layer)" in lines
        assert "# UCX InfiniBand devices (with port specification)" in lines
        assert not any("===" in line for line in lines)
        assert not any(line.startswith("export") for line in lines)

    def test_verbose_keeps_same_assignments(self):
        """Commentary never changes the assignment lines themselves."""
        verbose = render_env(ETH_ONLY, exported=False, verbose=True, generated_at=GENERATED_AT)
        assignments = [line for line in verbose if line and not line.startswith("#")]
        assert assignments == format_env(ETH_ONLY, exported=False)


class TestAppendEnvFile:
    """Tests for append_env_file()."""

    def test_appends_to_existing(self, tmp_path):
        path = tmp_path / "job.env"
        path.write_text("EXISTING=1\n")

        append_env_file(path, ["NCCL_IB_DISABLE=1", "NCCL_DEBUG=INFO"])

        assert path.read_text() == "EXISTING=1\nNCCL_IB_DISABLE=1\nNCCL_DEBUG=INFO\n"

    def test_creates_missing_file(self, tmp_path):
        path = tmp_path / "new.env"
        append_env_file(path, ["NCCL_IB_DISABLE=1"])
        assert path.read_text() == "NCCL_IB_DISABLE=1\n"

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            append_env_file(tmp_path / "missing" / "job.env", ["A=1"])
