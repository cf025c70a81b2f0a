# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
fabricenv - detect InfiniBand and Ethernet fabric on a node and emit NCCL/UCX
environment variables.
"""

__version__ = "0.1.0"
