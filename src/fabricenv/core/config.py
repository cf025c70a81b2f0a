# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Settings file loading for fabricenv.

Lookup order:
    1. Explicit path (``-c/--config``)
    2. ``FABRICENV_CONFIG`` environment variable
    3. ``fabricenv.yaml`` in the current working directory
    4. Built-in defaults

Environment Variables:
    FABRICENV_CONFIG: Path to a settings file
"""

import logging
import os
from pathlib import Path

import yaml

from fabricenv.core.schema import FabricSettings

logger = logging.getLogger(__name__)

CONFIG_ENV = "FABRICENV_CONFIG"
DEFAULT_CONFIG_NAME = "fabricenv.yaml"


def find_settings_file(explicit: Path | None = None) -> Path | None:
    """Resolve which settings file applies, if any.

    Explicit and environment paths must exist; the working-directory file is
    only used when present.

    Raises:
        FileNotFoundError: If an explicit or environment path does not exist
    """
    if explicit is not None:
        if not explicit.is_file():
            raise FileNotFoundError(f"Config file not found: {explicit}")
        return explicit

    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        path = Path(env_path)
        if not path.is_file():
            raise FileNotFoundError(f"Config file from {CONFIG_ENV} not found: {path}")
        return path

    local = Path.cwd() / DEFAULT_CONFIG_NAME
    if local.is_file():
        return local
    return None


def load_settings(explicit: Path | None = None) -> FabricSettings:
    """Load and validate settings, falling back to defaults when no file applies."""
    path = find_settings_file(explicit)
    if path is None:
        logger.debug("No settings file found, using defaults")
        return FabricSettings()

    with open(path) as f:
        data = yaml.safe_load(f)

    # An empty file parses to None
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    settings = FabricSettings.model_validate(data)
    logger.info(f"Loaded settings from {path}")
    return settings
