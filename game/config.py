# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Configuration loading.

Settings come from a YAML file merged over ``DEFAULT_CONFIG``; keys missing
from the file keep their defaults.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "game_config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "WARNING",
    },
    "game": {
        "seed": None,
    },
    "placement": {
        "max_attempts": 1000,
    },
    "store": {
        "backend": "file",
        "directory": "games",
        "poll_interval": 0.5,
    },
    "ai": {
        "delay": 0.5,
    },
}

STORE_BACKENDS = ("memory", "file")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file. The bundled
            ``configs/game_config.yaml`` is used when omitted; if that is
            missing too, the defaults are returned.

    Raises:
        ValueError: If the file is not a mapping or names an unknown store
            backend.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if config_path is None and not path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, 'r') as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    config = _merge(DEFAULT_CONFIG, loaded)
    if config["store"]["backend"] not in STORE_BACKENDS:
        raise ValueError(
            f"Unknown store backend '{config['store']['backend']}'. "
            f"Must be one of: {', '.join(STORE_BACKENDS)}"
        )
    logger.debug(f"Loaded config from {path}")
    return config
