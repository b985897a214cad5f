"""
aging_config -- single public entrypoint for aging configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. Modules and scripts never read YAML files
    directly.

Architecture position:
    Configuration -- sits above ``aging_kernel`` and ``aging_engines``
    and below ``aging_modules`` / ``scripts``. The kernel and engines MUST
    NEVER import from ``aging_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ConfigurationError`` (and subclasses) -- invalid content.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``AGING_CONFIG_TRACE`` log entry with the source path, checksum,
    currency and bucket names, tying each report to the configuration
    that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from aging_config.loader import load_yaml_file, parse_aging_config
from aging_config.schema import AgingConfig

_logger = logging.getLogger("aging_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "aging.yaml"

__all__ = [
    "AgingConfig",
    "DEFAULT_CONFIG_PATH",
    "get_active_config",
]


def get_active_config(config_path: Path | None = None) -> AgingConfig:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned ``AgingConfig`` has a validated bucket set and a
          known currency.
        - An ``AGING_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to aging_config/defaults/aging.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file content is invalid.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = parse_aging_config(load_yaml_file(path), source=str(path))

    _logger.info(
        "AGING_CONFIG_TRACE",
        extra={
            "trace_type": "AGING_CONFIG_TRACE",
            "config_source": config.source,
            "checksum": config.checksum,
            "currency": config.currency,
            "buckets": [b.name for b in config.buckets],
            "settlement_tolerance": (
                str(config.settlement_tolerance)
                if config.settlement_tolerance is not None else None
            ),
        },
    )
    return config
