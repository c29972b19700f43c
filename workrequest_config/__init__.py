"""
workrequest_config -- single public entrypoint for engine configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains policy
    values (thresholds, SLA hours, role maps, keyword tables, trust deltas,
    panel size).  Services receive the resulting ``EngineConfig`` and pass
    its ``EnginePolicy`` to the pure engines.

Architecture position:
    Configuration -- sits above ``workrequest_kernel`` and below
    ``workrequest_services``.  The kernel and the engines never import
    from this package.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Deterministic identity: the same YAML always yields the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- the file is structurally invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``WORKREQUEST_CONFIG_TRACE`` log entry with the config id, version
    and checksum, tying each engine decision to the configuration that
    governed it.
"""

from __future__ import annotations

from pathlib import Path

from workrequest_config.loader import compute_checksum, load_engine_config, parse_engine_config
from workrequest_config.schema import EngineConfig
from workrequest_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "engine.yaml"


def get_active_config(path: Path | None = None) -> EngineConfig:
    """
    Load the engine configuration.

    Args:
        path: YAML file to load.  Defaults to the packaged production
            defaults.

    Returns:
        The frozen ``EngineConfig``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        KeyError: If ``config_id`` or ``version`` is missing.
        ValueError: If a section holds unknown keys or names.
    """
    config = load_engine_config(path or DEFAULT_CONFIG_PATH)

    policy = config.policy
    logger.info(
        "WORKREQUEST_CONFIG_TRACE",
        extra={
            "trace_type": "WORKREQUEST_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "high_value_threshold": policy.chain.high_value_threshold,
            "panel_votes_required": policy.dispute.panel_votes_required,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineConfig",
    "compute_checksum",
    "get_active_config",
    "parse_engine_config",
]
