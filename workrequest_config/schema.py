"""
Configuration Schema (``workrequest_config.schema``).

Responsibility
--------------
The frozen dataclass a loaded configuration becomes.  Policy values
themselves are the kernel's ``EnginePolicy`` family, so the engines never
import from this package.

Architecture position
---------------------
**Config layer** -- pure data definitions, zero I/O.

Invariants enforced
-------------------
* ``EngineConfig`` is frozen.
* ``checksum`` is the SHA-256 of the canonical source mapping and
  identifies the configuration in ``WORKREQUEST_CONFIG_TRACE`` records.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from workrequest_kernel.domain.policy import EnginePolicy


@dataclass(frozen=True)
class EngineConfig:
    """A loaded, versioned engine configuration."""

    config_id: str
    version: int
    policy: EnginePolicy = field(default_factory=EnginePolicy)
    checksum: str = ""
