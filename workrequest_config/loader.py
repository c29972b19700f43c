"""
Configuration Loader (``workrequest_config.loader``).

Responsibility
--------------
Loads the engine YAML file and parses each section into the frozen
policy dataclasses of ``workrequest_kernel.domain.policy``.  Runtime code
goes through ``workrequest_config.get_active_config()`` instead of calling
this module directly.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on kernel domain
types only.

Invariants enforced
-------------------
* ``config_id`` and ``version`` are required; every policy section is
  optional and falls back to the built-in defaults field by field.
* Money thresholds are parsed as ``Decimal`` from their string form.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  source mapping.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError``.
* Unknown role, enterprise type or outcome names  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from workrequest_config.schema import EngineConfig
from workrequest_kernel.domain.collaborators import TrustOutcome
from workrequest_kernel.domain.policy import (
    ChainPolicy,
    CustodyPolicy,
    DisputePolicy,
    EnginePolicy,
    KeywordRule,
    PriorityPolicy,
    SlaPolicy,
    TrustPolicy,
)
from workrequest_kernel.domain.roles import EnterpriseType, Role


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _enum(enum_type: type, value: Any, section: str):
    try:
        return enum_type(value)
    except ValueError:
        raise ValueError(
            f"{section}: unknown {enum_type.__name__} {value!r}"
        ) from None


def _scalars(cls: type, data: dict[str, Any], converters: dict[str, Any]) -> dict[str, Any]:
    """Keyword arguments for ``cls`` from the keys present in ``data``."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"{cls.__name__}: unknown keys {sorted(unknown)}")
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        convert = converters.get(key)
        kwargs[key] = convert(value) if convert else value
    return kwargs


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def _strings(value: Any) -> tuple[str, ...]:
    return tuple(str(v).lower() for v in value)


def parse_chain_policy(data: dict[str, Any]) -> ChainPolicy:
    """
    Parse the ``chain`` section.

    ``holding_roles`` and ``destination_roles`` are mappings of enterprise
    type to role name (``null`` for no extra step); ``destination_keywords``
    is an ordered list of ``{role, keywords}``.
    """
    converters = {
        "high_value_threshold": _decimal,
        "holding_roles": lambda m: tuple(
            (
                _enum(EnterpriseType, k, "chain.holding_roles"),
                _enum(Role, v, "chain.holding_roles") if v is not None else None,
            )
            for k, v in m.items()
        ),
        "destination_roles": lambda m: tuple(
            (
                _enum(EnterpriseType, k, "chain.destination_roles"),
                _enum(Role, v, "chain.destination_roles"),
            )
            for k, v in m.items()
        ),
        "destination_keywords": lambda rules: tuple(
            KeywordRule(
                role=_enum(Role, rule["role"], "chain.destination_keywords"),
                keywords=_strings(rule["keywords"]),
            )
            for rule in rules
        ),
        "default_destination_role": lambda v: _enum(Role, v, "chain.default_destination_role"),
    }
    return ChainPolicy(**_scalars(ChainPolicy, data, converters))


def parse_sla_policy(data: dict[str, Any]) -> SlaPolicy:
    converters = {
        "urgent_hours": int,
        "high_hours": int,
        "normal_hours": int,
        "low_hours": int,
        "approaching_fraction": float,
    }
    return SlaPolicy(**_scalars(SlaPolicy, data, converters))


def parse_priority_policy(data: dict[str, Any]) -> PriorityPolicy:
    converters = {
        "urgent_value_threshold": _decimal,
        "low_trust_threshold": float,
        "caution_trust_threshold": float,
    }
    return PriorityPolicy(**_scalars(PriorityPolicy, data, converters))


def parse_trust_policy(data: dict[str, Any]) -> TrustPolicy:
    """Parse the ``trust`` section.  ``deltas`` must cover every outcome."""
    converters = {
        "deltas": lambda m: tuple(
            (_enum(TrustOutcome, k, "trust.deltas"), int(v)) for k, v in m.items()
        ),
        "min_score": float,
        "max_score": float,
        "false_claim_keywords": _strings,
        "rejected_claim_keywords": _strings,
    }
    policy = TrustPolicy(**_scalars(TrustPolicy, data, converters))
    missing = set(TrustOutcome) - {outcome for outcome, _ in policy.deltas}
    if missing:
        raise ValueError(
            f"trust.deltas: no delta for {sorted(o.value for o in missing)}"
        )
    return policy


def parse_dispute_policy(data: dict[str, Any]) -> DisputePolicy:
    policy = DisputePolicy(
        **_scalars(
            DisputePolicy,
            data,
            {"panel_votes_required": int, "escalation_claimant_count": int},
        )
    )
    if policy.panel_votes_required < 1:
        raise ValueError("dispute.panel_votes_required must be at least 1")
    return policy


def parse_custody_policy(data: dict[str, Any]) -> CustodyPolicy:
    converters = {
        "enhanced_security_value": _decimal,
        "enhanced_clearance_levels": _strings,
        "secure_area_note_min_length": int,
        "evidence_case_prefix": str,
    }
    return CustodyPolicy(**_scalars(CustodyPolicy, data, converters))


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """
    Parse a whole configuration mapping.

    Raises:
        KeyError: if ``config_id`` or ``version`` is missing.
        ValueError: if a section has unknown keys or names.
    """
    policy = EnginePolicy(
        chain=parse_chain_policy(data.get("chain") or {}),
        sla=parse_sla_policy(data.get("sla") or {}),
        priority=parse_priority_policy(data.get("priority") or {}),
        trust=parse_trust_policy(data.get("trust") or {}),
        dispute=parse_dispute_policy(data.get("dispute") or {}),
        custody=parse_custody_policy(data.get("custody") or {}),
    )
    return EngineConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        policy=policy,
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path) -> EngineConfig:
    return parse_engine_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization.  Deterministic."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
