"""
Roles and enterprise types (``workrequest_kernel.domain.roles``).

Role identifiers are the units an approval chain is made of.  Enterprise
types describe which kind of institution holds an item or receives a
transfer; the chain resolver maps them to external approver roles.

Two transit roles exist: ``STATION_MANAGER`` is the custodian role used by
item claims and transit handoff chains, while ``MBTA_STATION_MANAGER`` and
``AIRPORT_SPECIALIST`` are the destination roles a cross-campus transfer
resolves to.  They are distinct identifiers and are not interchangeable.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Accountable roles that can hold an approval step."""

    CAMPUS_COORDINATOR = "CAMPUS_COORDINATOR"
    STUDENT = "STUDENT"
    STATION_MANAGER = "STATION_MANAGER"
    MBTA_STATION_MANAGER = "MBTA_STATION_MANAGER"
    AIRPORT_LOST_FOUND_SPECIALIST = "AIRPORT_LOST_FOUND_SPECIALIST"
    AIRPORT_SPECIALIST = "AIRPORT_SPECIALIST"
    POLICE_EVIDENCE_CUSTODIAN = "POLICE_EVIDENCE_CUSTODIAN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


class EnterpriseType(str, Enum):
    """Kind of institution participating in a request."""

    HIGHER_EDUCATION = "HIGHER_EDUCATION"
    PUBLIC_TRANSIT = "PUBLIC_TRANSIT"
    AIRPORT = "AIRPORT"
    LAW_ENFORCEMENT = "LAW_ENFORCEMENT"


# Requesters without an explicit affiliation are treated as university users.
DEFAULT_ENTERPRISE_TYPE = EnterpriseType.HIGHER_EDUCATION

ApprovalChain = tuple[Role, ...]
