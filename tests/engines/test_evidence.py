"""Tests for police evidence verification."""

from datetime import timedelta

import pytest

from tests.factories import T0, make_claim, make_police
from workrequest_engines.evidence import (
    assign_officer,
    flag_as_stolen,
    flag_for_investigation,
    generate_case_number,
    mark_as_clear,
)
from workrequest_kernel.domain.payloads import EvidenceUrgency, VerificationStatus
from workrequest_kernel.domain.policy import CustodyPolicy
from workrequest_kernel.exceptions import WrongRequestTypeError

NOW = T0 + timedelta(hours=2)


class TestVerification:

    def test_stolen(self):
        payload = flag_as_stolen(make_police(), "SR-77", "Matches report", NOW).payload

        assert payload.verification_status == VerificationStatus.STOLEN
        assert payload.matches_stolen_report is True
        assert payload.stolen_report_id == "SR-77"
        assert payload.urgency == EvidenceUrgency.URGENT
        assert payload.is_verification_complete()
        assert payload.requires_immediate_action()

    def test_clear(self):
        payload = mark_as_clear(make_police(), "No match", NOW).payload

        assert payload.verification_status == VerificationStatus.CLEAR
        assert payload.is_verification_complete()
        assert not payload.requires_immediate_action()

    def test_flag_for_investigation(self):
        payload = flag_for_investigation(make_police(), "Serial scratched", NOW).payload

        assert payload.verification_status == VerificationStatus.FLAGGED
        assert payload.verification_notes == "FLAGGED FOR INVESTIGATION: Serial scratched"
        assert payload.urgency == EvidenceUrgency.HIGH
        assert not payload.is_verification_complete()

    def test_other_variants_rejected(self):
        with pytest.raises(WrongRequestTypeError):
            mark_as_clear(make_claim(), None, NOW)


class TestCaseNumbers:

    def test_case_number_format(self):
        request = make_police()
        numbered = generate_case_number(request, NOW)
        assert numbered.payload.case_number == f"BPD-EVD-2026-{request.short_id}"

    def test_idempotent(self):
        numbered = generate_case_number(make_police(), NOW)
        assert generate_case_number(numbered, NOW) is numbered

    def test_prefix_from_policy(self):
        numbered = generate_case_number(make_police(), NOW, CustodyPolicy(evidence_case_prefix="NUPD"))
        assert numbered.payload.case_number.startswith("NUPD-2026-")

    def test_assign_officer_keeps_department_when_omitted(self):
        request = assign_officer(make_police(), "officer-1", "Officer Kim", NOW, department="BPD")
        request = assign_officer(request, "officer-2", "Officer Lee", NOW)

        assert request.payload.police_officer_id == "officer-2"
        assert request.payload.police_department == "BPD"
