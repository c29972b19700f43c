"""
Tests for request persistence on SQLite.

Tests cover:
- Document codec: every variant survives encode/decode, version check
- WorkRequestStore: save, load, duplicate save, compare-and-swap
- Tamper detection through the stored document hash
- WorkRequestSelector queries
"""

from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy import update

from tests.factories import (
    T0,
    make_airport,
    make_claim,
    make_cross_campus,
    make_dispute,
    make_emergency,
    make_police,
    make_transit,
)
from workrequest_engines.chain_resolver import resolve_chain
from workrequest_engines.dispute import record_panel_vote
from workrequest_engines.lifecycle import add_note, advance, assign_approver, open_request
from workrequest_kernel.documents import (
    UnsupportedDocumentVersionError,
    request_from_document,
    request_to_document,
)
from workrequest_kernel.domain.payloads import RequestType
from workrequest_kernel.domain.roles import Role
from workrequest_kernel.domain.work_request import RequestStatus
from workrequest_kernel.exceptions import (
    DuplicateRequestError,
    InternalConsistencyError,
    RequestNotFoundError,
)
from workrequest_kernel.models.work_request import WorkRequestModel
from workrequest_kernel.selectors.work_request_selector import WorkRequestSelector


def opened(request, at=T0):
    return open_request(request, resolve_chain(request), at)


# =========================================================================
# Document codec
# =========================================================================


class TestDocuments:

    @pytest.mark.parametrize(
        "factory",
        [make_claim, make_cross_campus, make_transit, make_airport, make_emergency, make_police, make_dispute],
    )
    def test_every_variant_decodes_to_an_equal_request(self, factory):
        request = opened(factory())
        assert request_from_document(request_to_document(request)) == request

    def test_nested_dispute_state_survives(self):
        dispute = record_panel_vote(opened(make_dispute()), "p1", "alice", "receipt", T0)
        decoded = request_from_document(request_to_document(dispute))

        assert decoded.payload.panel_member("p1").voted_for_claimant_id == "alice"
        assert decoded.payload.panel_member("p1").voted_at == T0
        assert decoded.history == dispute.history

    def test_document_carries_tag_and_schema_version(self):
        doc = request_to_document(make_claim(value="12.50"))
        assert doc["request_type"] == "ITEM_CLAIM"
        assert doc["schema_version"] == 1
        assert doc["payload"]["item_value"] == "12.50"

    def test_unknown_schema_version(self):
        doc = request_to_document(make_claim())
        doc["schema_version"] = 99
        with pytest.raises(UnsupportedDocumentVersionError):
            request_from_document(doc)

    def test_unknown_request_type(self):
        doc = request_to_document(make_claim())
        doc["request_type"] = "LOST_PET"
        with pytest.raises(InternalConsistencyError):
            request_from_document(doc)


# =========================================================================
# Store
# =========================================================================


class TestWorkRequestStore:

    def test_save_and_load(self, store):
        request = opened(make_claim())
        store.save(request)
        assert store.load(request.request_id) == request

    def test_duplicate_save(self, store):
        request = opened(make_claim())
        store.save(request)
        with pytest.raises(DuplicateRequestError):
            store.save(request)

    def test_load_unknown(self, store):
        with pytest.raises(RequestNotFoundError):
            store.load(make_claim().request_id)

    def test_swap_at_expected_version(self, store):
        request = opened(make_claim())
        store.save(request)
        noted = add_note(request, "called owner", T0)

        assert store.compare_and_swap(request.request_id, request.version, noted) is True
        assert store.load(request.request_id).notes == ("called owner",)

    def test_swap_with_stale_version_loses(self, store):
        request = opened(make_claim())
        store.save(request)
        first = add_note(request, "first", T0)
        second = add_note(request, "second", T0)

        assert store.compare_and_swap(request.request_id, request.version, first) is True
        assert store.compare_and_swap(request.request_id, request.version, second) is False
        assert store.load(request.request_id).notes == ("first",)

    def test_multi_revision_swap(self, store):
        request = opened(make_claim())
        store.save(request)
        updated = add_note(
            advance(request, "coord-a", "A", Role.CAMPUS_COORDINATOR, resolve_chain(request), T0),
            "approved at the desk",
            T0,
        )

        assert updated.version == request.version + 2
        assert store.compare_and_swap(request.request_id, request.version, updated) is True

    def test_swap_must_advance_version(self, store):
        request = opened(make_claim())
        store.save(request)
        with pytest.raises(InternalConsistencyError):
            store.compare_and_swap(request.request_id, request.version, request)

    def test_swap_of_other_request_is_a_fault(self, store):
        request = opened(make_claim())
        store.save(request)
        other = add_note(opened(make_claim()), "x", T0)
        with pytest.raises(InternalConsistencyError):
            store.compare_and_swap(request.request_id, request.version, other)

    def test_tampered_document_is_detected(self, store, session):
        request = opened(make_claim())
        store.save(request)
        doc = request_to_document(replace(request, requester_id="mallory"))
        session.execute(
            update(WorkRequestModel)
            .where(WorkRequestModel.request_id == request.request_id)
            .values(document=doc)
        )

        with pytest.raises(InternalConsistencyError):
            store.load(request.request_id)


# =========================================================================
# Selector
# =========================================================================


class TestWorkRequestSelector:

    def _seed(self, store):
        claim = assign_approver(opened(make_claim(), T0), "coord-a", T0)
        transfer = opened(make_transit(), T0 + timedelta(hours=1))
        dispute = opened(make_dispute(), T0 + timedelta(hours=2))
        other_claim = opened(make_claim(requester_id="student-2", item_id="item-101"), T0 + timedelta(hours=3))
        for request in (dispute, other_claim, transfer, claim):
            store.save(request)
        return claim, transfer, dispute, other_claim

    def test_oldest_first(self, store, session):
        claim, transfer, dispute, other_claim = self._seed(store)
        selector = WorkRequestSelector(session)

        assert [r.request_id for r in selector.find_all()] == [
            claim.request_id,
            transfer.request_id,
            dispute.request_id,
            other_claim.request_id,
        ]

    def test_filters(self, store, session):
        claim, transfer, dispute, other_claim = self._seed(store)
        selector = WorkRequestSelector(session)

        assert selector.find_by_type(RequestType.MULTI_ENTERPRISE_DISPUTE) == [dispute]
        assert selector.find_by_requester("student-2") == [other_claim]
        assert selector.find_by_item("item-100", RequestType.ITEM_CLAIM) == [claim]
        assert selector.find_assigned_to("coord-a") == [claim]
        assert selector.exists(transfer.request_id) is True

    def test_count_by_status_is_zero_filled(self, store, session):
        self._seed(store)
        counts = WorkRequestSelector(session).count_by_status()

        assert counts[RequestStatus.PENDING] == 4
        assert counts[RequestStatus.COMPLETED] == 0
        assert set(counts) == set(RequestStatus)
