# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Guild Parties Service
Covers roster, groups, parties, slot operations and their invariants.
Run:  pytest test_main.py -v   (coverage flags come from pyproject.toml)
"""

import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEFAULT_PARTIES"] = "false"

import pytest
from fastapi.testclient import TestClient

from main import app
from guild_parties.core.config import settings
from guild_parties.core.dependencies import (
    get_assignment_service,
    get_group_party_service,
    get_store,
)
from guild_parties.core.exceptions import ConflictError
from guild_parties.core.logging import JSONFormatter, RequestIDFilter, request_id_ctx
from guild_parties.models.domain import PartyType
from guild_parties.repositories import GroupRepository, MemberRepository, PartyRepository

client = TestClient(app)

API = "/api/v1"


# ============================================
# Fixtures & helpers
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Empty every table before each test."""
    store = get_store()
    store.init_schema()
    with store.begin() as conn:
        PartyRepository().clear(conn)
        GroupRepository().clear(conn)
        MemberRepository().clear(conn)
    yield


def make_member(name="Aria", class_name="Warrior"):
    response = client.post(f"{API}/members", json={"name": name, "class": class_name})
    assert response.status_code == 201
    return response.json()["data"]


def make_group(name="KVM Group 1", party_type="kvm"):
    response = client.post(f"{API}/groups", json={"name": name, "type": party_type})
    assert response.status_code == 201
    return response.json()["data"]


def make_party(name="Alpha", party_type="kvm", group_id=None, member_ids=None):
    body = {"name": name, "type": party_type}
    if group_id:
        body["groupId"] = group_id
    if member_ids is not None:
        body["memberIds"] = member_ids
    response = client.post(f"{API}/parties", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def assign(member_id, party_id, party_type="kvm", **extra):
    body = {"memberId": member_id, "partyId": party_id, "partyType": party_type, **extra}
    return client.post(f"{API}/assign-member", json=body)


def slots(party_id):
    return client.get(f"{API}/parties/{party_id}").json()["data"]["memberIds"]


def unassigned_ids(party_type="kvm"):
    data = client.get(f"{API}/unassigned-members", params={"type": party_type}).json()["data"]
    return [m["id"] for m in data]


def assert_unique(party_type="kvm"):
    parties = client.get(f"{API}/parties", params={"type": party_type}).json()["data"]
    seen = [m for p in parties for m in p["memberIds"] if m != 0]
    assert len(seen) == len(set(seen))
    assert all(len(p["memberIds"]) == 5 for p in parties)


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok_status(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION
        assert "timestamp" in data

    def test_readiness(self):
        make_member()
        response = client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["database"] == "connected"
        assert data["members_count"] == 1


class TestRequestID:
    def test_response_has_request_id_header(self):
        response = client.get("/health")
        assert "X-Request-ID" in response.headers

    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestMetrics:
    def test_metrics_returns_200(self):
        response = client.get("/metrics")
        assert response.status_code == 200

    def test_metrics_contains_slot_counters(self):
        party = make_party()
        member = make_member()
        assign(member["id"], party["id"], slotIndex=1)
        body = client.get("/metrics").text
        assert "guild_parties_slot_operations_total" in body
        assert "guild_parties_requests_total" in body
        assert "guild_parties_parties" in body


# ============================================
# Envelope & request validation
# ============================================
class TestEnvelope:
    def test_success_envelope(self):
        response = client.get(f"{API}/members")
        assert response.json() == {"success": True, "data": []}

    def test_not_found_envelope(self):
        response = client.get(f"{API}/parties/missing")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert "missing" in body["error"]
        assert body["code"] == "not_found"

    def test_unknown_route_envelope(self):
        response = client.get(f"{API}/nowhere")
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_extra_keys_rejected(self):
        response = client.post(f"{API}/members", json={"name": "A", "level": 3})
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "invalid_request"

    def test_invalid_party_type_rejected(self):
        response = client.get(f"{API}/parties", params={"type": "raid"})
        assert response.status_code == 422


# ============================================
# Roster
# ============================================
class TestMembers:
    def test_create_member(self):
        data = make_member("Aria", "Mage")
        assert data["id"] > 0
        assert data["name"] == "Aria"
        assert data["class"] == "Mage"
        assert "createdAt" in data

    def test_list_members_in_creation_order(self):
        make_member("A")
        make_member("B")
        make_member("C")
        names = [m["name"] for m in client.get(f"{API}/members").json()["data"]]
        assert names == ["A", "B", "C"]

    def test_get_member_not_found(self):
        assert client.get(f"{API}/members/999999999").status_code == 404

    def test_update_member(self):
        member = make_member("Aria", "Mage")
        response = client.put(f"{API}/members/{member['id']}", json={"class": "Priest"})
        assert response.status_code == 200
        assert response.json()["data"]["class"] == "Priest"
        assert response.json()["data"]["name"] == "Aria"

    def test_list_classes(self):
        make_member("A", "Mage")
        make_member("B", "Warrior")
        make_member("C", "Mage")
        response = client.get(f"{API}/members/classes")
        assert response.json()["data"] == ["Mage", "Warrior"]

    def test_new_member_starts_unassigned(self):
        make_party()
        member = make_member()
        assert member["id"] in unassigned_ids("kvm")
        assert member["id"] in unassigned_ids("gvg")

    def test_delete_member_vacates_slots(self):
        kvm = make_party("K", "kvm")
        gvg = make_party("G", "gvg")
        member = make_member()
        assign(member["id"], kvm["id"], "kvm", slotIndex=2)
        assign(member["id"], gvg["id"], "gvg", isLeader=True)

        response = client.delete(f"{API}/members/{member['id']}")
        assert response.status_code == 200
        assert len(response.json()["data"]["vacated"]) == 2
        assert slots(kvm["id"]) == [0, 0, 0, 0, 0]
        assert slots(gvg["id"]) == [0, 0, 0, 0, 0]

    def test_deleted_member_id_is_never_reused(self):
        make_member("A")
        last = make_member("B")
        client.delete(f"{API}/members/{last['id']}")
        newcomer = make_member("C")
        assert newcomer["id"] > last["id"]
        assert client.get(f"{API}/members/{last['id']}").status_code == 404

    def test_delete_member_not_found(self):
        assert client.delete(f"{API}/members/999999999").status_code == 404


# ============================================
# Groups
# ============================================
class TestGroups:
    def test_create_and_get_group(self):
        group = make_group("Siege", "gvg")
        assert group["type"] == "gvg"
        assert group["partyIds"] == []
        response = client.get(f"{API}/groups/{group['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["totalMembers"] == 0

    def test_group_lists_its_parties_in_order(self):
        group = make_group()
        first = make_party("P1", group_id=group["id"])
        second = make_party("P2", group_id=group["id"])
        data = client.get(f"{API}/groups/{group['id']}").json()["data"]
        assert data["partyIds"] == [first["id"], second["id"]]
        parties = client.get(f"{API}/groups/{group['id']}/parties").json()["data"]
        assert [p["name"] for p in parties] == ["P1", "P2"]

    def test_total_members_counts_occupied_slots(self):
        group = make_group()
        party = make_party(group_id=group["id"])
        for slot in (0, 3):
            assign(make_member()["id"], party["id"], slotIndex=slot)
        data = client.get(f"{API}/groups/{group['id']}").json()["data"]
        assert data["totalMembers"] == 2

    def test_list_groups_by_type(self):
        make_group("K", "kvm")
        make_group("G", "gvg")
        data = client.get(f"{API}/groups", params={"type": "gvg"}).json()["data"]
        assert [g["name"] for g in data] == ["G"]

    def test_update_group(self):
        group = make_group()
        response = client.put(f"{API}/groups/{group['id']}",
                              json={"name": "Renamed", "description": "front line"})
        assert response.json()["data"]["name"] == "Renamed"
        assert response.json()["data"]["description"] == "front line"

    def test_party_type_must_match_group(self):
        group = make_group(party_type="kvm")
        response = client.post(f"{API}/parties",
                               json={"name": "X", "type": "gvg", "groupId": group["id"]})
        assert response.status_code == 400

    def test_group_party_limit(self):
        group = make_group()
        for i in range(settings.MAX_PARTIES_PER_GROUP):
            make_party(f"P{i}", group_id=group["id"])
        response = client.post(f"{API}/parties",
                               json={"name": "overflow", "type": "kvm", "groupId": group["id"]})
        assert response.status_code == 400

    def test_delete_group_cascades(self):
        group = make_group()
        party = make_party(group_id=group["id"])
        response = client.delete(f"{API}/groups/{group['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["partiesDeleted"] == 1
        assert client.get(f"{API}/parties/{party['id']}").status_code == 404

    def test_unknown_group(self):
        assert client.get(f"{API}/groups/nope").status_code == 404
        response = client.post(f"{API}/parties",
                               json={"name": "X", "type": "kvm", "groupId": "nope"})
        assert response.status_code == 404


# ============================================
# Parties
# ============================================
class TestParties:
    def test_create_party_starts_empty(self):
        party = make_party()
        assert party["memberIds"] == [0, 0, 0, 0, 0]
        assert party["members"] == []
        assert party["leader"] is None

    def test_create_party_with_initial_slots(self):
        a = make_member("A")
        b = make_member("B")
        party = make_party(member_ids=[a["id"], 0, b["id"], 0, 0])
        assert party["leader"]["id"] == a["id"]
        assert [m["name"] for m in party["members"]] == ["A", "B"]

    def test_initial_slots_must_be_five(self):
        response = client.post(f"{API}/parties",
                               json={"name": "X", "type": "kvm", "memberIds": [0, 0, 0]})
        assert response.status_code == 422

    def test_initial_slots_reject_assigned_member(self):
        member = make_member()
        make_party("A", member_ids=[member["id"], 0, 0, 0, 0])
        response = client.post(f"{API}/parties", json={
            "name": "B", "type": "kvm", "memberIds": [0, member["id"], 0, 0, 0],
        })
        assert response.status_code == 409

    def test_initial_slots_allow_other_type(self):
        member = make_member()
        make_party("A", "kvm", member_ids=[member["id"], 0, 0, 0, 0])
        make_party("B", "gvg", member_ids=[member["id"], 0, 0, 0, 0])

    def test_initial_slots_unknown_member(self):
        response = client.post(f"{API}/parties",
                               json={"name": "X", "type": "kvm", "memberIds": [42, 0, 0, 0, 0]})
        assert response.status_code == 404

    def test_list_parties_by_type(self):
        make_party("K1", "kvm")
        make_party("G1", "gvg")
        make_party("K2", "kvm")
        names = [p["name"] for p in client.get(f"{API}/parties", params={"type": "kvm"}).json()["data"]]
        assert names == ["K1", "K2"]
        assert len(client.get(f"{API}/parties").json()["data"]) == 3

    def test_rename_party_keeps_slots(self):
        member = make_member()
        party = make_party(member_ids=[member["id"], 0, 0, 0, 0])
        response = client.put(f"{API}/parties/{party['id']}", json={"name": "Omega"})
        assert response.json()["data"]["name"] == "Omega"
        assert slots(party["id"]) == [member["id"], 0, 0, 0, 0]

    def test_party_update_cannot_touch_slots(self):
        party = make_party()
        response = client.put(f"{API}/parties/{party['id']}", json={"memberIds": [1, 0, 0, 0, 0]})
        assert response.status_code == 422

    def test_delete_party_releases_members(self):
        group = make_group()
        party = make_party(group_id=group["id"])
        member = make_member()
        assign(member["id"], party["id"], slotIndex=1)
        assert client.delete(f"{API}/parties/{party['id']}").status_code == 200
        assert member["id"] in unassigned_ids()
        assert client.get(f"{API}/groups/{group['id']}").json()["data"]["partyIds"] == []


class TestSeed:
    def test_seed_defaults_creates_parties_per_type(self):
        created = get_group_party_service().seed_defaults()
        per_type = settings.DEFAULT_PARTIES_PER_TYPE
        assert created == 2 * per_type
        kvm = client.get(f"{API}/parties", params={"type": "kvm"}).json()["data"]
        assert [p["name"] for p in kvm][:2] == ["KVM Party 1", "KVM Party 2"]
        groups = client.get(f"{API}/groups", params={"type": "kvm"}).json()["data"]
        assert all(len(g["partyIds"]) <= settings.MAX_PARTIES_PER_GROUP for g in groups)
        assert sum(len(g["partyIds"]) for g in groups) == per_type

    def test_seed_skipped_when_data_present(self):
        make_party()
        assert get_group_party_service().seed_defaults() == 0


# ============================================
# Assign
# ============================================
class TestAssign:
    def test_assign_leader_scenario_a(self):
        party = make_party("Alpha")
        member_id = [make_member()["id"] for _ in range(7)][-1]
        response = assign(member_id, party["id"], isLeader=True)
        assert response.status_code == 200
        assert slots(party["id"]) == [member_id, 0, 0, 0, 0]
        assert member_id not in unassigned_ids()

    def test_assign_to_explicit_slot(self):
        party = make_party()
        member = make_member()
        data = assign(member["id"], party["id"], slotIndex=3).json()["data"]
        assert data["slotIndex"] == 3
        assert data["isLeader"] is False
        assert slots(party["id"]) == [0, 0, 0, member["id"], 0]

    def test_assign_picks_first_free_regular_slot(self):
        party = make_party()
        first = make_member()
        second = make_member()
        assign(first["id"], party["id"])
        assign(second["id"], party["id"])
        assert slots(party["id"]) == [0, first["id"], second["id"], 0, 0]

    def test_assign_occupied_slot_is_conflict(self):
        party = make_party()
        first = make_member()
        second = make_member()
        assign(first["id"], party["id"], slotIndex=2)
        response = assign(second["id"], party["id"], slotIndex=2)
        assert response.status_code == 409
        assert response.json()["success"] is False
        assert slots(party["id"]) == [0, 0, first["id"], 0, 0]

    def test_assign_full_party_is_conflict(self):
        party = make_party()
        for slot in range(1, 5):
            assign(make_member()["id"], party["id"], slotIndex=slot)
        response = assign(make_member()["id"], party["id"])
        assert response.status_code == 409

    def test_assign_same_slot_is_unchanged(self):
        party = make_party()
        member = make_member()
        assign(member["id"], party["id"], slotIndex=1)
        response = assign(member["id"], party["id"], slotIndex=1)
        assert response.status_code == 200
        assert response.json()["data"]["changed"] is False

    def test_assign_within_party_moves_member(self):
        party = make_party()
        member = make_member()
        assign(member["id"], party["id"], slotIndex=1)
        assign(member["id"], party["id"], slotIndex=4)
        assert slots(party["id"]) == [0, 0, 0, 0, member["id"]]

    def test_assign_vacates_other_party_of_same_type(self):
        alpha = make_party("Alpha")
        beta = make_party("Beta")
        member = make_member()
        assign(member["id"], alpha["id"], slotIndex=1)
        data = assign(member["id"], beta["id"], slotIndex=2).json()["data"]
        assert data["vacated"] == [{"partyId": alpha["id"], "slotIndex": 1}]
        assert slots(alpha["id"]) == [0, 0, 0, 0, 0]
        assert slots(beta["id"]) == [0, 0, member["id"], 0, 0]
        assert_unique()

    def test_assign_keeps_other_type(self):
        kvm = make_party("K", "kvm")
        gvg = make_party("G", "gvg")
        member = make_member()
        assign(member["id"], kvm["id"], "kvm", slotIndex=1)
        assign(member["id"], gvg["id"], "gvg", slotIndex=1)
        assert slots(kvm["id"])[1] == member["id"]
        assert slots(gvg["id"])[1] == member["id"]

    @pytest.mark.parametrize("slot_index", [-1, 5, 99])
    def test_assign_invalid_slot(self, slot_index):
        party = make_party()
        member = make_member()
        response = assign(member["id"], party["id"], slotIndex=slot_index)
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_assign_leader_flag_requires_slot_zero(self):
        party = make_party()
        member = make_member()
        response = assign(member["id"], party["id"], slotIndex=2, isLeader=True)
        assert response.status_code == 400

    def test_assign_unknown_party_or_member(self):
        party = make_party()
        member = make_member()
        assert assign(member["id"], "missing").status_code == 404
        assert assign(member["id"] + 1000, party["id"]).status_code == 404

    def test_assign_wrong_party_type(self):
        party = make_party(party_type="gvg")
        member = make_member()
        assert assign(member["id"], party["id"], "kvm").status_code == 400


# ============================================
# Remove
# ============================================
class TestRemove:
    def remove(self, member_id, party_id, party_type="kvm"):
        return client.post(f"{API}/remove-member", json={
            "memberId": member_id, "partyId": party_id, "partyType": party_type,
        })

    def test_remove_member(self):
        party = make_party()
        member = make_member()
        assign(member["id"], party["id"], slotIndex=2)
        response = self.remove(member["id"], party["id"])
        assert response.status_code == 200
        assert response.json()["data"]["removed"] is True
        assert response.json()["data"]["slotIndex"] == 2
        assert slots(party["id"]) == [0, 0, 0, 0, 0]
        assert member["id"] in unassigned_ids()

    def test_remove_is_idempotent(self):
        party = make_party()
        member = make_member()
        other = make_member()
        assign(member["id"], party["id"], slotIndex=0)
        assign(other["id"], party["id"], slotIndex=1)
        self.remove(member["id"], party["id"])
        after_once = slots(party["id"])
        response = self.remove(member["id"], party["id"])
        assert response.status_code == 200
        assert response.json()["data"]["removed"] is False
        assert slots(party["id"]) == after_once == [0, other["id"], 0, 0, 0]

    def test_remove_unknown_member_is_noop(self):
        party = make_party()
        assert self.remove(12345, party["id"]).status_code == 200

    def test_remove_unknown_party(self):
        assert self.remove(1, "missing").status_code == 404


# ============================================
# Swap
# ============================================
class TestSwap:
    def swap(self, m1, p1, s1, m2, p2, s2, party_type="kvm"):
        return client.post(f"{API}/swap-members", json={
            "member1Id": m1, "member1PartyId": p1, "member1SlotIndex": s1,
            "member2Id": m2, "member2PartyId": p2, "member2SlotIndex": s2,
            "partyType": party_type,
        })

    def setup_pair(self):
        alpha = make_party("Alpha")
        beta = make_party("Beta")
        x = make_member("X")
        y = make_member("Y")
        assign(x["id"], alpha["id"], isLeader=True)
        assign(y["id"], beta["id"], slotIndex=2)
        return alpha, beta, x, y

    def test_swap_across_parties_scenario_b(self):
        alpha, beta, x, y = self.setup_pair()
        response = self.swap(x["id"], alpha["id"], 0, y["id"], beta["id"], 2)
        assert response.status_code == 200
        assert slots(alpha["id"]) == [y["id"], 0, 0, 0, 0]
        assert slots(beta["id"]) == [0, 0, x["id"], 0, 0]
        data = response.json()["data"]
        assert data["member1"] == {"memberId": x["id"], "partyId": beta["id"], "slotIndex": 2}
        assert_unique()

    def test_swap_within_party(self):
        party = make_party()
        x = make_member()
        y = make_member()
        assign(x["id"], party["id"], slotIndex=0)
        assign(y["id"], party["id"], slotIndex=4)
        assert self.swap(x["id"], party["id"], 0, y["id"], party["id"], 4).status_code == 200
        assert slots(party["id"]) == [y["id"], 0, 0, 0, x["id"]]

    def test_swap_stale_position_changes_nothing(self):
        alpha, beta, x, y = self.setup_pair()
        response = self.swap(x["id"], alpha["id"], 0, y["id"], beta["id"], 3)
        assert response.status_code == 409
        assert slots(alpha["id"]) == [x["id"], 0, 0, 0, 0]
        assert slots(beta["id"]) == [0, 0, y["id"], 0, 0]

    def test_swap_after_member_moved_elsewhere(self):
        alpha, beta, x, y = self.setup_pair()
        assign(y["id"], alpha["id"], slotIndex=1)
        response = self.swap(x["id"], alpha["id"], 0, y["id"], beta["id"], 2)
        assert response.status_code == 409
        assert slots(alpha["id"]) == [x["id"], y["id"], 0, 0, 0]

    def test_swap_type_mismatch(self):
        kvm = make_party("K", "kvm")
        gvg = make_party("G", "gvg")
        x = make_member()
        y = make_member()
        assign(x["id"], kvm["id"], "kvm", slotIndex=1)
        assign(y["id"], gvg["id"], "gvg", slotIndex=1)
        response = self.swap(x["id"], kvm["id"], 1, y["id"], gvg["id"], 1)
        assert response.status_code == 409

    def test_swap_with_itself(self):
        party = make_party()
        x = make_member()
        assign(x["id"], party["id"], slotIndex=1)
        assert self.swap(x["id"], party["id"], 1, x["id"], party["id"], 1).status_code == 400

    def test_swap_invalid_slot(self):
        alpha, beta, x, y = self.setup_pair()
        assert self.swap(x["id"], alpha["id"], 7, y["id"], beta["id"], 2).status_code == 400

    def test_swap_unknown_party(self):
        alpha, beta, x, y = self.setup_pair()
        assert self.swap(x["id"], alpha["id"], 0, y["id"], "missing", 2).status_code == 404

    def test_swap_rolls_back_when_second_write_loses_race(self):
        alpha, beta, x, y = self.setup_pair()
        original = PartyRepository.update_slots
        calls = []

        def lose_second_write(repo, conn, party_id, member_ids, expected_version, updated_at):
            calls.append(party_id)
            if len(calls) == 2:
                return False
            return original(repo, conn, party_id, member_ids, expected_version, updated_at)

        with patch.object(PartyRepository, "update_slots", autospec=True,
                          side_effect=lose_second_write):
            response = self.swap(x["id"], alpha["id"], 0, y["id"], beta["id"], 2)

        assert response.status_code == 409
        assert response.json()["code"] == "conflict"
        assert calls == [alpha["id"], beta["id"]]
        assert slots(alpha["id"]) == [x["id"], 0, 0, 0, 0]
        assert slots(beta["id"]) == [0, 0, y["id"], 0, 0]
        assert_unique()


class TestConcurrency:
    def test_concurrent_assigns_to_one_slot_seat_exactly_one(self):
        party = make_party("Alpha")
        member_ids = [make_member(f"M{i}")["id"] for i in range(8)]
        service = get_assignment_service()

        def attempt(member_id):
            try:
                service.assign(member_id, party["id"], PartyType.KVM, slot_index=2)
                return True
            except ConflictError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, member_ids))

        assert results.count(True) == 1
        winner = member_ids[results.index(True)]
        assert slots(party["id"]) == [0, 0, winner, 0, 0]
        assert set(unassigned_ids()) == set(member_ids) - {winner}
        assert_unique()

    def test_stale_version_write_is_rejected(self):
        party = make_party("Alpha")
        member = make_member()
        store = get_store()
        repo = PartyRepository()
        with store.begin() as conn:
            _, version = repo.get(conn, party["id"])
            assert repo.update_slots(conn, party["id"], [0, member["id"], 0, 0, 0],
                                     version, "2026-01-01T00:00:00+00:00")
        with store.begin() as conn:
            assert not repo.update_slots(conn, party["id"], [0, 0, member["id"], 0, 0],
                                         version, "2026-01-01T00:00:00+00:00")
        assert slots(party["id"]) == [0, member["id"], 0, 0, 0]


# ============================================
# Clear & invariants
# ============================================
class TestClearAll:
    def test_clear_all_parties_of_one_type(self):
        kvm = make_party("K", "kvm")
        gvg = make_party("G", "gvg")
        member = make_member()
        assign(member["id"], kvm["id"], "kvm", slotIndex=1)
        assign(member["id"], gvg["id"], "gvg", slotIndex=1)
        response = client.post(f"{API}/clear-all-parties", json={"partyType": "kvm"})
        assert response.status_code == 200
        assert response.json()["data"] == {"cleared": 1, "partyType": "kvm"}
        assert slots(kvm["id"]) == [0, 0, 0, 0, 0]
        assert slots(gvg["id"])[1] == member["id"]

    def test_clear_all_parties_every_type(self):
        kvm = make_party("K", "kvm")
        gvg = make_party("G", "gvg")
        member = make_member()
        assign(member["id"], kvm["id"], "kvm", slotIndex=1)
        assign(member["id"], gvg["id"], "gvg", slotIndex=1)
        response = client.post(f"{API}/clear-all-parties", json={})
        assert response.json()["data"]["cleared"] == 2
        assert slots(gvg["id"]) == [0, 0, 0, 0, 0]


class TestInvariants:
    def test_pool_complement_after_mixed_operations(self):
        alpha = make_party("Alpha")
        beta = make_party("Beta")
        members = [make_member(f"M{i}")["id"] for i in range(8)]
        for slot, member_id in enumerate(members[:4]):
            assign(member_id, alpha["id"], slotIndex=slot)
        assign(members[4], beta["id"], slotIndex=0)
        assign(members[1], beta["id"], slotIndex=3)
        client.post(f"{API}/remove-member",
                    json={"memberId": members[2], "partyId": alpha["id"], "partyType": "kvm"})

        assert_unique()
        pool = set(unassigned_ids())
        parties = client.get(f"{API}/parties", params={"type": "kvm"}).json()["data"]
        assigned = {m for p in parties for m in p["memberIds"] if m != 0}
        assert pool.isdisjoint(assigned)
        assert pool | assigned == set(members)

    def test_unassigned_pool_preserves_roster_order_and_filters_class(self):
        party = make_party()
        a = make_member("A", "Mage")
        b = make_member("B", "Warrior")
        c = make_member("C", "Mage")
        assign(b["id"], party["id"], slotIndex=1)
        assert unassigned_ids() == [a["id"], c["id"]]
        response = client.get(f"{API}/unassigned-members",
                              params={"type": "kvm", "class": "Warrior"})
        assert response.json()["data"] == []
        response = client.get(f"{API}/unassigned-members",
                              params={"type": "kvm", "class": "Mage"})
        assert [m["name"] for m in response.json()["data"]] == ["A", "C"]


class TestLogging:
    def make_record(self, **extra):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.__dict__.update(extra)
        return record

    def test_json_line_carries_request_id(self):
        record = self.make_record()
        token = request_id_ctx.set("req-7")
        try:
            RequestIDFilter().filter(record)
        finally:
            request_id_ctx.reset(token)
        line = json.loads(JSONFormatter().format(record))
        assert line["message"] == "hello world"
        assert line["request_id"] == "req-7"
        assert line["service"] == settings.SERVICE_NAME

    def test_json_line_includes_slot_context(self):
        record = self.make_record(operation="swap", party_id="p-1")
        line = json.loads(JSONFormatter().format(record))
        assert line["operation"] == "swap"
        assert line["party_id"] == "p-1"
        assert "member_id" not in line
