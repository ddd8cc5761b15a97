# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Slot assignment - the only code path that changes who sits where.

Each operation runs in a single store transaction: rows are read, the
caller's assumptions about occupancy are re-validated against them, and the
new slot arrays are written with a version check. Any failure raises before
commit, so the transaction rolls back and no partial state is visible.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy.engine import Connection

from guild_parties.core.exceptions import (
    ConflictError,
    NotFoundError,
    PartyStoreError,
    ValidationError,
)
from guild_parties.core.logging import get_logger
from guild_parties.metrics.prometheus import SLOT_CONFLICTS, SLOT_OPERATIONS
from guild_parties.models.domain import EMPTY_SLOT, LEADER_SLOT, SLOT_COUNT, Party, PartyType
from guild_parties.repositories import MemberRepository, PartyRepository, Store

logger = get_logger(__name__)


def _check_slot(slot_index: int) -> None:
    if not 0 <= slot_index < SLOT_COUNT:
        raise ValidationError(
            f"Invalid slot index {slot_index}, expected 0-{SLOT_COUNT - 1}"
        )


def _check_member_id(member_id: int) -> None:
    if member_id <= EMPTY_SLOT:
        raise ValidationError(f"Invalid member id {member_id}")


def _context(details: dict) -> dict:
    return {
        key: details[src]
        for key, src in (("party_id", "partyId"), ("member_id", "memberId"))
        if src in details
    }


@contextmanager
def _tracked(operation: str) -> Iterator[None]:
    try:
        yield
    except PartyStoreError as exc:
        SLOT_OPERATIONS.labels(operation=operation, outcome=exc.code).inc()
        if isinstance(exc, ConflictError):
            SLOT_CONFLICTS.labels(operation=operation).inc()
            logger.warning("%s rejected: %s", operation, exc.message,
                           extra={"operation": operation, **_context(exc.details)})
        raise
    SLOT_OPERATIONS.labels(operation=operation, outcome="success").inc()


class AssignmentService:
    """Assign, remove, swap and clear slot occupancy."""

    def __init__(
        self,
        store: Store,
        party_repo: PartyRepository,
        member_repo: MemberRepository,
    ) -> None:
        self._store = store
        self._parties = party_repo
        self._members = member_repo

    # ── Commands ──

    def assign(
        self,
        member_id: int,
        party_id: str,
        party_type: PartyType,
        slot_index: Optional[int] = None,
        is_leader: bool = False,
    ) -> dict[str, Any]:
        """
        Place a member into a slot of a party.

        Without ``slot_index`` the leader slot is used for leaders, otherwise
        the first free regular slot. An occupied target slot is a conflict,
        never an overwrite. Any other slot the member holds among parties of
        the same type is vacated in the same transaction.
        """
        with _tracked("assign"):
            party_type = PartyType(party_type)
            _check_member_id(member_id)
            if slot_index is not None:
                _check_slot(slot_index)
                if is_leader and slot_index != LEADER_SLOT:
                    raise ValidationError("The leader must be placed in slot 0")
            now = datetime.now(timezone.utc).isoformat()

            with self._store.begin() as conn:
                party, version = self._get_party(conn, party_id, party_type)
                if self._members.get(conn, member_id) is None:
                    raise NotFoundError(f"Member {member_id} not found")

                target = self._pick_slot(party, member_id, slot_index, is_leader)
                occupant = party.member_ids[target]
                if occupant == member_id:
                    return self._assign_result(member_id, party, target, changed=False)
                if occupant != EMPTY_SLOT:
                    raise ConflictError(
                        f"Slot {target} of party '{party.name}' is already occupied "
                        f"by member {occupant}",
                        {"partyId": party.id, "slotIndex": target, "occupantId": occupant},
                    )

                vacated = self._vacate_elsewhere(conn, member_id, party, now)
                slots = [EMPTY_SLOT if m == member_id else m for m in party.member_ids]
                slots[target] = member_id
                self._write(conn, party, slots, version, now)

            logger.info(
                "Member assigned: member=%d, party=%s, slot=%d, vacated=%s",
                member_id, party.id, target, vacated,
                extra={"operation": "assign", "party_id": party.id, "member_id": member_id},
            )
            return {
                **self._assign_result(member_id, party, target, changed=True),
                "vacated": vacated,
            }

    def remove(self, member_id: int, party_id: str, party_type: PartyType) -> dict[str, Any]:
        """Vacate the member's slot in the party. Idempotent."""
        with _tracked("remove"):
            party_type = PartyType(party_type)
            now = datetime.now(timezone.utc).isoformat()
            with self._store.begin() as conn:
                party, version = self._get_party(conn, party_id, party_type)
                slot_index = party.slot_of(member_id) if member_id != EMPTY_SLOT else None
                if slot_index is not None:
                    slots = [EMPTY_SLOT if m == member_id else m for m in party.member_ids]
                    self._write(conn, party, slots, version, now)

            if slot_index is None:
                logger.info("Remove no-op: member=%d not in party=%s", member_id, party_id)
            else:
                logger.info("Member removed: member=%d, party=%s, slot=%d",
                            member_id, party_id, slot_index)
            return {
                "memberId": member_id,
                "partyId": party_id,
                "removed": slot_index is not None,
                "slotIndex": slot_index,
            }

    def swap(
        self,
        member1_id: int,
        party1_id: str,
        slot1: int,
        member2_id: int,
        party2_id: str,
        slot2: int,
        party_type: PartyType,
    ) -> dict[str, Any]:
        """
        Exchange two members' slots, possibly across parties.

        The asserted (party, slot) of each member is a precondition checked
        at commit time; if either no longer holds, nothing is written.
        """
        with _tracked("swap"):
            party_type = PartyType(party_type)
            _check_member_id(member1_id)
            _check_member_id(member2_id)
            _check_slot(slot1)
            _check_slot(slot2)
            if member1_id == member2_id:
                raise ValidationError("Cannot swap a member with itself")
            now = datetime.now(timezone.utc).isoformat()

            with self._store.begin() as conn:
                party1, version1 = self._get_party(conn, party1_id)
                party2, version2 = self._get_party(conn, party2_id)
                for party in (party1, party2):
                    if party.type != party_type:
                        raise ConflictError(
                            f"Party '{party.name}' is a {party.type.value} party, "
                            f"not {party_type.value}"
                        )
                if party1.member_ids[slot1] != member1_id:
                    raise self._position_conflict(member1_id, party1, slot1)
                if party2.member_ids[slot2] != member2_id:
                    raise self._position_conflict(member2_id, party2, slot2)

                if party1.id == party2.id:
                    slots = list(party1.member_ids)
                    slots[slot1], slots[slot2] = member2_id, member1_id
                    self._write(conn, party1, slots, version1, now)
                else:
                    slots1 = list(party1.member_ids)
                    slots2 = list(party2.member_ids)
                    slots1[slot1] = member2_id
                    slots2[slot2] = member1_id
                    self._write(conn, party1, slots1, version1, now)
                    self._write(conn, party2, slots2, version2, now)

            logger.info(
                "Members swapped: %d (%s[%d]) <-> %d (%s[%d])",
                member1_id, party1_id, slot1, member2_id, party2_id, slot2,
            )
            return {
                "member1": {"memberId": member1_id, "partyId": party2_id, "slotIndex": slot2},
                "member2": {"memberId": member2_id, "partyId": party1_id, "slotIndex": slot1},
            }

    def clear_all_parties(self, party_type: Optional[PartyType] = None) -> dict[str, Any]:
        """Empty every slot of every party, optionally of one type. Irreversible."""
        with _tracked("clear"):
            type_value = PartyType(party_type).value if party_type else None
            now = datetime.now(timezone.utc).isoformat()
            with self._store.begin() as conn:
                cleared = self._parties.clear_slots(conn, now, type_value)
            logger.warning("All parties cleared: type=%s, parties=%d", type_value or "all", cleared)
            return {"cleared": cleared, "partyType": type_value}

    # ── Internal ──

    def _get_party(self, conn: Connection, party_id: str,
                   party_type: Optional[PartyType] = None):
        row = self._parties.get(conn, party_id)
        if row is None:
            raise NotFoundError(f"Party {party_id} not found")
        if party_type is not None and row.party.type != party_type:
            raise ValidationError(
                f"Party '{row.party.name}' is a {row.party.type.value} party, "
                f"not {party_type.value}"
            )
        return row

    @staticmethod
    def _pick_slot(party: Party, member_id: int, slot_index: Optional[int],
                   is_leader: bool) -> int:
        if slot_index is not None:
            return slot_index
        if is_leader:
            return LEADER_SLOT
        current = party.slot_of(member_id)
        if current is not None and current != LEADER_SLOT:
            return current
        for index in range(1, SLOT_COUNT):
            if party.member_ids[index] == EMPTY_SLOT:
                return index
        raise ConflictError(f"Party '{party.name}' is full, cannot add more members")

    def _vacate_elsewhere(self, conn: Connection, member_id: int, target: Party,
                          now: str) -> list[dict[str, Any]]:
        vacated = []
        for other, version in self._parties.list(conn, target.type.value):
            if other.id == target.id or member_id not in other.member_ids:
                continue
            slot_index = other.slot_of(member_id)
            slots = [EMPTY_SLOT if m == member_id else m for m in other.member_ids]
            self._write(conn, other, slots, version, now)
            vacated.append({"partyId": other.id, "slotIndex": slot_index})
        return vacated

    def _write(self, conn: Connection, party: Party, slots: list[int], version: int,
               now: str) -> None:
        if not self._parties.update_slots(conn, party.id, slots, version, now):
            raise ConflictError(
                f"Party '{party.name}' was modified concurrently",
                {"partyId": party.id},
            )

    @staticmethod
    def _position_conflict(member_id: int, party: Party, slot_index: int) -> ConflictError:
        return ConflictError(
            f"Member {member_id} is no longer in slot {slot_index} of party '{party.name}'",
            {
                "memberId": member_id,
                "partyId": party.id,
                "slotIndex": slot_index,
                "actualId": party.member_ids[slot_index],
            },
        )

    @staticmethod
    def _assign_result(member_id: int, party: Party, slot_index: int,
                       changed: bool) -> dict[str, Any]:
        return {
            "memberId": member_id,
            "partyId": party.id,
            "slotIndex": slot_index,
            "isLeader": slot_index == LEADER_SLOT,
            "changed": changed,
        }
