# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Group and party management - CRUD, read projections and seeding.

Slot contents are only changed here when a party is created with initial
slots or deleted; every other slot change goes through AssignmentService.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.engine import Connection

from guild_parties.core.config import settings
from guild_parties.core.exceptions import ConflictError, NotFoundError, ValidationError
from guild_parties.core.logging import get_logger
from guild_parties.metrics.prometheus import PARTIES_TOTAL
from guild_parties.models.domain import (
    EMPTY_SLOT,
    LEADER_SLOT,
    SLOT_COUNT,
    Group,
    GroupWithParties,
    Member,
    Party,
    PartyType,
    PartyWithMembers,
)
from guild_parties.repositories import GroupRepository, MemberRepository, PartyRepository, Store
from guild_parties.services.pool import assigned_member_ids, compute_unassigned, filter_by_class

logger = get_logger(__name__)


def project_party(party: Party, roster: dict[int, Member]) -> PartyWithMembers:
    """Resolve slot ids against the roster; unknown ids are skipped."""
    members = [roster[m] for m in party.member_ids if m != EMPTY_SLOT and m in roster]
    leader_id = party.member_ids[LEADER_SLOT]
    return PartyWithMembers(
        **party.model_dump(),
        members=members,
        leader=roster.get(leader_id) if leader_id != EMPTY_SLOT else None,
    )


class GroupPartyService:
    """Business logic for groups, parties and the unassigned pool."""

    def __init__(
        self,
        store: Store,
        group_repo: GroupRepository,
        party_repo: PartyRepository,
        member_repo: MemberRepository,
    ) -> None:
        self._store = store
        self._groups = group_repo
        self._parties = party_repo
        self._members = member_repo

    # ── Party queries ──

    def list_parties(self, party_type: Optional[PartyType] = None) -> list[PartyWithMembers]:
        with self._store.connect() as conn:
            parties = [row.party for row in self._parties.list(conn, _value(party_type))]
            return self._project_all(conn, parties)

    def get_party(self, party_id: str) -> PartyWithMembers:
        with self._store.connect() as conn:
            row = self._parties.get(conn, party_id)
            if row is None:
                raise NotFoundError(f"Party {party_id} not found")
            return self._project_all(conn, [row.party])[0]

    def list_group_parties(self, group_id: str) -> list[PartyWithMembers]:
        with self._store.connect() as conn:
            group = self._groups.get(conn, group_id)
            if group is None:
                raise NotFoundError(f"Group {group_id} not found")
            return self._group_parties(conn, group)

    def unassigned_members(
        self,
        party_type: PartyType,
        class_name: Optional[str] = None,
    ) -> list[Member]:
        with self._store.connect() as conn:
            members = self._members.list(conn)
            parties = [row.party for row in self._parties.list(conn, _value(party_type))]
        return filter_by_class(compute_unassigned(members, parties, party_type), class_name)

    # ── Party commands ──

    def create_party(
        self,
        name: str,
        party_type: PartyType,
        group_id: Optional[str] = None,
        member_ids: Optional[list[int]] = None,
    ) -> PartyWithMembers:
        party_type = PartyType(party_type)
        slots = list(member_ids) if member_ids is not None else [EMPTY_SLOT] * SLOT_COUNT
        now = datetime.now(timezone.utc).isoformat()

        with self._store.begin() as conn:
            group = None
            if group_id:
                group = self._groups.get(conn, group_id)
                if group is None:
                    raise NotFoundError(f"Group {group_id} not found")
                if group.type != party_type:
                    raise ValidationError(
                        f"Party type '{party_type.value}' does not match group type "
                        f"'{group.type.value}'"
                    )
                if self._parties.count(conn, group_id) >= settings.MAX_PARTIES_PER_GROUP:
                    raise ValidationError(
                        f"Each group can have at most {settings.MAX_PARTIES_PER_GROUP} parties"
                    )
            self._validate_initial_slots(conn, slots, party_type)

            party = Party(
                id=str(uuid.uuid4()),
                name=name.strip(),
                type=party_type,
                group_id=group_id,
                member_ids=slots,
                created_at=now,
                updated_at=now,
            )
            self._parties.insert(conn, party)
            if group is not None:
                self._groups.set_party_ids(conn, group.id, [*group.party_ids, party.id], now)
            self._refresh_gauges(conn)
            result = self._project_all(conn, [party])[0]

        logger.info("Party created: id=%s, type=%s, group=%s", party.id, party_type.value, group_id)
        return result

    def rename_party(self, party_id: str, name: Optional[str]) -> PartyWithMembers:
        now = datetime.now(timezone.utc).isoformat()
        with self._store.begin() as conn:
            if self._parties.get(conn, party_id) is None:
                raise NotFoundError(f"Party {party_id} not found")
            if name:
                self._parties.rename(conn, party_id, name.strip(), now)
            row = self._parties.get(conn, party_id)
            return self._project_all(conn, [row.party])[0]

    def delete_party(self, party_id: str) -> dict[str, Any]:
        """Delete a party; its slots vanish with it. Raises NotFoundError."""
        now = datetime.now(timezone.utc).isoformat()
        with self._store.begin() as conn:
            row = self._parties.get(conn, party_id)
            if row is None:
                raise NotFoundError(f"Party {party_id} not found")
            self._detach_from_group(conn, row.party, now)
            self._parties.delete(conn, party_id)
            self._refresh_gauges(conn)
        logger.info("Party deleted: id=%s, released=%d", party_id, row.party.occupied_count())
        return {"status": "deleted", "partyId": party_id}

    # ── Group queries ──

    def list_groups(self, party_type: Optional[PartyType] = None) -> list[GroupWithParties]:
        with self._store.connect() as conn:
            return [
                self._with_parties(conn, g)
                for g in self._groups.list(conn, _value(party_type))
            ]

    def get_group(self, group_id: str) -> GroupWithParties:
        with self._store.connect() as conn:
            group = self._groups.get(conn, group_id)
            if group is None:
                raise NotFoundError(f"Group {group_id} not found")
            return self._with_parties(conn, group)

    # ── Group commands ──

    def create_group(
        self,
        name: str,
        party_type: PartyType,
        description: Optional[str] = None,
    ) -> Group:
        now = datetime.now(timezone.utc).isoformat()
        group = Group(
            id=str(uuid.uuid4()),
            name=name.strip(),
            type=PartyType(party_type),
            description=description,
            party_ids=[],
            created_at=now,
            updated_at=now,
        )
        with self._store.begin() as conn:
            self._groups.insert(conn, group)
        logger.info("Group created: id=%s, type=%s", group.id, group.type.value)
        return group

    def update_group(
        self,
        group_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Group:
        fields: dict[str, Any] = {}
        if name:
            fields["name"] = name.strip()
        if description is not None:
            fields["description"] = description
        now = datetime.now(timezone.utc).isoformat()
        with self._store.begin() as conn:
            if self._groups.get(conn, group_id) is None:
                raise NotFoundError(f"Group {group_id} not found")
            if fields:
                self._groups.update(conn, group_id, fields, now)
            return self._groups.get(conn, group_id)

    def delete_group(self, group_id: str) -> dict[str, Any]:
        """Delete a group together with all of its parties."""
        with self._store.begin() as conn:
            group = self._groups.get(conn, group_id)
            if group is None:
                raise NotFoundError(f"Group {group_id} not found")
            rows = self._parties.list(conn, group_id=group_id)
            for row in rows:
                self._parties.delete(conn, row.party.id)
            self._groups.delete(conn, group_id)
            self._refresh_gauges(conn)
        logger.info("Group deleted: id=%s, parties_deleted=%d", group_id, len(rows))
        return {"status": "deleted", "groupId": group_id, "partiesDeleted": len(rows)}

    # ── Seed ──

    def seed_defaults(self) -> int:
        """Create empty default parties per type when the store is empty."""
        per_type = settings.DEFAULT_PARTIES_PER_TYPE
        per_group = max(1, settings.MAX_PARTIES_PER_GROUP)
        now = datetime.now(timezone.utc).isoformat()
        created = 0
        with self._store.begin() as conn:
            if self._parties.count(conn) or self._groups.count(conn):
                logger.info("Party data already present, skipping seed")
                return 0
            for party_type in PartyType:
                label = party_type.value.upper()
                group = None
                for index in range(1, per_type + 1):
                    if group is None or len(group.party_ids) >= per_group:
                        group = Group(
                            id=str(uuid.uuid4()),
                            name=f"{label} Group {(index - 1) // per_group + 1}",
                            type=party_type,
                            description=f"{label} activity organization",
                            party_ids=[],
                            created_at=now,
                            updated_at=now,
                        )
                        self._groups.insert(conn, group)
                    party = Party(
                        id=str(uuid.uuid4()),
                        name=f"{label} Party {index}",
                        type=party_type,
                        group_id=group.id,
                        member_ids=[EMPTY_SLOT] * SLOT_COUNT,
                        created_at=now,
                        updated_at=now,
                    )
                    self._parties.insert(conn, party)
                    group = group.model_copy(update={"party_ids": [*group.party_ids, party.id]})
                    self._groups.set_party_ids(conn, group.id, group.party_ids, now)
                    created += 1
            self._refresh_gauges(conn)
        logger.info("Seeded %d default parties", created)
        return created

    def refresh_gauges(self) -> None:
        with self._store.connect() as conn:
            self._refresh_gauges(conn)

    # ── Internal ──

    def _validate_initial_slots(self, conn: Connection, slots: list[int],
                                party_type: PartyType) -> None:
        if len(slots) != SLOT_COUNT:
            raise ValidationError(f"A party has exactly {SLOT_COUNT} slots")
        occupied = [m for m in slots if m != EMPTY_SLOT]
        if any(m < EMPTY_SLOT for m in slots):
            raise ValidationError("Member ids must be positive, 0 marks an empty slot")
        if len(occupied) != len(set(occupied)):
            raise ValidationError("A member can occupy only one slot")
        if not occupied:
            return
        known = self._members.get_many(conn, occupied)
        missing = [m for m in occupied if m not in known]
        if missing:
            raise NotFoundError(f"Members not found: {missing}")
        existing = [row.party for row in self._parties.list(conn, party_type.value)]
        taken = assigned_member_ids(existing, party_type).intersection(occupied)
        if taken:
            raise ConflictError(
                f"Members already assigned to a {party_type.value} party: {sorted(taken)}"
            )

    def _project_all(self, conn: Connection, parties: Iterable[Party]) -> list[PartyWithMembers]:
        parties = list(parties)
        ids = {m for p in parties for m in p.member_ids if m != EMPTY_SLOT}
        roster = self._members.get_many(conn, ids)
        return [project_party(p, roster) for p in parties]

    def _group_parties(self, conn: Connection, group: Group) -> list[PartyWithMembers]:
        parties = [row.party for row in self._parties.list(conn, group_id=group.id)]
        order = {pid: i for i, pid in enumerate(group.party_ids)}
        parties.sort(key=lambda p: order.get(p.id, len(order)))
        return self._project_all(conn, parties)

    def _with_parties(self, conn: Connection, group: Group) -> GroupWithParties:
        parties = self._group_parties(conn, group)
        return GroupWithParties(
            **group.model_dump(),
            parties=parties,
            total_members=sum(p.occupied_count() for p in parties),
        )

    def _detach_from_group(self, conn: Connection, party: Party, now: str) -> None:
        if not party.group_id:
            return
        group = self._groups.get(conn, party.group_id)
        if group is not None:
            remaining = [pid for pid in group.party_ids if pid != party.id]
            self._groups.set_party_ids(conn, group.id, remaining, now)

    def _refresh_gauges(self, conn: Connection) -> None:
        for party_type in PartyType:
            PARTIES_TOTAL.labels(type=party_type.value).set(
                len(self._parties.list(conn, party_type.value))
            )


def _value(party_type: Optional[PartyType]) -> Optional[str]:
    return PartyType(party_type).value if party_type else None
