# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster - member CRUD.

Slot membership is never stored on the member; deleting a member vacates
every slot that references it in the same transaction.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from guild_parties.core.exceptions import ConflictError, NotFoundError
from guild_parties.core.logging import get_logger
from guild_parties.metrics.prometheus import MEMBERS_TOTAL
from guild_parties.models.domain import EMPTY_SLOT, Member
from guild_parties.repositories import MemberRepository, PartyRepository, Store

logger = get_logger(__name__)


class RosterService:
    """Business logic for the guild roster."""

    def __init__(
        self,
        store: Store,
        member_repo: MemberRepository,
        party_repo: PartyRepository,
    ) -> None:
        self._store = store
        self._members = member_repo
        self._parties = party_repo

    # ── Queries ──

    def list_members(self) -> list[Member]:
        with self._store.connect() as conn:
            return self._members.list(conn)

    def get_member(self, member_id: int) -> Member:
        with self._store.connect() as conn:
            member = self._members.get(conn, member_id)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    def list_classes(self) -> list[str]:
        with self._store.connect() as conn:
            return self._members.distinct_classes(conn)

    def count(self) -> int:
        with self._store.connect() as conn:
            return self._members.count(conn)

    # ── Commands ──

    def create_member(self, name: str, class_name: str = "") -> Member:
        now = datetime.now(timezone.utc).isoformat()
        with self._store.begin() as conn:
            member = self._members.insert(conn, name.strip(), class_name.strip(), now)
            MEMBERS_TOTAL.set(self._members.count(conn))
        logger.info("Member created: id=%d, name=%s", member.id, member.name)
        return member

    def update_member(
        self,
        member_id: int,
        name: Optional[str] = None,
        class_name: Optional[str] = None,
    ) -> Member:
        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = name.strip()
        if class_name is not None:
            fields["class_name"] = class_name.strip()
        with self._store.begin() as conn:
            if self._members.get(conn, member_id) is None:
                raise NotFoundError(f"Member {member_id} not found")
            self._members.update(conn, member_id, fields)
            member = self._members.get(conn, member_id)
        if fields:
            logger.info("Member updated: id=%d, fields=%s", member_id, sorted(fields))
        return member

    def delete_member(self, member_id: int) -> dict[str, Any]:
        """Delete a member and vacate every slot it holds. Raises NotFoundError."""
        now = datetime.now(timezone.utc).isoformat()
        vacated: list[dict[str, Any]] = []
        with self._store.begin() as conn:
            if not self._members.delete(conn, member_id):
                raise NotFoundError(f"Member {member_id} not found")
            for party, version in self._parties.list(conn):
                if member_id not in party.member_ids:
                    continue
                slots = [EMPTY_SLOT if m == member_id else m for m in party.member_ids]
                if not self._parties.update_slots(conn, party.id, slots, version, now):
                    raise ConflictError(f"Party {party.id} changed while deleting member")
                vacated.append({"partyId": party.id, "type": party.type.value})
            MEMBERS_TOTAL.set(self._members.count(conn))
        logger.info("Member deleted: id=%d, vacated_parties=%d", member_id, len(vacated))
        return {"status": "deleted", "memberId": member_id, "vacated": vacated}
