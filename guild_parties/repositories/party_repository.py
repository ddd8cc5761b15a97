# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Party data access over the ``parties`` table.

Slots are stored as a JSON list of exactly five ids. Every slot write bumps
``version`` and is conditional on the version the caller read, so a write
built on a stale read affects zero rows instead of overwriting.
"""
import json
from typing import List, NamedTuple, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from guild_parties.models.domain import EMPTY_SLOT, SLOT_COUNT, Party

PARTY_COLS = "id, name, type, group_id, member_ids, version, created_at, updated_at"

EMPTY_SLOTS_JSON = json.dumps([EMPTY_SLOT] * SLOT_COUNT)


class PartyRow(NamedTuple):
    party: Party
    version: int


def _row_to_party(row) -> PartyRow:
    party = Party(
        id=row[0],
        name=row[1],
        type=row[2],
        group_id=row[3],
        member_ids=json.loads(row[4]),
        created_at=row[6],
        updated_at=row[7],
    )
    return PartyRow(party, row[5])


class PartyRepository:
    # ── Read ───────────────────────────────────────────────────────────

    def list(self, conn: Connection, party_type: Optional[str] = None,
             group_id: Optional[str] = None) -> List[PartyRow]:
        conditions = []
        params = {}
        if party_type:
            conditions.append("type = :type")
            params["type"] = party_type
        if group_id:
            conditions.append("group_id = :group_id")
            params["group_id"] = group_id
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        rows = conn.execute(
            text(f"SELECT {PARTY_COLS} FROM parties{where} ORDER BY seq"), params
        ).fetchall()
        return [_row_to_party(r) for r in rows]

    def get(self, conn: Connection, party_id: str) -> Optional[PartyRow]:
        row = conn.execute(
            text(f"SELECT {PARTY_COLS} FROM parties WHERE id = :id"),
            {"id": party_id},
        ).fetchone()
        return _row_to_party(row) if row else None

    def count(self, conn: Connection, group_id: Optional[str] = None) -> int:
        if group_id:
            return conn.execute(
                text("SELECT COUNT(*) FROM parties WHERE group_id = :gid"), {"gid": group_id}
            ).scalar() or 0
        return conn.execute(text("SELECT COUNT(*) FROM parties")).scalar() or 0

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, conn: Connection, party: Party) -> None:
        next_seq = conn.execute(text("SELECT COALESCE(MAX(seq), 0) + 1 FROM parties")).scalar()
        conn.execute(
            text("""
                INSERT INTO parties
                    (id, name, type, group_id, member_ids, version, seq, created_at, updated_at)
                VALUES
                    (:id, :name, :type, :group_id, :member_ids, 1, :seq, :created_at, :updated_at)
            """),
            {"id": party.id, "name": party.name, "type": party.type.value,
             "group_id": party.group_id, "member_ids": json.dumps(party.member_ids),
             "seq": next_seq, "created_at": party.created_at,
             "updated_at": party.updated_at},
        )

    def update_slots(self, conn: Connection, party_id: str, member_ids: List[int],
                     expected_version: int, updated_at: str) -> bool:
        """Write the slot array iff the row is still at ``expected_version``."""
        if len(member_ids) != SLOT_COUNT:
            raise ValueError(f"party slots must have exactly {SLOT_COUNT} entries")
        result = conn.execute(
            text("""
                UPDATE parties
                SET member_ids = :member_ids, version = version + 1, updated_at = :updated_at
                WHERE id = :id AND version = :version
            """),
            {"id": party_id, "member_ids": json.dumps(member_ids),
             "version": expected_version, "updated_at": updated_at},
        )
        return result.rowcount == 1

    def rename(self, conn: Connection, party_id: str, name: str, updated_at: str) -> None:
        conn.execute(
            text("UPDATE parties SET name = :name, updated_at = :updated_at WHERE id = :id"),
            {"id": party_id, "name": name, "updated_at": updated_at},
        )

    def clear_slots(self, conn: Connection, updated_at: str,
                    party_type: Optional[str] = None) -> int:
        params = {"empty": EMPTY_SLOTS_JSON, "updated_at": updated_at}
        where = ""
        if party_type:
            where = " WHERE type = :type"
            params["type"] = party_type
        result = conn.execute(
            text("UPDATE parties SET member_ids = :empty, version = version + 1, "
                 f"updated_at = :updated_at{where}"),
            params,
        )
        return result.rowcount

    def delete(self, conn: Connection, party_id: str) -> bool:
        result = conn.execute(text("DELETE FROM parties WHERE id = :id"), {"id": party_id})
        return result.rowcount > 0

    def clear(self, conn: Connection) -> None:
        conn.execute(text("DELETE FROM parties"))
