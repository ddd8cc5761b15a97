# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Group data access over the ``party_groups`` table.
Party ids are kept as an ordered JSON list.
"""
import json
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from guild_parties.models.domain import Group

GROUP_COLS = "id, name, type, description, party_ids, created_at, updated_at"


def _row_to_group(row) -> Group:
    return Group(
        id=row[0],
        name=row[1],
        type=row[2],
        description=row[3],
        party_ids=json.loads(row[4] or "[]"),
        created_at=row[5],
        updated_at=row[6],
    )


class GroupRepository:
    # ── Read ───────────────────────────────────────────────────────────

    def list(self, conn: Connection, party_type: Optional[str] = None) -> List[Group]:
        if party_type:
            rows = conn.execute(
                text(f"SELECT {GROUP_COLS} FROM party_groups WHERE type = :type "
                     "ORDER BY created_at, name"),
                {"type": party_type},
            ).fetchall()
        else:
            rows = conn.execute(
                text(f"SELECT {GROUP_COLS} FROM party_groups ORDER BY created_at, name")
            ).fetchall()
        return [_row_to_group(r) for r in rows]

    def get(self, conn: Connection, group_id: str) -> Optional[Group]:
        row = conn.execute(
            text(f"SELECT {GROUP_COLS} FROM party_groups WHERE id = :id"),
            {"id": group_id},
        ).fetchone()
        return _row_to_group(row) if row else None

    def count(self, conn: Connection) -> int:
        return conn.execute(text("SELECT COUNT(*) FROM party_groups")).scalar() or 0

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, conn: Connection, group: Group) -> None:
        conn.execute(
            text("""
                INSERT INTO party_groups
                    (id, name, type, description, party_ids, created_at, updated_at)
                VALUES
                    (:id, :name, :type, :description, :party_ids, :created_at, :updated_at)
            """),
            {"id": group.id, "name": group.name, "type": group.type.value,
             "description": group.description,
             "party_ids": json.dumps(group.party_ids),
             "created_at": group.created_at, "updated_at": group.updated_at},
        )

    def update(self, conn: Connection, group_id: str, fields: Dict[str, Any],
               updated_at: str) -> None:
        params = {**fields, "id": group_id, "updated_at": updated_at}
        assignments = ", ".join(f"{col} = :{col}" for col in [*fields, "updated_at"])
        conn.execute(text(f"UPDATE party_groups SET {assignments} WHERE id = :id"), params)

    def set_party_ids(self, conn: Connection, group_id: str, party_ids: List[str],
                      updated_at: str) -> None:
        conn.execute(
            text("UPDATE party_groups SET party_ids = :party_ids, updated_at = :updated_at "
                 "WHERE id = :id"),
            {"id": group_id, "party_ids": json.dumps(party_ids), "updated_at": updated_at},
        )

    def delete(self, conn: Connection, group_id: str) -> bool:
        result = conn.execute(text("DELETE FROM party_groups WHERE id = :id"), {"id": group_id})
        return result.rowcount > 0

    def clear(self, conn: Connection) -> None:
        conn.execute(text("DELETE FROM party_groups"))
