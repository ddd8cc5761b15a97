# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Roster data access.
NO business rules here - pure CRUD over the ``members`` table.
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from guild_parties.models.domain import Member

MEMBER_COLS = "id, name, class_name, created_at"


def _row_to_member(row) -> Member:
    return Member(id=row[0], name=row[1], class_name=row[2] or "", created_at=row[3])


class MemberRepository:
    # ── Read ───────────────────────────────────────────────────────────

    def list(self, conn: Connection) -> List[Member]:
        rows = conn.execute(
            text(f"SELECT {MEMBER_COLS} FROM members ORDER BY created_at, id")
        ).fetchall()
        return [_row_to_member(r) for r in rows]

    def get(self, conn: Connection, member_id: int) -> Optional[Member]:
        row = conn.execute(
            text(f"SELECT {MEMBER_COLS} FROM members WHERE id = :id"),
            {"id": member_id},
        ).fetchone()
        return _row_to_member(row) if row else None

    def get_many(self, conn: Connection, member_ids: Iterable[int]) -> Dict[int, Member]:
        ids = sorted(set(member_ids))
        if not ids:
            return {}
        stmt = text(
            f"SELECT {MEMBER_COLS} FROM members WHERE id IN :ids"
        ).bindparams(bindparam("ids", expanding=True))
        rows = conn.execute(stmt, {"ids": ids}).fetchall()
        return {r[0]: _row_to_member(r) for r in rows}

    def distinct_classes(self, conn: Connection) -> List[str]:
        rows = conn.execute(
            text(
                "SELECT DISTINCT class_name FROM members "
                "WHERE class_name <> '' ORDER BY class_name"
            )
        ).fetchall()
        return [r[0] for r in rows]

    def count(self, conn: Connection) -> int:
        return conn.execute(text("SELECT COUNT(*) FROM members")).scalar() or 0

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, conn: Connection, name: str, class_name: str,
               created_at: str) -> Member:
        new_id = conn.execute(
            text("""
                INSERT INTO members (name, class_name, created_at)
                VALUES (:name, :class_name, :created_at)
                RETURNING id
            """),
            {"name": name, "class_name": class_name, "created_at": created_at},
        ).scalar_one()
        return Member(id=new_id, name=name, class_name=class_name, created_at=created_at)

    def update(self, conn: Connection, member_id: int, fields: Dict[str, Any]) -> None:
        if not fields:
            return
        assignments = ", ".join(f"{col} = :{col}" for col in fields)
        conn.execute(
            text(f"UPDATE members SET {assignments} WHERE id = :id"),
            {**fields, "id": member_id},
        )

    def delete(self, conn: Connection, member_id: int) -> bool:
        result = conn.execute(text("DELETE FROM members WHERE id = :id"), {"id": member_id})
        return result.rowcount > 0

    def clear(self, conn: Connection) -> None:
        conn.execute(text("DELETE FROM members"))
