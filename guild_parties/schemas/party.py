# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas - API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
Unknown request keys are rejected.
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field

from guild_parties.models.domain import SLOT_COUNT, PartyType


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# ── Envelope ──

def ok(data: Any = None) -> dict[str, Any]:
    """Wrap a payload in the success envelope, camelCase keys."""
    return {"success": True, "data": jsonable_encoder(data, by_alias=True)}


def fail(message: str, code: Optional[str] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if code:
        body["code"] = code
    return body


# ── Roster Schemas ──

class MemberCreateRequest(_Request):
    name: str = Field(..., min_length=1, max_length=255)
    class_name: str = Field(default="", max_length=100, alias="class")


class MemberUpdateRequest(_Request):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    class_name: Optional[str] = Field(default=None, max_length=100, alias="class")


# ── Group Schemas ──

class GroupCreateRequest(_Request):
    name: str = Field(..., min_length=1, max_length=255)
    type: PartyType
    description: Optional[str] = Field(default=None, max_length=2000)


class GroupUpdateRequest(_Request):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


# ── Party Schemas ──

class PartyCreateRequest(_Request):
    name: str = Field(..., min_length=1, max_length=255)
    type: PartyType
    group_id: Optional[str] = Field(default=None, alias="groupId")
    member_ids: Optional[list[int]] = Field(
        default=None,
        alias="memberIds",
        min_length=SLOT_COUNT,
        max_length=SLOT_COUNT,
        description="Initial slots, 0 for empty",
    )


class PartyUpdateRequest(_Request):
    """Slots are only changed through assign / remove / swap / clear."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


# ── Slot Operation Schemas ──

class AssignMemberRequest(_Request):
    member_id: int = Field(..., alias="memberId")
    party_id: str = Field(..., min_length=1, alias="partyId")
    party_type: PartyType = Field(..., alias="partyType")
    is_leader: bool = Field(default=False, alias="isLeader")
    slot_index: Optional[int] = Field(default=None, alias="slotIndex")


class RemoveMemberRequest(_Request):
    member_id: int = Field(..., alias="memberId")
    party_id: str = Field(..., min_length=1, alias="partyId")
    party_type: PartyType = Field(..., alias="partyType")


class SwapMembersRequest(_Request):
    member1_id: int = Field(..., alias="member1Id")
    member1_party_id: str = Field(..., min_length=1, alias="member1PartyId")
    member1_slot_index: int = Field(..., alias="member1SlotIndex")
    member2_id: int = Field(..., alias="member2Id")
    member2_party_id: str = Field(..., min_length=1, alias="member2PartyId")
    member2_slot_index: int = Field(..., alias="member2SlotIndex")
    party_type: PartyType = Field(..., alias="partyType")


class ClearAllPartiesRequest(_Request):
    party_type: Optional[PartyType] = Field(default=None, alias="partyType")
