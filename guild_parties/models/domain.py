# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models - pure data structures, NO FastAPI dependency.

Shared by the service (system of record) and the board (operator view).
JSON field names are camelCase; Python attributes are snake_case.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SLOT_COUNT = 5
LEADER_SLOT = 0
EMPTY_SLOT = 0


class PartyType(str, Enum):
    """Independent activity pools; a member may sit in one party of each."""

    KVM = "kvm"
    GVG = "gvg"


class Member(BaseModel):
    """A guild member as supplied by the roster."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(..., gt=EMPTY_SLOT)
    name: str
    class_name: str = Field(default="", alias="class")
    created_at: str = Field(..., alias="createdAt")


class Party(BaseModel):
    """Five fixed slots; slot 0 is the leader, ``EMPTY_SLOT`` marks a free slot."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    type: PartyType
    group_id: Optional[str] = Field(default=None, alias="groupId")
    member_ids: list[int] = Field(
        ..., alias="memberIds", min_length=SLOT_COUNT, max_length=SLOT_COUNT
    )
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    @field_validator("member_ids")
    @classmethod
    def no_negative_ids(cls, v: list[int]) -> list[int]:
        if any(member_id < EMPTY_SLOT for member_id in v):
            raise ValueError("member ids must be positive or the empty sentinel 0")
        return v

    def slot_of(self, member_id: int) -> Optional[int]:
        try:
            return self.member_ids.index(member_id)
        except ValueError:
            return None

    def occupied_count(self) -> int:
        return sum(1 for member_id in self.member_ids if member_id != EMPTY_SLOT)


class PartyWithMembers(Party):
    """Read-only projection of a party with its members resolved from the roster."""

    members: list[Member] = Field(default_factory=list)
    leader: Optional[Member] = None


class Group(BaseModel):
    """Display container for parties of one type."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    type: PartyType
    description: Optional[str] = None
    party_ids: list[str] = Field(default_factory=list, alias="partyIds")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")


class GroupWithParties(Group):
    parties: list[PartyWithMembers] = Field(default_factory=list)
    total_members: int = Field(default=0, alias="totalMembers")
