# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Slot operations and the unassigned pool.
Thin HTTP layer - delegates ALL logic to AssignmentService / GroupPartyService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from guild_parties.core.dependencies import get_assignment_service, get_group_party_service
from guild_parties.core.exceptions import PartyStoreError
from guild_parties.models.domain import PartyType
from guild_parties.schemas.party import (
    AssignMemberRequest,
    ClearAllPartiesRequest,
    RemoveMemberRequest,
    SwapMembersRequest,
    ok,
)
from guild_parties.services.assignment_service import AssignmentService
from guild_parties.services.group_party_service import GroupPartyService

router = APIRouter(prefix="/api/v1", tags=["Assignments"])


@router.get("/unassigned-members")
def list_unassigned_members(
    party_type: PartyType = Query(..., alias="type"),
    class_name: Optional[str] = Query(default=None, alias="class"),
    service: GroupPartyService = Depends(get_group_party_service),
):
    """Members holding no slot of the given type, in roster order."""
    return ok(service.unassigned_members(party_type, class_name))


@router.post("/assign-member")
def assign_member(
    payload: AssignMemberRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    try:
        return ok(service.assign(
            member_id=payload.member_id,
            party_id=payload.party_id,
            party_type=payload.party_type,
            slot_index=payload.slot_index,
            is_leader=payload.is_leader,
        ))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/remove-member")
def remove_member(
    payload: RemoveMemberRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Vacate a member's slot; removing an absent member succeeds."""
    try:
        return ok(service.remove(payload.member_id, payload.party_id, payload.party_type))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/swap-members")
def swap_members(
    payload: SwapMembersRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Atomically exchange two members' slots."""
    try:
        return ok(service.swap(
            member1_id=payload.member1_id,
            party1_id=payload.member1_party_id,
            slot1=payload.member1_slot_index,
            member2_id=payload.member2_id,
            party2_id=payload.member2_party_id,
            slot2=payload.member2_slot_index,
            party_type=payload.party_type,
        ))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/clear-all-parties")
def clear_all_parties(
    payload: Optional[ClearAllPartiesRequest] = None,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Empty every slot. Callers confirm with the operator first."""
    party_type = payload.party_type if payload else None
    return ok(service.clear_all_parties(party_type))
