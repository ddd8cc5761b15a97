# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Roster endpoints.
Thin HTTP layer - delegates ALL logic to RosterService.
"""

from fastapi import APIRouter, Depends, HTTPException

from guild_parties.core.dependencies import get_roster_service
from guild_parties.core.exceptions import PartyStoreError
from guild_parties.schemas.party import MemberCreateRequest, MemberUpdateRequest, ok
from guild_parties.services.roster_service import RosterService

router = APIRouter(prefix="/api/v1", tags=["Members"])


@router.get("/members")
def list_members(service: RosterService = Depends(get_roster_service)):
    """List the whole roster in creation order."""
    return ok(service.list_members())


@router.get("/members/classes")
def list_classes(service: RosterService = Depends(get_roster_service)):
    """Distinct member classes, for the operator's class filter."""
    return ok(service.list_classes())


@router.post("/members", status_code=201)
def create_member(
    payload: MemberCreateRequest,
    service: RosterService = Depends(get_roster_service),
):
    """Add a member to the roster; new members start unassigned."""
    return ok(service.create_member(payload.name, payload.class_name))


@router.get("/members/{member_id}")
def get_member(member_id: int, service: RosterService = Depends(get_roster_service)):
    try:
        return ok(service.get_member(member_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/members/{member_id}")
def update_member(
    member_id: int,
    payload: MemberUpdateRequest,
    service: RosterService = Depends(get_roster_service),
):
    try:
        return ok(service.update_member(member_id, payload.name, payload.class_name))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/members/{member_id}")
def delete_member(member_id: int, service: RosterService = Depends(get_roster_service)):
    """Delete a member and release every slot it holds."""
    try:
        return ok(service.delete_member(member_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
