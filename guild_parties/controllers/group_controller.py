# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Group CRUD endpoints.
Thin HTTP layer - delegates ALL logic to GroupPartyService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from guild_parties.core.dependencies import get_group_party_service
from guild_parties.core.exceptions import PartyStoreError
from guild_parties.models.domain import PartyType
from guild_parties.schemas.party import GroupCreateRequest, GroupUpdateRequest, ok
from guild_parties.services.group_party_service import GroupPartyService

router = APIRouter(prefix="/api/v1", tags=["Groups"])


@router.get("/groups")
def list_groups(
    party_type: Optional[PartyType] = Query(default=None, alias="type"),
    service: GroupPartyService = Depends(get_group_party_service),
):
    """List groups with their parties and member totals."""
    return ok(service.list_groups(party_type))


@router.get("/groups/{group_id}")
def get_group(group_id: str, service: GroupPartyService = Depends(get_group_party_service)):
    try:
        return ok(service.get_group(group_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/groups/{group_id}/parties")
def list_group_parties(
    group_id: str,
    service: GroupPartyService = Depends(get_group_party_service),
):
    try:
        return ok(service.list_group_parties(group_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/groups", status_code=201)
def create_group(
    payload: GroupCreateRequest,
    service: GroupPartyService = Depends(get_group_party_service),
):
    return ok(service.create_group(payload.name, payload.type, payload.description))


@router.put("/groups/{group_id}")
def update_group(
    group_id: str,
    payload: GroupUpdateRequest,
    service: GroupPartyService = Depends(get_group_party_service),
):
    try:
        return ok(service.update_group(group_id, payload.name, payload.description))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/groups/{group_id}")
def delete_group(group_id: str, service: GroupPartyService = Depends(get_group_party_service)):
    """Delete a group together with its parties."""
    try:
        return ok(service.delete_group(group_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
