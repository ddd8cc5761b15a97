# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Party CRUD endpoints.
Thin HTTP layer - delegates ALL logic to GroupPartyService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from guild_parties.core.dependencies import get_group_party_service
from guild_parties.core.exceptions import PartyStoreError
from guild_parties.models.domain import PartyType
from guild_parties.schemas.party import PartyCreateRequest, PartyUpdateRequest, ok
from guild_parties.services.group_party_service import GroupPartyService

router = APIRouter(prefix="/api/v1", tags=["Parties"])


@router.get("/parties")
def list_parties(
    party_type: Optional[PartyType] = Query(default=None, alias="type"),
    service: GroupPartyService = Depends(get_group_party_service),
):
    """List parties with resolved members, optionally of one type."""
    return ok(service.list_parties(party_type))


@router.get("/parties/{party_id}")
def get_party(party_id: str, service: GroupPartyService = Depends(get_group_party_service)):
    try:
        return ok(service.get_party(party_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/parties", status_code=201)
def create_party(
    payload: PartyCreateRequest,
    service: GroupPartyService = Depends(get_group_party_service),
):
    try:
        return ok(service.create_party(
            name=payload.name,
            party_type=payload.type,
            group_id=payload.group_id,
            member_ids=payload.member_ids,
        ))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/parties/{party_id}")
def update_party(
    party_id: str,
    payload: PartyUpdateRequest,
    service: GroupPartyService = Depends(get_group_party_service),
):
    """Rename a party. Slots change only through the slot endpoints."""
    try:
        return ok(service.rename_party(party_id, payload.name))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/parties/{party_id}")
def delete_party(party_id: str, service: GroupPartyService = Depends(get_group_party_service)):
    try:
        return ok(service.delete_party(party_id))
    except PartyStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
