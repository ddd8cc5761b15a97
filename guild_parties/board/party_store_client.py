# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Board: Party Store client - inter-service communication.
Speaks the REST contract of the party service and maps every failure onto the
PartyStoreError taxonomy. Never retries: assign and swap are not idempotent.
"""

from typing import Any, Optional

import httpx

from guild_parties.board.resolver import AssignStep, RemoveStep, Step, SwapStep
from guild_parties.core.config import settings
from guild_parties.core.exceptions import (
    ConflictError,
    NotFoundError,
    PartyStoreError,
    TransientNetworkError,
    ValidationError,
)
from guild_parties.core.logging import get_logger
from guild_parties.models.domain import Member, PartyType, PartyWithMembers

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

STATUS_ERRORS: dict[int, type[PartyStoreError]] = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


class PartyStoreClient:
    """Blocking client; one call completes before the next is issued."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._http = http or httpx.Client(
            base_url=base_url or settings.PARTY_STORE_URL,
            timeout=timeout or settings.PARTY_STORE_TIMEOUT,
        )

    def close(self) -> None:
        self._http.close()

    # ── Reads ──

    def list_parties(self, party_type: Optional[PartyType] = None) -> list[PartyWithMembers]:
        params = {"type": PartyType(party_type).value} if party_type else None
        data = self._request("GET", "/parties", params=params)
        return [PartyWithMembers.model_validate(p) for p in data]

    def list_unassigned(
        self,
        party_type: PartyType,
        class_name: Optional[str] = None,
    ) -> list[Member]:
        params = {"type": PartyType(party_type).value}
        if class_name:
            params["class"] = class_name
        data = self._request("GET", "/unassigned-members", params=params)
        return [Member.model_validate(m) for m in data]

    def list_members(self) -> list[Member]:
        return [Member.model_validate(m) for m in self._request("GET", "/members")]

    def list_classes(self) -> list[str]:
        return list(self._request("GET", "/members/classes"))

    # ── Slot operations ──

    def assign_member(
        self,
        member_id: int,
        party_id: str,
        party_type: PartyType,
        slot_index: Optional[int] = None,
        is_leader: bool = False,
    ) -> dict[str, Any]:
        body = {
            "memberId": member_id,
            "partyId": party_id,
            "partyType": PartyType(party_type).value,
            "isLeader": is_leader,
        }
        if slot_index is not None:
            body["slotIndex"] = slot_index
        return self._request("POST", "/assign-member", json=body)

    def remove_member(self, member_id: int, party_id: str, party_type: PartyType) -> dict[str, Any]:
        return self._request("POST", "/remove-member", json={
            "memberId": member_id,
            "partyId": party_id,
            "partyType": PartyType(party_type).value,
        })

    def swap_members(self, step: SwapStep, party_type: PartyType) -> dict[str, Any]:
        return self._request("POST", "/swap-members", json={
            "member1Id": step.member1_id,
            "member1PartyId": step.member1_at.party_id,
            "member1SlotIndex": step.member1_at.slot_index,
            "member2Id": step.member2_id,
            "member2PartyId": step.member2_at.party_id,
            "member2SlotIndex": step.member2_at.slot_index,
            "partyType": PartyType(party_type).value,
        })

    def clear_all_parties(self, party_type: Optional[PartyType] = None) -> dict[str, Any]:
        body = {"partyType": PartyType(party_type).value} if party_type else {}
        return self._request("POST", "/clear-all-parties", json=body)

    def apply(self, step: Step, party_type: PartyType) -> dict[str, Any]:
        """Send one resolved plan step."""
        if isinstance(step, AssignStep):
            return self.assign_member(
                step.member_id, step.party_id, party_type,
                slot_index=step.slot_index, is_leader=step.is_leader,
            )
        if isinstance(step, RemoveStep):
            return self.remove_member(step.member_id, step.party_id, party_type)
        if isinstance(step, SwapStep):
            return self.swap_members(step, party_type)
        raise TypeError(f"Unknown plan step: {step!r}")

    # ── Internal ──

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = self._http.request(method, f"{API_PREFIX}{path}", **kwargs)
        except httpx.TransportError as exc:
            logger.warning("Party store unreachable: %s %s: %s", method, path, exc)
            raise TransientNetworkError(f"Party store unreachable, please retry: {exc}") from exc

        if resp.status_code >= 500:
            raise TransientNetworkError(
                f"Party store error {resp.status_code}, please retry"
            )
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or not body.get("success", False):
            message = body.get("error") or f"Request failed with status {resp.status_code}"
            error_cls = STATUS_ERRORS.get(resp.status_code, PartyStoreError)
            raise error_cls(message, {"status": resp.status_code, "path": path})
        return body.get("data")
