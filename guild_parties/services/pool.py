# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Unassigned pool - pure computation, no side effects.

Used by the service's unassigned-members endpoint and by the board after
every reload. Always recomputed from full inputs, never patched.
"""

from typing import Iterable, Optional, Sequence

from guild_parties.models.domain import EMPTY_SLOT, Member, Party, PartyType


def assigned_member_ids(parties: Iterable[Party], party_type: PartyType) -> set[int]:
    """Every non-empty slot id across the parties of ``party_type``."""
    party_type = PartyType(party_type)
    return {
        member_id
        for party in parties
        if party.type == party_type
        for member_id in party.member_ids
        if member_id != EMPTY_SLOT
    }


def compute_unassigned(
    members: Sequence[Member],
    parties: Iterable[Party],
    party_type: PartyType,
) -> list[Member]:
    """Members holding no slot of ``party_type``, in roster order."""
    taken = assigned_member_ids(parties, party_type)
    return [m for m in members if m.id not in taken]


def filter_by_class(members: Sequence[Member], class_name: Optional[str]) -> list[Member]:
    if not class_name:
        return list(members)
    return [m for m in members if m.class_name == class_name]
