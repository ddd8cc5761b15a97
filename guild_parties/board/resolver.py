# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Assignment resolver - turns one drop gesture into a MutationPlan.

Pure logic over the locally known parties: no I/O, no mutation. The true
source of the dragged member is always located in the party data; the drag
payload's hint is only compared against it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Union

from guild_parties.core.exceptions import ValidationError
from guild_parties.core.logging import get_logger
from guild_parties.models.domain import EMPTY_SLOT, LEADER_SLOT, SLOT_COUNT, Party, PartyType

logger = get_logger(__name__)

ALREADY_IN_POSITION = "already in that position"


@dataclass(frozen=True)
class SlotRef:
    party_id: str
    slot_index: int


@dataclass(frozen=True)
class AssignStep:
    member_id: int
    party_id: str
    slot_index: int

    @property
    def is_leader(self) -> bool:
        return self.slot_index == LEADER_SLOT


@dataclass(frozen=True)
class RemoveStep:
    member_id: int
    party_id: str


@dataclass(frozen=True)
class SwapStep:
    member1_id: int
    member1_at: SlotRef
    member2_id: int
    member2_at: SlotRef


Step = Union[AssignStep, RemoveStep, SwapStep]


class PlanKind(str, Enum):
    NONE = "none"
    ASSIGN = "assign"
    MOVE = "move"
    SWAP = "swap"
    REQUIRES_RESYNC = "requires_resync"


@dataclass(frozen=True)
class MutationPlan:
    """Ordered Party Store calls realising one drop; executed strictly in order."""

    kind: PlanKind
    steps: tuple = field(default_factory=tuple)
    message: str = ""
    desync: bool = False
    source: Optional[SlotRef] = None

    @classmethod
    def none(cls, message: str = ALREADY_IN_POSITION, **kwargs) -> "MutationPlan":
        return cls(PlanKind.NONE, (), message, **kwargs)

    @classmethod
    def requires_resync(cls, message: str, **kwargs) -> "MutationPlan":
        return cls(PlanKind.REQUIRES_RESYNC, (), message, **kwargs)


def locate_member(
    member_id: int,
    parties: Sequence[Party],
    party_type: PartyType,
) -> Optional[SlotRef]:
    """First slot holding ``member_id`` among parties of ``party_type``."""
    party_type = PartyType(party_type)
    for party in parties:
        if party.type != party_type:
            continue
        slot_index = party.slot_of(member_id)
        if slot_index is not None:
            return SlotRef(party.id, slot_index)
    return None


def resolve_drop(
    member_id: int,
    target: SlotRef,
    parties: Sequence[Party],
    party_type: PartyType,
    source_hint: Optional[SlotRef] = None,
) -> MutationPlan:
    """
    Classify a drop of ``member_id`` onto ``target``.

    Returns a no-op, a same-party or cross-party move, an assignment from the
    pool, a single atomic swap, or ``REQUIRES_RESYNC`` when the local view
    cannot support the gesture (unknown target party, or a swap whose source
    cannot be located).
    """
    party_type = PartyType(party_type)
    if member_id <= EMPTY_SLOT:
        raise ValidationError(f"Invalid member id {member_id}")
    if not 0 <= target.slot_index < SLOT_COUNT:
        raise ValidationError(
            f"Invalid slot index {target.slot_index}, expected 0-{SLOT_COUNT - 1}"
        )

    source = locate_member(member_id, parties, party_type)
    desync = source_hint is not None and source_hint != source
    if desync:
        logger.warning(
            "Drag source mismatch for member %d: hint=%s, located=%s",
            member_id, source_hint, source,
        )

    target_party = next(
        (p for p in parties if p.id == target.party_id and p.type == party_type), None
    )
    if target_party is None:
        return MutationPlan.requires_resync(
            f"Party {target.party_id} is not in the current view",
            desync=desync, source=source,
        )

    occupant = target_party.member_ids[target.slot_index]
    if occupant == member_id or source == target:
        return MutationPlan.none(desync=desync, source=source)

    assign = AssignStep(member_id, target.party_id, target.slot_index)
    if occupant == EMPTY_SLOT:
        if source is None:
            return MutationPlan(PlanKind.ASSIGN, (assign,), desync=desync)
        if source.party_id == target.party_id:
            return MutationPlan(PlanKind.MOVE, (assign,), desync=desync, source=source)
        return MutationPlan(
            PlanKind.MOVE,
            (RemoveStep(member_id, source.party_id), assign),
            desync=desync,
            source=source,
        )

    if source is None:
        return MutationPlan.requires_resync(
            f"Cannot locate member {member_id} to swap with member {occupant}",
            desync=desync,
        )
    return MutationPlan(
        PlanKind.SWAP,
        (SwapStep(member_id, source, occupant, target),),
        desync=desync,
        source=source,
    )
