# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Board: reconciliation layer - owns the operator's local view of one party
type and keeps it honest against the party service.

Two states. ``CONSISTENT`` after every successful load. ``RESYNC_PENDING``
once the view is known or suspected to be stale: a plan needing a resync, a
ConflictError from the service, or a failed reload. Plans are executed step
by step and are never replayed; after a resync the operator repeats the
gesture against fresh data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from guild_parties.board.class_catalog import ClassCatalog
from guild_parties.board.party_store_client import PartyStoreClient
from guild_parties.board.resolver import MutationPlan, PlanKind, SlotRef, resolve_drop
from guild_parties.core.exceptions import ConflictError, PartyStoreError
from guild_parties.core.logging import get_logger
from guild_parties.metrics.prometheus import BOARD_DROPS, BOARD_RESYNCS
from guild_parties.models.domain import Member, PartyType, PartyWithMembers
from guild_parties.services.pool import compute_unassigned, filter_by_class

logger = get_logger(__name__)

SYNC_IN_PROGRESS = "synchronization in progress, please retry"
DATA_CHANGED = "data changed elsewhere, refreshing"


class SyncState(str, Enum):
    CONSISTENT = "consistent"
    RESYNC_PENDING = "resync_pending"


class OutcomeKind(str, Enum):
    OK = "ok"
    NOOP = "noop"
    RESYNC = "resync"
    ERROR = "error"


@dataclass(frozen=True)
class DropOutcome:
    kind: OutcomeKind
    message: str = ""
    plan: Optional[MutationPlan] = None
    error: Optional[PartyStoreError] = None


class SlotBoard:
    """Local view of the parties of one type plus the unassigned pool."""

    def __init__(
        self,
        client: PartyStoreClient,
        party_type: PartyType,
        catalog: Optional[ClassCatalog] = None,
    ) -> None:
        self._client = client
        self.party_type = PartyType(party_type)
        self.catalog = catalog
        # no view until the first load
        self.state = SyncState.RESYNC_PENDING
        self.parties: list[PartyWithMembers] = []
        self.members: list[Member] = []
        self.unassigned: list[Member] = []

    # ── View ──

    def load(self) -> None:
        """Fetch parties and members and re-derive the pool. Re-raises failures."""
        try:
            parties = self._client.list_parties(self.party_type)
            members = self._client.list_members()
        except PartyStoreError:
            self.state = SyncState.RESYNC_PENDING
            logger.warning("Board reload failed, view stays stale: type=%s", self.party_type.value)
            raise
        self.parties = parties
        self.members = members
        self.unassigned = compute_unassigned(members, parties, self.party_type)
        self.state = SyncState.CONSISTENT
        logger.info(
            "Board loaded: type=%s, parties=%d, members=%d, unassigned=%d",
            self.party_type.value, len(parties), len(members), len(self.unassigned),
        )

    def party(self, party_id: str) -> Optional[PartyWithMembers]:
        return next((p for p in self.parties if p.id == party_id), None)

    def pool(self, class_name: Optional[str] = None) -> list[Member]:
        """Unassigned members, optionally of one class."""
        return filter_by_class(self.unassigned, class_name)

    def classes(self) -> list[str]:
        if self.catalog is not None:
            return self.catalog.get_classes()
        return sorted({m.class_name for m in self.members if m.class_name})

    # ── Gestures ──

    def drop(
        self,
        member_id: int,
        target: SlotRef,
        source_hint: Optional[SlotRef] = None,
    ) -> DropOutcome:
        """Resolve a drop against the local view and execute the plan."""
        if self.state is SyncState.RESYNC_PENDING:
            return self._finish(self._pending())

        try:
            plan = resolve_drop(member_id, target, self.parties, self.party_type, source_hint)
        except PartyStoreError as exc:
            return self._finish(DropOutcome(OutcomeKind.ERROR, exc.message, error=exc))

        if plan.kind is PlanKind.NONE:
            return self._finish(DropOutcome(OutcomeKind.NOOP, plan.message, plan))
        if plan.kind is PlanKind.REQUIRES_RESYNC:
            logger.warning("Drop needs resync: member=%d, reason=%s", member_id, plan.message)
            return self._finish(self._resync("unlocated_source", plan))

        return self._finish(self._execute(plan))

    def remove(self, member_id: int, party_id: str) -> DropOutcome:
        """Vacate a member's slot; a member already gone is not an error."""
        if self.state is SyncState.RESYNC_PENDING:
            return self._finish(self._pending())
        try:
            self._client.remove_member(member_id, party_id, self.party_type)
        except ConflictError as exc:
            return self._finish(self._resync("conflict", error=exc))
        except PartyStoreError as exc:
            return self._finish(DropOutcome(OutcomeKind.ERROR, exc.message, error=exc))
        return self._finish(self._reloaded(DropOutcome(OutcomeKind.OK, "member removed")))

    def clear_all(self, confirm: bool = False) -> DropOutcome:
        """Empty every party of this board's type. Requires ``confirm``."""
        if not confirm:
            return self._finish(DropOutcome(OutcomeKind.NOOP, "clear not confirmed"))
        if self.state is SyncState.RESYNC_PENDING:
            return self._finish(self._pending())
        try:
            self._client.clear_all_parties(self.party_type)
        except ConflictError as exc:
            return self._finish(self._resync("conflict", error=exc))
        except PartyStoreError as exc:
            return self._finish(DropOutcome(OutcomeKind.ERROR, exc.message, error=exc))
        logger.warning("Board cleared all %s parties", self.party_type.value)
        return self._finish(self._reloaded(DropOutcome(OutcomeKind.OK, "all parties cleared")))

    # ── Internal ──

    def _execute(self, plan: MutationPlan) -> DropOutcome:
        committed = 0
        for step in plan.steps:
            try:
                self._client.apply(step, self.party_type)
            except ConflictError as exc:
                logger.warning("Plan step rejected with conflict: %s", exc.message)
                return self._resync("conflict", plan, exc)
            except PartyStoreError as exc:
                logger.warning(
                    "Plan aborted after %d of %d steps: %s",
                    committed, len(plan.steps), exc.message,
                )
                outcome = DropOutcome(OutcomeKind.ERROR, exc.message, plan, exc)
                return self._reloaded(outcome) if committed else outcome
            committed += 1
        return self._reloaded(DropOutcome(OutcomeKind.OK, plan.kind.value, plan))

    def _resync(
        self,
        reason: str,
        plan: Optional[MutationPlan] = None,
        error: Optional[PartyStoreError] = None,
    ) -> DropOutcome:
        self.state = SyncState.RESYNC_PENDING
        BOARD_RESYNCS.labels(reason=reason).inc()
        try:
            self.load()
        except PartyStoreError as exc:
            return DropOutcome(OutcomeKind.RESYNC, SYNC_IN_PROGRESS, plan, error or exc)
        return DropOutcome(OutcomeKind.RESYNC, DATA_CHANGED, plan, error)

    def _pending(self) -> DropOutcome:
        BOARD_RESYNCS.labels(reason="pending").inc()
        try:
            self.load()
        except PartyStoreError as exc:
            return DropOutcome(OutcomeKind.RESYNC, SYNC_IN_PROGRESS, error=exc)
        return DropOutcome(OutcomeKind.RESYNC, SYNC_IN_PROGRESS)

    def _reloaded(self, outcome: DropOutcome) -> DropOutcome:
        # the mutation already committed; a failed reload only marks the view stale
        try:
            self.load()
        except PartyStoreError:
            pass
        return outcome

    @staticmethod
    def _finish(outcome: DropOutcome) -> DropOutcome:
        BOARD_DROPS.labels(outcome=outcome.kind.value).inc()
        return outcome
