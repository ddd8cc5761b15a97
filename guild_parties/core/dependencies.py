# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection - wire repositories and services.
"""

from guild_parties.core.database import engine
from guild_parties.repositories import GroupRepository, MemberRepository, PartyRepository, Store
from guild_parties.services.assignment_service import AssignmentService
from guild_parties.services.group_party_service import GroupPartyService
from guild_parties.services.roster_service import RosterService

# ── Singleton store and repositories ──
_store = Store(engine)
_member_repo = MemberRepository()
_group_repo = GroupRepository()
_party_repo = PartyRepository()

# ── Service instances (with injected dependencies) ──
_roster_service = RosterService(
    store=_store,
    member_repo=_member_repo,
    party_repo=_party_repo,
)
_group_party_service = GroupPartyService(
    store=_store,
    group_repo=_group_repo,
    party_repo=_party_repo,
    member_repo=_member_repo,
)
_assignment_service = AssignmentService(
    store=_store,
    party_repo=_party_repo,
    member_repo=_member_repo,
)


# ── FastAPI dependency functions ──
def get_store() -> Store:
    return _store


def get_roster_service() -> RosterService:
    return _roster_service


def get_group_party_service() -> GroupPartyService:
    return _group_party_service


def get_assignment_service() -> AssignmentService:
    return _assignment_service
