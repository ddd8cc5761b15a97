# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package - re-exports the store and per-table repositories."""
from guild_parties.repositories.store import Store
from guild_parties.repositories.member_repository import MemberRepository
from guild_parties.repositories.group_repository import GroupRepository
from guild_parties.repositories.party_repository import PartyRepository, PartyRow

__all__ = ["Store", "MemberRepository", "GroupRepository", "PartyRepository", "PartyRow"]
