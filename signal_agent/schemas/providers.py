# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Interfaces of the storage-backed collaborators.

Implementations live with the persistence layer; this package only
depends on these signatures.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence, Set

from signal_agent.schemas.triggers import (
    ConnectionIdentifier,
    ProfileRecord,
    StealthEvent,
    StealthType,
    TriggerQueryResult,
)


class ProfileLookup(Protocol):
    """Batch profile lookup by person id."""

    async def by_ids(self, ids: Sequence[str]) -> List[ProfileRecord]: ...

    async def by_id(self, person_id: str) -> Optional[ProfileRecord]: ...


class LikedSetLookup(Protocol):
    """Per-user liked / disliked person ids."""

    async def liked(self, user_id: int) -> Set[str]: ...

    async def disliked(self, user_id: int) -> Set[str]: ...


class TriggerQueryProvider(Protocol):
    """One coroutine per trigger query.

    Dates are ``YYYY-MM-DD`` strings; ``date_to=None`` means "up to now".
    """

    async def bio_changed(self, date_from: str, date_to: Optional[str] = None) -> TriggerQueryResult: ...

    async def stealth(
        self,
        types: Sequence[StealthType],
        date_from: str,
        date_to: Optional[str] = None,
    ) -> TriggerQueryResult: ...

    async def free_agents(self, date_from: str, date_to: Optional[str] = None) -> TriggerQueryResult: ...

    async def linkedin_connections(
        self,
        user_id: int,
        group_ids: Optional[Sequence[int]],
        date_from: str,
        date_to: Optional[str] = None,
    ) -> TriggerQueryResult: ...

    async def followed_by_groups(
        self,
        user_id: int,
        group_ids: Sequence[int],
        date_from: str,
        date_to: Optional[str] = None,
    ) -> TriggerQueryResult: ...

    async def twitter_follows_by_person(self, person_id: str, date_from: str) -> TriggerQueryResult: ...

    async def twitter_followers_of_person(self, person_id: str, date_from: str) -> TriggerQueryResult: ...

    async def linkedin_connections_of_person(
        self,
        person_id: str,
        linkedin_urn: Optional[str],
        date_from: str,
    ) -> List[ConnectionIdentifier]: ...

    async def stealth_status(self, person_ids: Sequence[str], days: int) -> Dict[str, StealthEvent]: ...
