# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Trigger orchestration service.

Issues the independent trigger queries concurrently, joins them and
hands the results to the signal merger. Also assembles the activity
timeline of a single person.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, Sequence

from pydantic import BaseModel

from signal_agent.config import SpecialGroupId, settings
from signal_agent.schemas.providers import ProfileLookup, TriggerQueryProvider
from signal_agent.schemas.triggers import (
    ActivityEvent,
    ActivitySummary,
    BioChange,
    ConnectionIdentifier,
    Direction,
    FreeAgentDetails,
    MergedFeed,
    PersonActivity,
    ProfileRecord,
    RelatedPerson,
    Source,
    StealthDetails,
    StealthEvent,
    StealthType,
    TriggerQueryResult,
    TriggerType,
)
from signal_agent.services.triggers.merger import ConnectionDataPolicy, SignalMerger
from signal_agent.services.triggers.normalize import date_n_days_ago, normalize_date

logger = logging.getLogger(__name__)


class TriggerFilters(BaseModel):
    """Which triggers to run and over which window.

    Attributes:
        date_from (Optional[str]): Window start (``YYYY-MM-DD``). Defaults
            to ``days`` ago.
        date_to (Optional[str]): Window end; ``None`` means now.
        days (Optional[int]): Lookback used when ``date_from`` is unset.
        twitter_follow (bool): Network members following someone.
        linkedin_connection (bool): New LinkedIn connections.
        bio_change (bool): Bio / headline updates.
        stealth (List[StealthType]): Stealth transitions to include.
        free_agent (bool): People who left a role without a new one.
        group_ids (Optional[List[int]]): Tracked groups to scope network
            triggers to.
        linkedin_group_ids (Optional[List[int]]): Override of ``group_ids``
            for LinkedIn connections.
        all_triggers (bool): Shorthand enabling every trigger.
    """

    date_from: Optional[str] = None
    date_to: Optional[str] = None
    days: Optional[int] = None
    twitter_follow: bool = False
    linkedin_connection: bool = False
    bio_change: bool = False
    stealth: List[StealthType] = []
    free_agent: bool = False
    group_ids: Optional[List[int]] = None
    linkedin_group_ids: Optional[List[int]] = None
    all_triggers: bool = False

    def expand(self) -> "TriggerFilters":
        """Resolve ``all_triggers`` into individual flags.

        Returns:
            TriggerFilters: ``self`` if ``all_triggers`` is unset, otherwise a
                copy with every trigger enabled and ``group_ids`` defaulting
                to all tracked people.
        """
        if not self.all_triggers:
            return self
        return self.model_copy(
            update={
                "twitter_follow": True,
                "linkedin_connection": True,
                "bio_change": True,
                "stealth": [StealthType.IN, StealthType.OUT],
                "free_agent": True,
                "group_ids": self.group_ids or [SpecialGroupId.ALL_TRACKED],
                "all_triggers": False,
            }
        )


async def _empty(trigger_type: TriggerType) -> TriggerQueryResult:
    return TriggerQueryResult.empty(trigger_type)


async def _no_connections() -> List[ConnectionIdentifier]:
    return []


async def _no_stealth() -> Dict[str, StealthEvent]:
    return {}


class TriggerService:
    """Runs trigger queries and builds feeds and activity timelines.

    Args:
        provider (TriggerQueryProvider): Source of trigger query results.
        profile_lookup (ProfileLookup): Batch profile lookup for enrichment.
        connection_data_policy (ConnectionDataPolicy): Forwarded to the
            :class:`SignalMerger`.
    """

    def __init__(
        self,
        provider: TriggerQueryProvider,
        profile_lookup: ProfileLookup,
        connection_data_policy: ConnectionDataPolicy = "last",
    ):
        self.provider = provider
        self.profile_lookup = profile_lookup
        self.merger = SignalMerger(connection_data_policy)

    async def process_all_triggers(self, filters: TriggerFilters, user_id: int) -> MergedFeed:
        """Run every enabled trigger concurrently and merge the results.

        Args:
            filters (TriggerFilters): Trigger selection and window.
            user_id (int): Requesting user, for network-scoped triggers.

        Returns:
            MergedFeed: Merged feed; empty if no trigger is enabled.
        """
        expanded = filters.expand()
        days = expanded.days or settings.DEFAULT_ACTIVITY_DAYS
        date_from = expanded.date_from or date_n_days_ago(days)
        date_to = expanded.date_to

        queries: List[Awaitable[TriggerQueryResult]] = []
        if expanded.bio_change:
            queries.append(self.provider.bio_changed(date_from, date_to))
        if expanded.stealth:
            queries.append(self.provider.stealth(expanded.stealth, date_from, date_to))
        if expanded.free_agent:
            queries.append(self.provider.free_agents(date_from, date_to))
        if expanded.linkedin_connection:
            queries.append(
                self.provider.linkedin_connections(
                    user_id,
                    expanded.linkedin_group_ids or expanded.group_ids,
                    date_from,
                    date_to,
                )
            )
        if expanded.twitter_follow and expanded.group_ids:
            queries.append(self.provider.followed_by_groups(user_id, expanded.group_ids, date_from, date_to))

        if not queries:
            return MergedFeed()

        results = await asyncio.gather(*queries)
        logger.info(
            "Trigger queries finished for user %s: %s",
            user_id,
            ", ".join(f"{r.trigger_type.value}={len(r)}" for r in results),
        )
        return self.merger.merge(results)

    async def get_person_activity(
        self,
        person_id: str,
        *,
        days: Optional[int] = None,
        include_twitter: bool = True,
        include_linkedin: bool = True,
        include_bio: bool = True,
        include_stealth: bool = True,
        include_free_agent: bool = True,
        max_bio_changes: Optional[int] = None,
    ) -> PersonActivity:
        """Assemble the activity timeline of one person.

        The profile is fetched first for its LinkedIn URN; the per-person
        queries then run concurrently and related people are enriched with
        one batch profile lookup. Related people missing from the lookup get
        placeholder names and network URLs.

        Args:
            person_id (str): Person to describe.
            days (Optional[int]): Lookback window.
            include_twitter (bool): Include Twitter follows in both directions.
            include_linkedin (bool): Include LinkedIn connections.
            include_bio (bool): Include stored bio changes.
            include_stealth (bool): Include the latest stealth transition.
            include_free_agent (bool): Include free-agent status.
            max_bio_changes (Optional[int]): Cap on bio changes listed.

        Returns:
            PersonActivity: Timeline (newest first) and summary counters.
        """
        days = days or settings.DEFAULT_ACTIVITY_DAYS
        date_from = date_n_days_ago(days)

        profile = await self.profile_lookup.by_id(person_id)
        linkedin_urn = profile.linkedin_urn if profile else None

        follows, followers, connections, stealth, free_agents = await asyncio.gather(
            self.provider.twitter_follows_by_person(person_id, date_from)
            if include_twitter
            else _empty(TriggerType.TWITTER_FOLLOW),
            self.provider.twitter_followers_of_person(person_id, date_from)
            if include_twitter
            else _empty(TriggerType.TWITTER_FOLLOWED_BY),
            self.provider.linkedin_connections_of_person(person_id, linkedin_urn, date_from)
            if include_linkedin
            else _no_connections(),
            self.provider.stealth_status([person_id], days) if include_stealth else _no_stealth(),
            self.provider.free_agents(date_from) if include_free_agent else _empty(TriggerType.FREE_AGENT),
        )

        related_ids = list(dict.fromkeys([*follows.person_ids, *followers.person_ids]))
        related_ids.extend(c.rest_id for c in connections if c.rest_id and c.rest_id not in related_ids)
        profiles = await self._profiles_by_id(related_ids)

        twitter_followers = [
            _twitter_person(pid, followers.dates.get(pid, ""), Direction.INCOMING, profiles.get(pid))
            for pid in followers.person_ids
        ]
        twitter_following = [
            _twitter_person(pid, follows.dates.get(pid, ""), Direction.OUTGOING, profiles.get(pid))
            for pid in follows.person_ids
        ]
        linkedin_connections = [
            _linkedin_person(conn, profiles.get(conn.rest_id) if conn.rest_id else None) for conn in connections
        ]
        bio_changes = _bio_changes(profile, max_bio_changes) if include_bio else []

        free_agent_details: Optional[FreeAgentDetails] = None
        if person_id in free_agents:
            free_agent_details = FreeAgentDetails(
                previous_company=profile.work_experience[0] if profile and profile.work_experience else None,
                previous_title=profile.job_titles[0] if profile and profile.job_titles else None,
                signal_date=free_agents.dates.get(person_id, ""),
            )
        stealth_event = stealth.get(person_id)

        activity: List[ActivityEvent] = []
        activity.extend(
            ActivityEvent(event_type=TriggerType.TWITTER_FOLLOWED_BY, date=p.connection_date, related_person=p)
            for p in twitter_followers
        )
        activity.extend(
            ActivityEvent(event_type=TriggerType.TWITTER_FOLLOW, date=p.connection_date, related_person=p)
            for p in twitter_following
        )
        activity.extend(
            ActivityEvent(event_type=TriggerType.LINKEDIN_CONNECTION, date=p.connection_date, related_person=p)
            for p in linkedin_connections
        )
        activity.extend(
            ActivityEvent(event_type=TriggerType.BIO_CHANGE, date=c.date, bio_change=c) for c in bio_changes
        )
        if stealth_event is not None:
            activity.append(
                ActivityEvent(
                    event_type=(
                        TriggerType.STEALTH_IN if stealth_event.type == StealthType.IN else TriggerType.STEALTH_OUT
                    ),
                    date=stealth_event.date,
                    stealth_details=StealthDetails(
                        type=stealth_event.type,
                        linkedin_url=stealth_event.linkedin_url,
                    ),
                )
            )
        if free_agent_details is not None:
            activity.append(
                ActivityEvent(
                    event_type=TriggerType.FREE_AGENT,
                    date=free_agent_details.signal_date,
                    free_agent_details=free_agent_details,
                )
            )
        activity.sort(key=lambda e: e.date, reverse=True)

        summary = ActivitySummary(
            twitter_followers_count=len(twitter_followers),
            twitter_following_count=len(twitter_following),
            linkedin_connections_count=len(linkedin_connections),
            bio_changes_count=len(bio_changes),
            has_stealth=stealth_event is not None,
            stealth_status=stealth_event.type if stealth_event else None,
            is_free_agent=free_agent_details is not None,
            last_activity_date=activity[0].date if activity else None,
        )
        return PersonActivity(
            twitter_followers=twitter_followers,
            twitter_following=twitter_following,
            linkedin_connections=linkedin_connections,
            bio_changes=bio_changes,
            activity=activity,
            summary=summary,
            free_agent_details=free_agent_details,
        )

    async def _profiles_by_id(self, ids: Sequence[str]) -> Dict[str, ProfileRecord]:
        if not ids:
            return {}
        try:
            profiles = await self.profile_lookup.by_ids(ids)
        except Exception as e:
            logger.warning("Profile enrichment failed for %d people: %s", len(ids), e)
            return {}
        return {p.user_id: p for p in profiles}


def _related_from_profile(
    profile: ProfileRecord,
    date: str,
    direction: Direction,
    source: Source,
) -> RelatedPerson:
    return RelatedPerson(
        user_id=profile.user_id,
        name=profile.name or "Unknown",
        screen_name=profile.screen_name,
        headline=profile.headline,
        profile_url=settings.profile_link(profile.user_id),
        profile_image_url=profile.profile_image_url,
        linkedin_url=profile.linkedin_url,
        connection_date=date,
        direction=direction,
        source=source,
    )


def _twitter_person(
    person_id: str,
    date: str,
    direction: Direction,
    profile: Optional[ProfileRecord],
) -> RelatedPerson:
    if profile is not None:
        return _related_from_profile(profile, date, direction, Source.TWITTER)
    return RelatedPerson(
        user_id=person_id,
        name="Unknown",
        profile_url=f"https://twitter.com/i/user/{person_id}",
        connection_date=date,
        direction=direction,
        source=Source.TWITTER,
    )


def _linkedin_person(conn: ConnectionIdentifier, profile: Optional[ProfileRecord]) -> RelatedPerson:
    if profile is not None:
        return _related_from_profile(profile, conn.date, conn.direction, Source.LINKEDIN)
    return RelatedPerson(
        user_id=conn.rest_id or conn.linkedin_urn or "unknown",
        name="Unknown",
        profile_url=f"https://linkedin.com/in/{conn.linkedin_urn}" if conn.linkedin_urn else "#",
        connection_date=conn.date,
        direction=conn.direction,
        source=Source.LINKEDIN,
    )


def _bio_changes(profile: Optional[ProfileRecord], limit: Optional[int]) -> List[BioChange]:
    if profile is None:
        return []
    records = profile.bio_changes[:limit] if limit is not None else profile.bio_changes
    return [
        BioChange(
            before=record.before.description,
            after=record.after.description,
            date=normalize_date(record.after.date or record.before.date),
        )
        for record in records
    ]
