# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Trigger, feed and activity schemas for the signal aggregation system.

Query results and merged feeds are per-request values: they are built
once, handed to the caller and discarded. Query results are frozen;
merged feeds are plain containers owned by whoever requested them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field


class TriggerType(str, Enum):
    """Kinds of signals detected by independent trigger queries.

    Attributes:
        TWITTER_FOLLOW (str): The person followed someone (outgoing).
        TWITTER_FOLLOWED_BY (str): The person was followed (incoming).
        LINKEDIN_CONNECTION (str): New LinkedIn connection (bidirectional).
        BIO_CHANGE (str): Bio / headline updated.
        STEALTH_IN (str): Entered LinkedIn stealth mode.
        STEALTH_OUT (str): Left LinkedIn stealth mode.
        FREE_AGENT (str): Left a company without a new role.
    """

    TWITTER_FOLLOW = "twitter_follow"
    TWITTER_FOLLOWED_BY = "twitter_followed_by"
    LINKEDIN_CONNECTION = "linkedin_connection"
    BIO_CHANGE = "bio_change"
    STEALTH_IN = "stealth_in"
    STEALTH_OUT = "stealth_out"
    FREE_AGENT = "free_agent"


class Direction(str, Enum):
    """Direction of a relationship event relative to the subject."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"
    MUTUAL = "mutual"


class StealthType(str, Enum):
    """Stealth mode transition."""

    IN = "in"
    OUT = "out"


class Source(str, Enum):
    """Network a relationship was observed on."""

    TWITTER = "twitter"
    LINKEDIN = "linkedin"


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StealthEvent:
    """One stealth transition of a person."""

    person_id: str
    date: str
    type: StealthType
    linkedin_url: Optional[str] = None


@dataclass(frozen=True)
class ConnectionIdentifier:
    """The other side of a LinkedIn connection.

    Attributes:
        linkedin_urn (Optional[str]): Canonical LinkedIn URN, if known.
        rest_id (Optional[str]): Internal profile id, if resolved.
        date (str): Connection date (``YYYY-MM-DD``).
        direction (Direction): Who initiated, relative to the profile.
    """

    linkedin_urn: Optional[str]
    rest_id: Optional[str]
    date: str
    direction: Direction


@dataclass
class ConnectionData:
    """Side-channel of connection-type results: who connects to whom.

    Attributes:
        connections_by_profile (Dict[str, List[ConnectionIdentifier]]):
            Profile URN -> connections observed in the window.
        urn_to_person_id (Dict[str, str]): Lower-cased URN variants -> id.
        person_id_to_urn (Dict[str, str]): Person id -> canonical URN.
        allowed_identifiers (Optional[Set[str]]): Identifier variants the
            connections were filtered against, if any.
    """

    connections_by_profile: Dict[str, List[ConnectionIdentifier]] = field(default_factory=dict)
    urn_to_person_id: Dict[str, str] = field(default_factory=dict)
    person_id_to_urn: Dict[str, str] = field(default_factory=dict)
    allowed_identifiers: Optional[Set[str]] = None

    def union(self, other: "ConnectionData") -> "ConnectionData":
        """New ``ConnectionData`` holding the entries of both.

        Connection lists of the same profile are concatenated without
        duplicates; for scalar map entries *other* wins.
        """
        connections: Dict[str, List[ConnectionIdentifier]] = {
            urn: list(conns) for urn, conns in self.connections_by_profile.items()
        }
        for urn, conns in other.connections_by_profile.items():
            existing = connections.setdefault(urn, [])
            for conn in conns:
                if conn not in existing:
                    existing.append(conn)

        allowed: Optional[Set[str]] = None
        if self.allowed_identifiers is not None or other.allowed_identifiers is not None:
            allowed = set(self.allowed_identifiers or ()) | set(other.allowed_identifiers or ())

        return ConnectionData(
            connections_by_profile=connections,
            urn_to_person_id={**self.urn_to_person_id, **other.urn_to_person_id},
            person_id_to_urn={**self.person_id_to_urn, **other.person_id_to_urn},
            allowed_identifiers=allowed,
        )


@dataclass(frozen=True)
class TriggerQueryResult:
    """Result of one trigger query.

    Attributes:
        trigger_type (TriggerType): Which trigger produced the result.
        person_ids (Tuple[str, ...]): Matched people, first-seen order, no
            duplicates.
        dates (Mapping[str, str]): Person id -> most recent event date
            (``YYYY-MM-DD``).
        stealth_events (Tuple[StealthEvent, ...]): Stealth details, for
            stealth triggers.
        connection_data (Optional[ConnectionData]): Connection side-channel,
            for connection triggers.
    """

    trigger_type: TriggerType
    person_ids: Tuple[str, ...] = ()
    dates: Mapping[str, str] = field(default_factory=dict)
    stealth_events: Tuple[StealthEvent, ...] = ()
    connection_data: Optional[ConnectionData] = None

    @classmethod
    def empty(cls, trigger_type: TriggerType) -> "TriggerQueryResult":
        return cls(trigger_type=trigger_type)

    def __contains__(self, person_id: object) -> bool:
        return person_id in self.dates

    def __len__(self) -> int:
        return len(self.person_ids)


# ---------------------------------------------------------------------------
# Merged feed
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TriggerEntry:
    """One (person, trigger) occurrence, kept for auditability."""

    person_id: str
    trigger_type: TriggerType
    date: str
    related_person_id: Optional[str] = None
    direction: Optional[Direction] = None
    stealth_type: Optional[StealthType] = None


@dataclass(frozen=True)
class MergedEntry:
    """Per-person aggregate across all trigger results.

    Attributes:
        person_id (str): Person identifier.
        trigger_types (Tuple[TriggerType, ...]): Every trigger the person
            matched, first-seen order, no duplicates.
        most_recent_date (str): Max date over all matching triggers.
    """

    person_id: str
    trigger_types: Tuple[TriggerType, ...]
    most_recent_date: str


@dataclass
class MergedFeed:
    """Ranked, deduplicated feed produced by the signal merger.

    Iterating a feed yields its ``MergedEntry`` items in rank order.

    Attributes:
        merged (List[MergedEntry]): One entry per person, newest first,
            ties by person id ascending.
        entries (List[TriggerEntry]): One entry per (person, result) pair,
            same ordering.
        dates_by_person (Dict[str, str]): Person id -> most recent date.
        triggers_by_person (Dict[str, List[TriggerType]]): Person id ->
            matched trigger types.
        total_triggers_active (int): Number of merged results.
        connection_data (Optional[ConnectionData]): Forwarded connection
            side-channel.
    """

    merged: List[MergedEntry] = field(default_factory=list)
    entries: List[TriggerEntry] = field(default_factory=list)
    dates_by_person: Dict[str, str] = field(default_factory=dict)
    triggers_by_person: Dict[str, List[TriggerType]] = field(default_factory=dict)
    total_triggers_active: int = 0
    connection_data: Optional[ConnectionData] = None

    def __iter__(self) -> Iterator[MergedEntry]:
        return iter(self.merged)

    def __len__(self) -> int:
        return len(self.merged)

    @property
    def person_ids(self) -> List[str]:
        return [entry.person_id for entry in self.merged]


# ---------------------------------------------------------------------------
# Profiles and activity
# ---------------------------------------------------------------------------


class BioSnapshot(BaseModel):
    """Bio text at a point in time."""

    description: str = ""
    date: Optional[str] = None


class BioChangeRecord(BaseModel):
    """Stored before/after pair of a bio change."""

    before: BioSnapshot
    after: BioSnapshot


class ProfileRecord(BaseModel):
    """Profile document returned by the profile lookup.

    Unknown fields are preserved so tool results can carry them through.
    """

    model_config = ConfigDict(extra="allow")

    user_id: str
    name: Optional[str] = None
    screen_name: Optional[str] = None
    headline: Optional[str] = None
    profile_image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    linkedin_urn: Optional[str] = None
    trending_score: Optional[float] = None
    bio_changes: List[BioChangeRecord] = Field(default_factory=list)
    work_experience: List[str] = Field(default_factory=list)
    job_titles: List[str] = Field(default_factory=list)


class RelatedPerson(BaseModel):
    """A person on the other side of a relationship event."""

    user_id: str
    name: str
    screen_name: Optional[str] = None
    headline: Optional[str] = None
    profile_url: str
    profile_image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    connection_date: str
    direction: Direction
    source: Source


class BioChange(BaseModel):
    """A bio change shown on a timeline."""

    before: str
    after: str
    date: str


class FreeAgentDetails(BaseModel):
    """Context for a free-agent signal."""

    previous_company: Optional[str] = None
    previous_title: Optional[str] = None
    signal_date: str


class StealthDetails(BaseModel):
    """Context for a stealth transition."""

    type: StealthType
    linkedin_url: Optional[str] = None


class ActivityEvent(BaseModel):
    """A single event on a person's activity timeline."""

    event_type: TriggerType
    date: str
    related_person: Optional[RelatedPerson] = None
    bio_change: Optional[BioChange] = None
    stealth_details: Optional[StealthDetails] = None
    free_agent_details: Optional[FreeAgentDetails] = None


class ActivitySummary(BaseModel):
    """Counters over a person's activity."""

    twitter_followers_count: int = 0
    twitter_following_count: int = 0
    linkedin_connections_count: int = 0
    bio_changes_count: int = 0
    has_stealth: bool = False
    stealth_status: Optional[StealthType] = None
    is_free_agent: bool = False
    last_activity_date: Optional[str] = None


class PersonActivity(BaseModel):
    """Complete activity data for a person."""

    twitter_followers: List[RelatedPerson] = Field(default_factory=list)
    twitter_following: List[RelatedPerson] = Field(default_factory=list)
    linkedin_connections: List[RelatedPerson] = Field(default_factory=list)
    bio_changes: List[BioChange] = Field(default_factory=list)
    activity: List[ActivityEvent] = Field(default_factory=list)
    summary: ActivitySummary = Field(default_factory=ActivitySummary)
    free_agent_details: Optional[FreeAgentDetails] = None


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class SignalContext(BaseModel):
    """Signal evidence attached to a ranking candidate.

    Attributes:
        followed_by (List[str]): Screen names of network members following
            the person.
        followed_by_count (int): Number of network followers.
        recent_bio_change (Optional[str]): Date of the latest bio change in
            the window, if any.
        stealth_status (Optional[StealthType]): Latest stealth transition.
        signal_breakdown (Dict[str, int]): Counts per signal family.
        total_signals (int): Total signal count.
    """

    followed_by: List[str] = Field(default_factory=list)
    followed_by_count: int = 0
    recent_bio_change: Optional[str] = None
    stealth_status: Optional[StealthType] = None
    signal_breakdown: Dict[str, int] = Field(default_factory=dict)
    total_signals: int = 0


class Candidate(BaseModel):
    """A person considered for ranking."""

    model_config = ConfigDict(extra="allow")

    person_id: str
    signal_context: SignalContext = Field(default_factory=SignalContext)
    relevance_score: Optional[int] = None


class RankingOptions(BaseModel):
    """Switches for relevance ranking."""

    boost_network: bool = True
    boost_liked: bool = True
