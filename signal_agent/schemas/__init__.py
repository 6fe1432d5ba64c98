# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Schemas for trigger queries, merged feeds, activity and ranking."""
from .providers import LikedSetLookup, ProfileLookup, TriggerQueryProvider
from .triggers import (
    ActivityEvent,
    ActivitySummary,
    BioChange,
    Candidate,
    ConnectionData,
    ConnectionIdentifier,
    Direction,
    MergedEntry,
    MergedFeed,
    PersonActivity,
    ProfileRecord,
    RankingOptions,
    RelatedPerson,
    SignalContext,
    StealthEvent,
    StealthType,
    TriggerEntry,
    TriggerQueryResult,
    TriggerType,
)

__all__ = [
    "LikedSetLookup",
    "ProfileLookup",
    "TriggerQueryProvider",
    "ActivityEvent",
    "ActivitySummary",
    "BioChange",
    "Candidate",
    "ConnectionData",
    "ConnectionIdentifier",
    "Direction",
    "MergedEntry",
    "MergedFeed",
    "PersonActivity",
    "ProfileRecord",
    "RankingOptions",
    "RelatedPerson",
    "SignalContext",
    "StealthEvent",
    "StealthType",
    "TriggerEntry",
    "TriggerQueryResult",
    "TriggerType",
]
