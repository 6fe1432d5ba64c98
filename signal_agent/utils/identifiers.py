# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Person identifier canonicalization.

LinkedIn identifiers reach us in several shapes:

  - raw URN:      ACoAADQvJI0BZ3Xmunvru9VCLWLTdHd6U2CYnzg
  - prefixed:     linkedin_ACoAADQvJI0B...  (also ``linkedin:`` / ``linkedin-``)
  - full URN:     urn:li:fsd_profile:ACoAADQvJI0B...
  - Twitter id:   1760723449503469569  (numeric rest_id)

Events for the same person can be derived from either side of a
relationship and in any of these shapes, so every comparison goes
through the canonical form or the lower-cased variant set.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Set, TypeVar

from signal_agent.schemas.providers import ProfileLookup
from signal_agent.schemas.triggers import ConnectionIdentifier

logger = logging.getLogger(__name__)

LINKEDIN_PREFIX = "linkedin_"
_ALT_PREFIXES = ("linkedin:", "linkedin-")
_URN_RE = re.compile(r"^urn:li:(?:fs_miniProfile|fsd_profile|people):(.+)$", re.IGNORECASE)
_TWITTER_ID_RE = re.compile(r"^\d+$")


def canonicalize_linkedin_id(value: Optional[str]) -> Optional[str]:
    """Reduce any LinkedIn id shape to the raw URN.

    Prefixes are stripped repeatedly (``linkedin_linkedin_X`` -> ``X``).
    Non-LinkedIn ids (e.g. numeric Twitter ids) are returned trimmed.

    Args:
        value (Optional[str]): Identifier in any supported shape.

    Returns:
        Optional[str]: Canonical identifier, or ``None`` for empty input.
    """
    if not value:
        return None
    current = value.strip()
    while current:
        lowered = current.lower()
        if lowered.startswith(LINKEDIN_PREFIX):
            current = current[len(LINKEDIN_PREFIX):].strip()
            continue
        if lowered.startswith(_ALT_PREFIXES):
            current = current[len(_ALT_PREFIXES[0]):].strip()
            continue
        match = _URN_RE.match(current)
        if match:
            return match.group(1)
        return current
    return None


def is_linkedin_id(value: Optional[str]) -> bool:
    """Whether *value* looks like a LinkedIn identifier."""
    if not value:
        return False
    lowered = value.strip().lower()
    return lowered.startswith((LINKEDIN_PREFIX, *_ALT_PREFIXES, "urn:li:", "acoa"))


def is_twitter_id(value: Optional[str]) -> bool:
    """Whether *value* is a numeric Twitter rest id."""
    return bool(value) and bool(_TWITTER_ID_RE.match(value.strip()))


def ensure_linkedin_prefix(urn: str) -> str:
    """Return *urn* with exactly one ``linkedin_`` prefix."""
    if urn.startswith(LINKEDIN_PREFIX):
        return urn
    return f"{LINKEDIN_PREFIX}{canonicalize_linkedin_id(urn) or urn}"


def remove_linkedin_prefix(urn: str) -> str:
    """Strip a single leading ``linkedin_`` prefix, if present."""
    if urn.startswith(LINKEDIN_PREFIX):
        return urn[len(LINKEDIN_PREFIX):]
    return urn


def get_all_linkedin_id_variants(value: str) -> List[str]:
    """Every lower-cased shape a LinkedIn id can be stored as.

    Args:
        value (str): Identifier in any supported shape.

    Returns:
        List[str]: Lower-cased variants, or ``[]`` for empty input.
    """
    canonical = canonicalize_linkedin_id(value)
    if not canonical:
        return []
    lower = canonical.lower()
    return [
        lower,
        f"linkedin_{lower}",
        f"linkedin:{lower}",
        f"linkedin-{lower}",
        f"urn:li:fsd_profile:{lower}",
        f"urn:li:fs_miniprofile:{lower}",
        f"urn:li:people:{lower}",
    ]


def build_allowed_identifier_set(ids: Iterable[str]) -> Set[str]:
    """Lower-cased identifier variants matching any of *ids*.

    Args:
        ids (Iterable[str]): Person ids (Twitter ids or LinkedIn URNs).

    Returns:
        Set[str]: Each id lower-cased, plus all variants of LinkedIn ids.
    """
    variants: Set[str] = set()
    for value in ids:
        if not value:
            continue
        variants.add(value.lower())
        if is_linkedin_id(value):
            variants.update(get_all_linkedin_id_variants(value))
    return variants


async def build_id_to_urn_map(
    person_ids: Iterable[str],
    profile_lookup: ProfileLookup,
) -> Dict[str, str]:
    """Map person ids to canonical LinkedIn URNs.

    LinkedIn-shaped ids are canonicalized directly; Twitter ids are
    resolved through the profile lookup. A lookup failure is logged and
    leaves the Twitter ids unmapped.

    Args:
        person_ids (Iterable[str]): Ids to map.
        profile_lookup (ProfileLookup): Source of ``linkedin_urn`` values.

    Returns:
        Dict[str, str]: Person id -> canonical URN, for resolvable ids only.
    """
    result: Dict[str, str] = {}
    twitter_ids: List[str] = []

    for person_id in person_ids:
        if is_linkedin_id(person_id):
            canonical = canonicalize_linkedin_id(person_id)
            if canonical:
                result[person_id] = canonical
        elif is_twitter_id(person_id):
            twitter_ids.append(person_id)

    if not twitter_ids:
        return result

    try:
        profiles = await profile_lookup.by_ids(twitter_ids)
    except Exception as e:
        logger.warning("Profile lookup failed while mapping %d ids to URNs: %s", len(twitter_ids), e)
        return result

    for profile in profiles:
        canonical = canonicalize_linkedin_id(profile.linkedin_urn)
        if canonical:
            result[profile.user_id] = canonical
    return result


def build_urn_to_id_map(id_to_urn: Mapping[str, str]) -> Dict[str, str]:
    """Reverse of :func:`build_id_to_urn_map`, keyed by lower-cased URN.

    Both the bare URN and its ``linkedin_`` form map back to the id.
    """
    result: Dict[str, str] = {}
    for person_id, urn in id_to_urn.items():
        lower = urn.lower()
        result[lower] = person_id
        result[f"{LINKEDIN_PREFIX}{lower}"] = person_id
    return result


def is_connection_allowed(identifier: ConnectionIdentifier, allowed: Set[str]) -> bool:
    """Whether a connection matches the allowed identifier set.

    An empty set allows everything.

    Args:
        identifier (ConnectionIdentifier): Connection to check.
        allowed (Set[str]): Lower-cased identifier variants.

    Returns:
        bool: ``True`` if the URN (any variant) or rest id is allowed.
    """
    if not allowed:
        return True
    if identifier.linkedin_urn:
        if any(v in allowed for v in get_all_linkedin_id_variants(identifier.linkedin_urn)):
            return True
    if identifier.rest_id and identifier.rest_id.lower() in allowed:
        return True
    return False


_C = TypeVar("_C", bound=ConnectionIdentifier)


def filter_connections_by_allowed_identifiers(
    connections_by_profile: Mapping[str, List[_C]],
    allowed: Set[str],
) -> Dict[str, List[_C]]:
    """Keep only allowed connections; profiles left with none are dropped.

    Args:
        connections_by_profile (Mapping[str, List[_C]]): Profile URN ->
            connections.
        allowed (Set[str]): Lower-cased identifier variants. Empty keeps
            everything.

    Returns:
        Dict[str, List[_C]]: Filtered copy.
    """
    if not allowed:
        return {urn: list(conns) for urn, conns in connections_by_profile.items()}

    filtered: Dict[str, List[_C]] = {}
    for urn, conns in connections_by_profile.items():
        kept = [c for c in conns if is_connection_allowed(c, allowed)]
        if kept:
            filtered[urn] = kept
    return filtered
