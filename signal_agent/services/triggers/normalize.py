# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Event normalization.

Turns raw trigger query rows into ``TriggerQueryResult`` values with
canonical ids and ``YYYY-MM-DD`` dates, so that the merger can compare
dates lexicographically and fold events for the same person.

Connection rows are special: a relationship between two tracked people
can be observed from either side, so each row is resolved into a display
profile (the person surfaced in the feed) and the connection on the
other side before folding.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from signal_agent.config import STEALTH_INTO_SUBSCRIPTION_IDS, STEALTH_OUT_SUBSCRIPTION_IDS
from signal_agent.schemas.triggers import (
    ConnectionData,
    ConnectionIdentifier,
    Direction,
    StealthEvent,
    StealthType,
    TriggerQueryResult,
    TriggerType,
)
from signal_agent.utils.identifiers import canonicalize_linkedin_id, is_linkedin_id

logger = logging.getLogger(__name__)

def _today() -> date:
    return datetime.now(timezone.utc).date()


def normalize_date(value: Any) -> str:
    """Normalize an event date to ``YYYY-MM-DD``.

    Accepts ``date`` / ``datetime`` objects, ISO 8601 strings and epoch
    seconds. Values carrying an offset are converted to UTC before the
    time part is dropped. A missing value means "today", matching rows
    whose date column is still open. Unparsable or out-of-range values
    yield an empty string.

    Args:
        value (Any): Raw date value.

    Returns:
        str: The normalized date string.
    """
    if value is None or value == "":
        return _today().isoformat()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc).date().isoformat()

    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparsable event date: %r", value)
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def date_n_days_ago(days: int, today: Optional[date] = None) -> str:
    """``YYYY-MM-DD`` of the day *days* before *today* (UTC)."""
    return ((today or _today()) - timedelta(days=days)).isoformat()


def get_stealth_type(subscription_id: Optional[str]) -> Optional[StealthType]:
    """Stealth transition encoded by a signal subscription id.

    Args:
        subscription_id (Optional[str]): Subscription id of a signal row.

    Returns:
        Optional[StealthType]: ``IN`` / ``OUT``, or ``None`` if the id is
            not a stealth subscription.
    """
    if not subscription_id:
        return None
    if subscription_id in STEALTH_INTO_SUBSCRIPTION_IDS:
        return StealthType.IN
    if subscription_id in STEALTH_OUT_SUBSCRIPTION_IDS:
        return StealthType.OUT
    return None


def canonical_person_id(value: Any) -> Optional[str]:
    """Canonical string form of a person id.

    LinkedIn-shaped ids are reduced to the raw URN with a single
    ``linkedin_`` prefix; other ids are stringified and stripped.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if is_linkedin_id(text):
        canonical = canonicalize_linkedin_id(text)
        return f"linkedin_{canonical}" if canonical else None
    return text


def _fold(dates: Dict[str, str], order: List[str], person_id: str, day: str) -> None:
    if not day:
        return
    existing = dates.get(person_id)
    if existing is None:
        order.append(person_id)
        dates[person_id] = day
    elif day > existing:
        dates[person_id] = day


def build_query_result(
    trigger_type: TriggerType,
    rows: Iterable[Mapping[str, Any]],
    *,
    id_key: str = "user_id",
    date_key: str = "date",
) -> TriggerQueryResult:
    """Fold raw ``(id, date)`` rows into a query result.

    Rows without an id are skipped. Each person keeps its most recent
    date; person order is first-seen.

    Args:
        trigger_type (TriggerType): Trigger the rows belong to.
        rows (Iterable[Mapping[str, Any]]): Raw rows.
        id_key (str): Row key holding the person id.
        date_key (str): Row key holding the event date.

    Returns:
        TriggerQueryResult: The folded result.
    """
    dates: Dict[str, str] = {}
    order: List[str] = []
    for row in rows:
        person_id = canonical_person_id(row.get(id_key))
        if not person_id:
            continue
        _fold(dates, order, person_id, normalize_date(row.get(date_key)))
    return TriggerQueryResult(trigger_type=trigger_type, person_ids=tuple(order), dates=dates)


def build_stealth_result(
    rows: Iterable[Mapping[str, Any]],
    types: Collection[StealthType],
) -> TriggerQueryResult:
    """Fold stealth signal rows into a query result.

    Rows carry ``user_id``, ``subscription_id``, ``date`` and an optional
    ``profile_url``. Rows whose subscription is not a requested stealth
    type are skipped. The result is typed ``STEALTH_IN`` whenever entries
    are requested, ``STEALTH_OUT`` otherwise; per-person direction is in
    ``stealth_events``.

    Args:
        rows (Iterable[Mapping[str, Any]]): Raw stealth rows.
        types (Collection[StealthType]): Requested transitions.

    Returns:
        TriggerQueryResult: Result with ``stealth_events`` populated.
    """
    trigger_type = TriggerType.STEALTH_IN if StealthType.IN in types else TriggerType.STEALTH_OUT
    if not types:
        return TriggerQueryResult.empty(trigger_type)

    dates: Dict[str, str] = {}
    order: List[str] = []
    events: List[StealthEvent] = []
    for row in rows:
        stealth_type = get_stealth_type(row.get("subscription_id"))
        if stealth_type is None or stealth_type not in types:
            continue
        person_id = canonical_person_id(row.get("user_id"))
        if not person_id:
            continue
        day = normalize_date(row.get("date"))
        if not day:
            continue
        events.append(
            StealthEvent(
                person_id=person_id,
                date=day,
                type=stealth_type,
                linkedin_url=row.get("profile_url") or None,
            )
        )
        _fold(dates, order, person_id, day)

    return TriggerQueryResult(
        trigger_type=trigger_type,
        person_ids=tuple(order),
        dates=dates,
        stealth_events=tuple(events),
    )


def _is_tracked(user_id: Optional[str], urn: Optional[str], ids: Set[str], urns: Set[str]) -> bool:
    return bool((user_id and user_id in ids) or (urn and urn in urns))


def build_connection_result(
    rows: Iterable[Mapping[str, Any]],
    tracked_ids: Sequence[str],
    tracked_urns: Sequence[str],
    allowed_identifiers: Optional[Set[str]] = None,
) -> TriggerQueryResult:
    """Resolve bidirectional connection rows into a query result.

    Each row links ``person_tracked_*`` to ``signal_profile_*``. The
    display profile is the side that is *not* tracked:

      - only the tracked-person side is tracked -> show the signal
        profile, connection direction ``INCOMING``;
      - only the signal-profile side is tracked -> show the tracked-person
        side, direction ``OUTGOING``;
      - both sides tracked -> show the signal profile, ``INCOMING``.

    Args:
        rows (Iterable[Mapping[str, Any]]): Raw connection rows with
            ``person_tracked_user_id``, ``person_tracked_urn``,
            ``signal_profile_user_id``, ``signal_profile_urn`` and ``date``.
        tracked_ids (Sequence[str]): Person ids the user tracks.
        tracked_urns (Sequence[str]): Canonical URNs of tracked people.
        allowed_identifiers (Optional[Set[str]]): Identifier variants the
            query was filtered against, forwarded in ``connection_data``.

    Returns:
        TriggerQueryResult: ``LINKEDIN_CONNECTION`` result with
            ``connection_data`` populated.
    """
    ids = {str(i) for i in tracked_ids}
    urns = set(tracked_urns)
    dates: Dict[str, str] = {}
    order: List[str] = []
    connections: Dict[str, List[ConnectionIdentifier]] = {}
    urn_to_person: Dict[str, str] = {}
    person_to_urn: Dict[str, str] = {}

    for row in rows:
        tracked_id = canonical_person_id(row.get("person_tracked_user_id"))
        tracked_urn = row.get("person_tracked_urn") or None
        signal_id = canonical_person_id(row.get("signal_profile_user_id"))
        signal_urn = row.get("signal_profile_urn") or None

        left_tracked = _is_tracked(tracked_id, tracked_urn, ids, urns)
        right_tracked = _is_tracked(signal_id, signal_urn, ids, urns)

        if right_tracked and not left_tracked:
            display_id, conn_id, conn_urn = tracked_id, signal_id, signal_urn
            direction = Direction.OUTGOING
        else:
            display_id, conn_id, conn_urn = signal_id, tracked_id, tracked_urn
            direction = Direction.INCOMING

        if not display_id:
            continue

        day = normalize_date(row.get("date"))
        if not day:
            continue
        _fold(dates, order, display_id, day)
        connections.setdefault(display_id, []).append(
            ConnectionIdentifier(linkedin_urn=conn_urn, rest_id=conn_id, date=day, direction=direction)
        )
        if conn_urn and conn_id:
            urn_to_person[conn_urn.lower()] = conn_id
            person_to_urn[conn_id] = conn_urn

    return TriggerQueryResult(
        trigger_type=TriggerType.LINKEDIN_CONNECTION,
        person_ids=tuple(order),
        dates=dates,
        connection_data=ConnectionData(
            connections_by_profile=connections,
            urn_to_person_id=urn_to_person,
            person_id_to_urn=person_to_urn,
            allowed_identifiers=allowed_identifiers,
        ),
    )
