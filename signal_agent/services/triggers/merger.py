# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Signal merging.

Combines the results of independent trigger queries into one feed with
a single entry per person. Dates are ``YYYY-MM-DD`` strings, so string
comparison is chronological.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Literal, Optional, Sequence

from signal_agent.schemas.triggers import (
    ConnectionData,
    ConnectionIdentifier,
    MergedEntry,
    MergedFeed,
    StealthEvent,
    TriggerEntry,
    TriggerQueryResult,
    TriggerType,
)

logger = logging.getLogger(__name__)

ConnectionDataPolicy = Literal["last", "union"]


def _latest_stealth(events: Sequence[StealthEvent]) -> Dict[str, StealthEvent]:
    latest: Dict[str, StealthEvent] = {}
    for event in events:
        current = latest.get(event.person_id)
        if current is None or event.date >= current.date:
            latest[event.person_id] = event
    return latest


def _latest_connection(conns: Sequence[ConnectionIdentifier]) -> Optional[ConnectionIdentifier]:
    latest: Optional[ConnectionIdentifier] = None
    for conn in conns:
        if latest is None or conn.date > latest.date:
            latest = conn
    return latest


def _entries_for(result: TriggerQueryResult) -> List[TriggerEntry]:
    """One audit entry per person of *result*."""
    stealth = _latest_stealth(result.stealth_events)
    connections = result.connection_data.connections_by_profile if result.connection_data else {}

    entries: List[TriggerEntry] = []
    for person_id in result.person_ids:
        # Undated people stay in the feed; a real date from any result wins.
        date = result.dates.get(person_id) or ""
        conn = _latest_connection(connections.get(person_id, ()))
        event = stealth.get(person_id)
        entries.append(
            TriggerEntry(
                person_id=person_id,
                trigger_type=result.trigger_type,
                date=date,
                related_person_id=conn.rest_id if conn else None,
                direction=conn.direction if conn else None,
                stealth_type=event.type if event else None,
            )
        )
    return entries


def _sort_feed(items: list, date_of, person_of) -> None:
    # Two stable passes: person id ascending, then date descending.
    items.sort(key=person_of)
    items.sort(key=date_of, reverse=True)


class SignalMerger:
    """Merges trigger query results into a :class:`MergedFeed`.

    Connection-bearing results carry a ``connection_data`` side-channel
    that the merge does not interpret. With ``connection_data_policy``
    ``"last"`` the last one seen is forwarded and an overwrite is logged;
    with ``"union"`` all of them are combined.

    Args:
        connection_data_policy (ConnectionDataPolicy): ``"last"`` or
            ``"union"``.

    Raises:
        ValueError: If the policy is not recognized.
    """

    def __init__(self, connection_data_policy: ConnectionDataPolicy = "last"):
        if connection_data_policy not in ("last", "union"):
            raise ValueError(f"Unknown connection_data_policy: {connection_data_policy!r}")
        self.connection_data_policy = connection_data_policy

    def merge(self, results: Sequence[TriggerQueryResult]) -> MergedFeed:
        """Merge *results* into one feed.

        For every person in every result the running max date is updated,
        the trigger type is recorded once (first-seen order) and one
        :class:`TriggerEntry` is emitted. Per-person aggregates and entries
        are sorted by date descending, ties by person id ascending.

        Args:
            results (Sequence[TriggerQueryResult]): Query results, any order.

        Returns:
            MergedFeed: The merged feed; empty for empty input.
        """
        dates_by_person: Dict[str, str] = {}
        triggers_by_person: Dict[str, List[TriggerType]] = {}
        entries: List[TriggerEntry] = []
        connection_data: Optional[ConnectionData] = None

        for result in results:
            for entry in _entries_for(result):
                existing = dates_by_person.get(entry.person_id)
                if existing is None or entry.date > existing:
                    dates_by_person[entry.person_id] = entry.date
                types = triggers_by_person.setdefault(entry.person_id, [])
                if entry.trigger_type not in types:
                    types.append(entry.trigger_type)
                entries.append(entry)

            if result.connection_data is not None:
                connection_data = self._merge_connection_data(connection_data, result)

        merged = [
            MergedEntry(
                person_id=person_id,
                trigger_types=tuple(triggers_by_person[person_id]),
                most_recent_date=date,
            )
            for person_id, date in dates_by_person.items()
        ]
        _sort_feed(merged, lambda e: e.most_recent_date, lambda e: e.person_id)
        _sort_feed(entries, lambda e: e.date, lambda e: (e.person_id, e.trigger_type.value))

        logger.debug(
            "Merged %d trigger results into %d people (%d entries)",
            len(results),
            len(merged),
            len(entries),
        )
        return MergedFeed(
            merged=merged,
            entries=entries,
            dates_by_person=dates_by_person,
            triggers_by_person=triggers_by_person,
            total_triggers_active=len(results),
            connection_data=connection_data,
        )

    def _merge_connection_data(
        self,
        current: Optional[ConnectionData],
        result: TriggerQueryResult,
    ) -> ConnectionData:
        incoming = result.connection_data
        if current is None:
            return incoming
        if self.connection_data_policy == "union":
            return current.union(incoming)
        logger.warning(
            "connection_data from %s overwrites earlier connection data (%d profiles dropped)",
            result.trigger_type.value,
            len(current.connections_by_profile),
        )
        return incoming


def merge_trigger_results(
    results: Sequence[TriggerQueryResult],
    connection_data_policy: ConnectionDataPolicy = "last",
) -> MergedFeed:
    """Functional form of :meth:`SignalMerger.merge`."""
    return SignalMerger(connection_data_policy).merge(results)
