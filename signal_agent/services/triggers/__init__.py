# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Trigger aggregation module.

  Normalization  (normalize.py)
      Raw query rows -> ``TriggerQueryResult`` with canonical ids and
      ``YYYY-MM-DD`` dates.

  Merging  (merger.py)
      N query results -> one ``MergedFeed``, one entry per person.

  Orchestration  (service.py)
      Concurrent fan-out of the enabled queries, person activity timelines.

  Ranking  (ranking.py)
      Relevance scores for the default feed order.
"""

from signal_agent.services.triggers.merger import SignalMerger, merge_trigger_results
from signal_agent.services.triggers.normalize import (
    build_connection_result,
    build_query_result,
    build_stealth_result,
    canonical_person_id,
    date_n_days_ago,
    get_stealth_type,
    normalize_date,
)
from signal_agent.services.triggers.ranking import RelevanceRanker, network_score, score_candidate
from signal_agent.services.triggers.service import TriggerFilters, TriggerService

__all__ = [
    "SignalMerger",
    "merge_trigger_results",
    "build_connection_result",
    "build_query_result",
    "build_stealth_result",
    "canonical_person_id",
    "date_n_days_ago",
    "get_stealth_type",
    "normalize_date",
    "RelevanceRanker",
    "network_score",
    "score_candidate",
    "TriggerFilters",
    "TriggerService",
]
