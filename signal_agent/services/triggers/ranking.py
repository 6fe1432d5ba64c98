# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Relevance ranking of candidate people.

Scores are additive:

  - network proximity: 0 / 20 / 35 / 50 for 0 / 1-2 / 3-4 / 5+ network
    followers (only when ``boost_network``)
  - recent bio change: +20
  - signal volume: +min(2 * total_signals, 20)
  - previously liked: +10 (only when ``boost_liked``)
"""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Optional, Sequence

from signal_agent.schemas.providers import LikedSetLookup
from signal_agent.schemas.triggers import Candidate, RankingOptions, SignalContext

logger = logging.getLogger(__name__)

NETWORK_TIERS = ((5, 50), (3, 35), (1, 20))
BIO_CHANGE_BONUS = 20
SIGNAL_POINTS = 2
SIGNAL_CAP = 20
LIKED_BONUS = 10


def network_score(followed_by_count: int) -> int:
    """Points for the number of network members following the person."""
    for threshold, points in NETWORK_TIERS:
        if followed_by_count >= threshold:
            return points
    return 0


def score_candidate(
    person_id: str,
    ctx: SignalContext,
    liked: AbstractSet[str] = frozenset(),
    boost_network: bool = True,
    boost_liked: bool = True,
) -> int:
    """Relevance score of one candidate.

    Args:
        person_id (str): Candidate id, checked against *liked*.
        ctx (SignalContext): Signal evidence of the candidate.
        liked (AbstractSet[str]): Person ids the requesting user liked.
        boost_network (bool): Whether network proximity counts.
        boost_liked (bool): Whether the liked bonus applies.

    Returns:
        int: Non-negative score.
    """
    score = 0
    if boost_network:
        score += network_score(ctx.followed_by_count)
    if ctx.recent_bio_change:
        score += BIO_CHANGE_BONUS
    score += min(max(ctx.total_signals, 0) * SIGNAL_POINTS, SIGNAL_CAP)
    if boost_liked and person_id in liked:
        score += LIKED_BONUS
    return score


class RelevanceRanker:
    """Ranks candidates for the default feed order.

    Args:
        liked_lookup (LikedSetLookup): Source of the requesting user's liked
            and disliked person ids.
    """

    def __init__(self, liked_lookup: LikedSetLookup):
        self.liked_lookup = liked_lookup

    async def rank(
        self,
        candidates: Sequence[Candidate],
        user_id: int,
        options: Optional[RankingOptions] = None,
    ) -> List[Candidate]:
        """Score and sort *candidates*.

        A failing liked lookup is logged and ranking proceeds as if nothing
        were liked. Ties are broken by person id ascending.

        Args:
            candidates (Sequence[Candidate]): Candidates to rank.
            user_id (int): Requesting user.
            options (Optional[RankingOptions]): Scoring switches.

        Returns:
            List[Candidate]: Copies of the candidates with
                ``relevance_score`` set, highest score first.
        """
        if not candidates:
            return []
        options = options or RankingOptions()

        liked: AbstractSet[str] = frozenset()
        if options.boost_liked:
            try:
                liked = await self.liked_lookup.liked(user_id)
            except Exception as e:
                logger.warning("Liked lookup failed for user %s, ranking without it: %s", user_id, e)

        scored = [
            c.model_copy(
                update={
                    "relevance_score": score_candidate(
                        c.person_id,
                        c.signal_context,
                        liked,
                        boost_network=options.boost_network,
                        boost_liked=options.boost_liked,
                    )
                }
            )
            for c in candidates
        ]
        scored.sort(key=lambda c: (-c.relevance_score, c.person_id))
        return scored

    async def filter_by_user_preferences(self, candidates: Sequence[Candidate], user_id: int) -> List[Candidate]:
        """Drop candidates the user explicitly disliked.

        A failing lookup is logged and nothing is dropped.
        """
        try:
            disliked = await self.liked_lookup.disliked(user_id)
        except Exception as e:
            logger.warning("Disliked lookup failed for user %s, keeping all candidates: %s", user_id, e)
            return list(candidates)
        if not disliked:
            return list(candidates)
        return [c for c in candidates if c.person_id not in disliked]
