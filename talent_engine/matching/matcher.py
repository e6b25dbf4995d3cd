"""Matcher facade: scores a page of candidates against a target and ranks them."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from talent_engine.config import MatchingConfig
from talent_engine.matching.scorer import (
    MatchCandidate,
    MatchResult,
    TargetProfile,
    rank_key,
    score_candidate,
)
from talent_engine.search.pipeline import CandidateSummary

logger = logging.getLogger("talent_engine.matching")


@dataclass
class RankedCandidate:
    summary: CandidateSummary
    match: MatchResult

    def to_dict(self) -> dict:
        return {**self.summary.to_dict(), "match": self.match.to_dict()}


def score_and_rank(
    candidates: list[CandidateSummary],
    target: TargetProfile,
    config: MatchingConfig,
) -> list[RankedCandidate]:
    """Score every candidate and return them in rank order.

    Scoring runs on a thread pool once the batch reaches
    ``config.parallel_threshold``. Order depends only on computed fields.
    """
    if not candidates:
        return []

    match_inputs = [MatchCandidate.from_signals(c.profile, c.candidate) for c in candidates]
    scale_max = config.assessment_scale_max

    def _score(candidate: MatchCandidate) -> MatchResult:
        return score_candidate(candidate, target, scale_max)

    if len(match_inputs) >= config.parallel_threshold and config.scoring_workers > 1:
        logger.debug("Scoring %d candidates on %d workers", len(match_inputs), config.scoring_workers)
        with ThreadPoolExecutor(max_workers=config.scoring_workers) as executor:
            results = list(executor.map(_score, match_inputs))
    else:
        results = [_score(c) for c in match_inputs]

    ranked = [RankedCandidate(summary=s, match=m) for s, m in zip(candidates, results)]
    ranked.sort(key=lambda r: rank_key(r.match))

    logger.info(
        "Ranked %d candidates (%d looking for work, top score %d)",
        len(ranked),
        sum(1 for r in ranked if r.match.looking_for_work),
        max(r.match.total for r in ranked),
    )
    return ranked
