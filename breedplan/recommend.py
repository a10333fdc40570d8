"""Pairing recommendation: all-pairs scoring and greedy mate assignment.

A run proceeds in five steps:
  1. Partition the population by sex (population order preserved)
  2. Enumerate and score every (male, female) pair once
  3. Greedy assignment: males in population order each take up to K of
     the best females nobody has claimed yet
  4. Compose one Recommendation per male that received a female
  5. Rank recommendations by overall score (display order only)

Step 2 dominates the cost (|males|·|females|·2^N) and may be fanned out
over a thread pool, one task per male row. Rows are merged back in male
order, so threaded and serial runs return identical results. Step 3 is
order-dependent and always runs sequentially over a single claim-set.

A pair whose trait vectors differ in length is recorded as skipped and
the run carries on.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from breedplan.config import RecommendConfig, default_config
from breedplan.errors import InputMismatch
from breedplan.inheritance import enumerate_offspring
from breedplan.perf import StageTimer
from breedplan.scoring import score_outcomes
from breedplan.types import (
    FemaleCandidate,
    Organism,
    PairScore,
    Recommendation,
    RecommendationResult,
    RecommendationSummary,
    RunStatus,
    Sex,
    SkippedPair,
    Trait,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# CANDIDATE RECORDS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PairCandidate:
    """A scored pair, tagged with the parents' positions in their sex group."""
    male_index: int
    female_index: int
    male: Organism
    female: Organism
    score: PairScore


@dataclass
class PairEvaluation:
    """All-pairs evaluation output, in male-major / female-minor order."""
    candidates: List[PairCandidate] = field(default_factory=list)
    skipped: List[SkippedPair] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════
# STEP 1: PARTITION
# ═══════════════════════════════════════════════════════════════════════

def partition_by_sex(population: Sequence[Organism]) -> Tuple[List[Organism], List[Organism]]:
    """Split a population into (males, females), keeping input order."""
    males = [o for o in population if o.sex == Sex.MALE]
    females = [o for o in population if o.sex == Sex.FEMALE]
    return males, females


# ═══════════════════════════════════════════════════════════════════════
# STEP 2: ALL-PAIRS EVALUATION
# ═══════════════════════════════════════════════════════════════════════

def evaluate_pair(
    male: Organism,
    female: Organism,
    target_value: Trait,
    config: Optional[RecommendConfig] = None,
) -> PairScore:
    """Enumerate and score a single pair.

    Raises:
        InputMismatch: If the parents' trait vectors differ in length.
    """
    config = config or default_config()
    outcomes = enumerate_offspring(
        male.traits, female.traits, model=config.inheritance.outcome_model,
    )
    return score_outcomes(
        outcomes,
        target_value,
        weights=config.scoring.weights(),
        high_purity_threshold=config.scoring.high_purity_threshold,
    )


def _evaluate_row(
    male_index: int,
    male: Organism,
    females: Sequence[Organism],
    target_value: Trait,
    config: RecommendConfig,
) -> PairEvaluation:
    row = PairEvaluation()
    for female_index, female in enumerate(females):
        try:
            score = evaluate_pair(male, female, target_value, config)
        except InputMismatch as exc:
            logger.warning("Skipping pair (%s, %s): %s", male.id, female.id, exc)
            row.skipped.append(SkippedPair(male.id, female.id, str(exc)))
            continue
        row.candidates.append(
            PairCandidate(male_index, female_index, male, female, score)
        )
    return row


def evaluate_pairs(
    males: Sequence[Organism],
    females: Sequence[Organism],
    target_value: Trait,
    config: Optional[RecommendConfig] = None,
) -> PairEvaluation:
    """Score every (male, female) pair.

    Uses ``config.recommend.parallel_workers`` threads when it is above 1.
    Output order is male-major, female-minor regardless of worker count.
    """
    config = config or default_config()
    workers = config.recommend.parallel_workers
    logger.debug(
        "Evaluating %d x %d pairs with %d worker(s)", len(males), len(females), workers,
    )

    if workers > 1 and len(males) > 1:
        with ThreadPoolExecutor(max_workers=min(workers, len(males))) as pool:
            rows = list(pool.map(
                lambda item: _evaluate_row(item[0], item[1], females, target_value, config),
                enumerate(males),
            ))
    else:
        rows = [
            _evaluate_row(i, male, females, target_value, config)
            for i, male in enumerate(males)
        ]

    merged = PairEvaluation()
    for row in rows:
        merged.candidates.extend(row.candidates)
        merged.skipped.extend(row.skipped)
    return merged


# ═══════════════════════════════════════════════════════════════════════
# STEPS 3-5: GREEDY ASSIGNMENT, COMPOSITION, RANKING
# ═══════════════════════════════════════════════════════════════════════

def assign_greedy(
    males: Sequence[Organism],
    candidates: Sequence[PairCandidate],
    max_females: int = 3,
) -> List[Recommendation]:
    """Give each male, in order, his best unclaimed females.

    Candidates are stably sorted by composite score, so equal scores keep
    the female order of ``candidates``. A female is claimed by at most one
    male. Males left with no available female get no recommendation.

    Returns:
        Recommendations in male order (not yet ranked).
    """
    if max_females < 1:
        raise ValueError(f"max_females must be >= 1, got {max_females}")

    by_male: Dict[int, List[PairCandidate]] = defaultdict(list)
    for cand in candidates:
        by_male[cand.male_index].append(cand)

    claimed: Set[int] = set()
    recommendations: List[Recommendation] = []
    for male_index, male in enumerate(males):
        available = [c for c in by_male[male_index] if c.female_index not in claimed]
        if not available:
            logger.debug("Male %s has no available female", male.id)
            continue

        chosen = sorted(
            available, key=lambda c: c.score.composite_score, reverse=True,
        )[:max_females]
        claimed.update(c.female_index for c in chosen)

        overall = sum(c.score.composite_score for c in chosen) / len(chosen)
        recommendations.append(Recommendation(
            male=male,
            females=tuple(FemaleCandidate(c.female, c.score) for c in chosen),
            overall_score=overall,
        ))
    return recommendations


def rank_recommendations(recommendations: Sequence[Recommendation]) -> List[Recommendation]:
    """Stable sort by overall score, best first."""
    return sorted(recommendations, key=lambda r: r.overall_score, reverse=True)


def summarize(
    evaluation: PairEvaluation,
    recommendations: Sequence[Recommendation],
) -> RecommendationSummary:
    """Run-level metrics over every scored candidate."""
    scores = [c.score for c in evaluation.candidates]
    return RecommendationSummary(
        total_pairings=len(scores),
        n_skipped=len(evaluation.skipped),
        best_composite_score=max((s.composite_score for s in scores), default=0.0),
        best_average_purity=max((s.average_purity for s in scores), default=0.0),
        best_max_purity=max((s.max_purity for s in scores), default=0.0),
        total_recommendations=len(recommendations),
    )


# ═══════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════

def recommend_pairings(
    population: Sequence[Organism],
    target_value: Trait,
    config: Optional[RecommendConfig] = None,
    max_females: Optional[int] = None,
    perf: Optional[StageTimer] = None,
) -> RecommendationResult:
    """Recommend mates that maximize offspring purity for ``target_value``.

    Args:
        population: Organisms to pair; read-only.
        target_value: Trait value to breed towards.
        config: Run configuration (defaults when None).
        max_females: Per-male cap K; overrides
            ``config.recommend.max_females_per_male``.
        perf: Optional StageTimer collecting per-stage timings.

    Returns:
        RecommendationResult. A population without males or without
        females gives status EMPTY_POPULATION_SEGMENT and no
        recommendations; it does not raise.

    Raises:
        ValueError: If the resolved cap K is below 1.
    """
    config = config or default_config()
    perf = perf or StageTimer(enabled=False)
    k = max_females if max_females is not None else config.recommend.max_females_per_male
    if k < 1:
        raise ValueError(f"max_females must be >= 1, got {k}")

    with perf.track("partition"):
        males, females = partition_by_sex(population)

    if not males or not females:
        message = (
            f"Not enough organisms to pair: {len(males)} male(s), "
            f"{len(females)} female(s)"
        )
        logger.info(message)
        return RecommendationResult(
            target_value=target_value,
            status=RunStatus.EMPTY_POPULATION_SEGMENT,
            n_males=len(males),
            n_females=len(females),
            message=message,
        )

    with perf.track("evaluate"):
        evaluation = evaluate_pairs(males, females, target_value, config)

    with perf.track("assign"):
        recommendations = rank_recommendations(
            assign_greedy(males, evaluation.candidates, max_females=k)
        )

    summary = summarize(evaluation, recommendations)
    if evaluation.candidates:
        status, message = RunStatus.OK, ""
    else:
        status = RunStatus.NO_VALID_PAIRS
        message = f"All {len(evaluation.skipped)} candidate pair(s) were skipped"

    logger.info(
        "Target %s: %d pairs scored, %d skipped, %d recommendation(s)",
        target_value, summary.total_pairings, summary.n_skipped,
        summary.total_recommendations,
    )
    return RecommendationResult(
        target_value=target_value,
        status=status,
        recommendations=tuple(recommendations),
        summary=summary,
        skipped=tuple(evaluation.skipped),
        n_males=len(males),
        n_females=len(females),
        message=message,
    )
