"""Purity scoring of offspring sets.

Purity of a trait vector is the fraction of its loci equal to the target
value (0 for a vector with no loci). A pair's offspring set is reduced
to a PairScore: average and maximum purity, counts and ratios of
high-purity and perfect outcomes, and a weighted composite of four of
those metrics.

Composite weights default to 0.4 (average) / 0.3 (max) / 0.2 (high-
purity ratio) / 0.1 (perfect ratio) and are overridable through
``ScoringSection`` in the run configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from breedplan.types import OffspringOutcome, Organism, PairScore, Trait


# ═══════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

HIGH_PURITY_THRESHOLD: float = 2 / 3


@dataclass(frozen=True)
class CompositeWeights:
    """Weights of the composite score; non-negative, summing to 1."""
    average: float = 0.4
    max: float = 0.3
    high_purity: float = 0.2
    perfect: float = 0.1

    @property
    def total(self) -> float:
        return self.average + self.max + self.high_purity + self.perfect


DEFAULT_WEIGHTS = CompositeWeights()


# ═══════════════════════════════════════════════════════════════════════
# PURITY
# ═══════════════════════════════════════════════════════════════════════


def trait_purity(traits: Sequence[Trait], target_value: Trait) -> float:
    """Fraction of loci equal to ``target_value``; 0.0 when there are no loci."""
    if len(traits) == 0:
        return 0.0
    return sum(1 for t in traits if t == target_value) / len(traits)


def organism_purity(organism: Organism, target_value: Trait) -> float:
    """Purity of an organism's own trait vector."""
    return trait_purity(organism.traits, target_value)


def outcome_purities(outcomes: Sequence[OffspringOutcome], target_value: Trait) -> np.ndarray:
    """Vectorized purity of every outcome.

    Args:
        outcomes: Non-empty outcome list; all vectors share one length N.
        target_value: Trait value being selected for.

    Returns:
        (len(outcomes),) float64 array, in outcome order.
    """
    n_loci = len(outcomes[0].traits)
    if n_loci == 0:
        return np.zeros(len(outcomes), dtype=np.float64)
    matrix = np.array([o.traits for o in outcomes], dtype=object)
    hits = (matrix == target_value).astype(bool).sum(axis=1)
    return hits / n_loci


# ═══════════════════════════════════════════════════════════════════════
# PAIR SCORE
# ═══════════════════════════════════════════════════════════════════════


def score_outcomes(
    outcomes: Sequence[OffspringOutcome],
    target_value: Trait,
    weights: Optional[CompositeWeights] = None,
    high_purity_threshold: float = HIGH_PURITY_THRESHOLD,
) -> PairScore:
    """Reduce an offspring set to a PairScore.

    average_purity is the plain mean over all outcomes (repeated vectors
    included) when probabilities are uniform, as under the 2^N
    enumeration, and the probability-weighted mean otherwise.
    best_offspring is the first outcome (in the given order) that attains
    max_purity.

    Args:
        outcomes: Offspring set from ``enumerate_offspring``.
        target_value: Trait value being selected for.
        weights: Composite weights (default 0.4/0.3/0.2/0.1).
        high_purity_threshold: Minimum purity counted as high purity.

    Returns:
        PairScore for the set.

    Raises:
        ValueError: If ``outcomes`` is empty.
    """
    if len(outcomes) == 0:
        raise ValueError("cannot score an empty offspring set")
    w = weights or DEFAULT_WEIGHTS

    purities = outcome_purities(outcomes, target_value)
    probs = np.array([o.probability for o in outcomes], dtype=np.float64)
    n_outcomes = len(outcomes)
    n_loci = len(outcomes[0].traits)

    if np.all(probs == probs[0]):
        average_purity = float(purities.mean())
    else:
        average_purity = float(np.dot(purities, probs))
    best_idx = int(np.argmax(purities))   # argmax returns the first maximum
    max_purity = float(purities[best_idx])

    high_purity_count = int(np.count_nonzero(purities >= high_purity_threshold))
    perfect_count = int(np.count_nonzero(purities == 1.0)) if n_loci > 0 else 0
    high_purity_ratio = high_purity_count / n_outcomes
    perfect_ratio = perfect_count / n_outcomes

    composite = (
        w.average * average_purity
        + w.max * max_purity
        + w.high_purity * high_purity_ratio
        + w.perfect * perfect_ratio
    )

    return PairScore(
        average_purity=average_purity,
        max_purity=max_purity,
        best_offspring=outcomes[best_idx].traits,
        high_purity_count=high_purity_count,
        perfect_count=perfect_count,
        high_purity_ratio=high_purity_ratio,
        perfect_ratio=perfect_ratio,
        composite_score=float(composite),
        n_outcomes=n_outcomes,
    )
