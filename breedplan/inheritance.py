"""Offspring trait-combination enumeration.

Independent per-locus bi-parental inheritance: at every locus the
offspring takes either the father's or the mother's value, each with
probability 1/2, independently of every other locus (no dominance,
linkage or mutation).

Core responsibilities:
  - Full enumeration of the 2^N offspring trait vectors of a pair
  - Per-locus inheritance probability of a given value
  - Optional collapse of duplicate trait vectors ("distinct" model)
  - Outcome-count statistics for a group of pairs

Outcome order is canonical: index k of the enumeration picks, for locus
i, the male value when bit (N-1-i) of k is 0 and the female value when
it is 1. Index 0 is therefore the all-male vector and the last index the
all-female vector, which is exactly the order of a male-first
depth-first walk. Downstream tie-breaks rely on this order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from breedplan.errors import InputMismatch
from breedplan.types import BreedingPair, OffspringOutcome, Trait


OUTCOME_MODELS = ("branch", "distinct")


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATION
# ═══════════════════════════════════════════════════════════════════════


def _check_lengths(male_traits: Sequence[Trait],
                   female_traits: Sequence[Trait]) -> int:
    n_male, n_female = len(male_traits), len(female_traits)
    if n_male != n_female:
        raise InputMismatch(n_male, n_female)
    return n_male


def origin_matrix(n_loci: int) -> np.ndarray:
    """Parental origin of every locus for every enumeration index.

    Args:
        n_loci: Number of loci N.

    Returns:
        (2^N, N) bool array; True where the locus comes from the female.
    """
    index = np.arange(2 ** n_loci, dtype=np.int64)
    shifts = np.arange(n_loci - 1, -1, -1, dtype=np.int64)
    return ((index[:, None] >> shifts[None, :]) & 1).astype(bool)


def enumerate_offspring(
    male_traits: Sequence[Trait],
    female_traits: Sequence[Trait],
    model: str = "branch",
) -> List[OffspringOutcome]:
    """Every offspring trait vector a pair can produce.

    Under the default "branch" model the male-origin and female-origin
    branches of a locus are kept apart even when both parents carry the
    same value, so the result always holds exactly 2^N outcomes of
    probability 1/2^N and may contain repeated trait vectors. The
    "distinct" model merges those repeats (see ``collapse_outcomes``).

    Args:
        male_traits: Father's trait vector (length N).
        female_traits: Mother's trait vector (length N).
        model: "branch" (default) or "distinct".

    Returns:
        Outcomes in canonical male-first order. N = 0 yields a single
        empty outcome with probability 1.0.

    Raises:
        InputMismatch: If the vectors differ in length.
        ValueError: If ``model`` is unknown.
    """
    if model not in OUTCOME_MODELS:
        raise ValueError(f"model must be one of {OUTCOME_MODELS}, got '{model}'")
    n_loci = _check_lengths(male_traits, female_traits)

    n_outcomes = 2 ** n_loci
    probability = 1.0 / n_outcomes

    if n_loci == 0:
        outcomes = [OffspringOutcome(traits=(), probability=probability)]
    else:
        # Object arrays keep each parent value as given (no dtype promotion).
        male = np.asarray(male_traits, dtype=object)
        female = np.asarray(female_traits, dtype=object)
        combos = np.where(origin_matrix(n_loci), female[None, :], male[None, :])
        outcomes = [
            OffspringOutcome(traits=tuple(row), probability=probability)
            for row in combos.tolist()
        ]

    if model == "distinct":
        return collapse_outcomes(outcomes)
    return outcomes


def enumerate_pair(pair: BreedingPair, model: str = "branch") -> List[OffspringOutcome]:
    """``enumerate_offspring`` over a BreedingPair."""
    return enumerate_offspring(pair.male.traits, pair.female.traits, model=model)


def collapse_outcomes(outcomes: Iterable[OffspringOutcome]) -> List[OffspringOutcome]:
    """Merge outcomes with identical trait vectors.

    Probabilities of merged outcomes are summed; the first occurrence
    fixes the position of a trait vector in the result.
    """
    merged: Dict[Tuple[Trait, ...], float] = {}
    for outcome in outcomes:
        merged[outcome.traits] = merged.get(outcome.traits, 0.0) + outcome.probability
    return [OffspringOutcome(traits=t, probability=p) for t, p in merged.items()]


# ═══════════════════════════════════════════════════════════════════════
# PER-LOCUS PROBABILITY
# ═══════════════════════════════════════════════════════════════════════


def locus_probability(
    male_traits: Sequence[Trait],
    female_traits: Sequence[Trait],
    locus: int,
    value: Trait,
) -> float:
    """Probability that an offspring carries ``value`` at ``locus``.

    Each parent contributes with probability 1/2, so the result is 0.0,
    0.5 or 1.0.

    Raises:
        InputMismatch: If the vectors differ in length.
        IndexError: If ``locus`` is outside [0, N).
    """
    n_loci = _check_lengths(male_traits, female_traits)
    if not 0 <= locus < n_loci:
        raise IndexError(f"locus {locus} out of range for {n_loci} loci")
    hits = int(male_traits[locus] == value) + int(female_traits[locus] == value)
    return hits / 2


# ═══════════════════════════════════════════════════════════════════════
# MATING GROUPS
# ═══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MatingGroupStats:
    """Outcome counts across a group of pairs."""
    total_pairs: int
    total_outcomes: int
    mean_outcomes_per_pair: float


def mating_group_stats(pairs: Sequence[BreedingPair], model: str = "branch") -> MatingGroupStats:
    """Count the offspring outcomes of every pair in a group.

    Raises:
        InputMismatch: If any pair has mismatched trait vectors.
    """
    total = sum(len(enumerate_pair(p, model=model)) for p in pairs)
    n_pairs = len(pairs)
    return MatingGroupStats(
        total_pairs=n_pairs,
        total_outcomes=total,
        mean_outcomes_per_pair=total / n_pairs if n_pairs else 0.0,
    )
