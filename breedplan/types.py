"""Core data types for breedplan.

This module is the SINGLE SOURCE OF TRUTH for:
  - Sex and RunStatus enumerations
  - Organism / BreedingPair input records
  - OffspringOutcome, PairScore scoring records
  - Recommendation run output (FemaleCandidate, Recommendation,
    SkippedPair, RecommendationSummary, RecommendationResult)

All records are frozen dataclasses: the population is read-only for the
duration of a recommendation run and no module mutates these objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional, Tuple, Union

OrganismId = Union[str, int]
Trait = Union[int, float]


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class Sex(IntEnum):
    """Binary sex tag. Integer values match the 0=female, 1=male convention."""
    FEMALE = 0
    MALE   = 1

    @classmethod
    def parse(cls, value: Any) -> "Sex":
        """Coerce a record tag ("male", "F", 1, Sex.MALE, ...) to a Sex.

        Raises:
            ValueError: If the tag is not recognised.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            tag = value.strip().lower()
            if tag in ("male", "m"):
                return cls.MALE
            if tag in ("female", "f"):
                return cls.FEMALE
            raise ValueError(f"Unknown sex tag: {value!r}")
        if isinstance(value, bool):
            raise ValueError(f"Unknown sex tag: {value!r}")
        if isinstance(value, int) and value in (0, 1):
            return cls(value)
        raise ValueError(f"Unknown sex tag: {value!r}")

    @property
    def label(self) -> str:
        return self.name.lower()


class RunStatus(str, Enum):
    """Outcome of a recommendation run."""
    OK                       = "ok"
    EMPTY_POPULATION_SEGMENT = "empty_population_segment"  # no males or no females
    NO_VALID_PAIRS           = "no_valid_pairs"            # every pair was skipped


# ═══════════════════════════════════════════════════════════════════════
# INPUT RECORDS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Organism:
    """One individual of the population.

    ``mature`` and ``next_breeding_time`` are carried through untouched;
    the pairing algorithms only read ``traits`` and ``sex``.
    """
    id: OrganismId
    traits: Tuple[Trait, ...]
    sex: Sex
    mature: bool = True
    next_breeding_time: Optional[Any] = None

    def __post_init__(self):
        # Accept any sequence on construction, store an immutable tuple.
        object.__setattr__(self, 'traits', tuple(self.traits))
        object.__setattr__(self, 'sex', Sex.parse(self.sex))

    @property
    def n_loci(self) -> int:
        return len(self.traits)

    def info(self) -> dict:
        """Plain-dict view used by reports and JSON output."""
        return {
            'id': self.id,
            'traits': list(self.traits),
            'sex': self.sex.label,
            'mature': self.mature,
        }


@dataclass(frozen=True)
class BreedingPair:
    """Ordered (male, female) pair under evaluation."""
    male: Organism
    female: Organism


# ═══════════════════════════════════════════════════════════════════════
# SCORING RECORDS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OffspringOutcome:
    """One possible offspring trait vector and its probability weight."""
    traits: Tuple[Trait, ...]
    probability: float


@dataclass(frozen=True)
class PairScore:
    """Reduction of one pair's offspring set against a target value.

    composite_score ∈ [0, 1] whenever the composite weights are
    non-negative and sum to 1.
    """
    average_purity: float
    max_purity: float
    best_offspring: Tuple[Trait, ...]
    high_purity_count: int
    perfect_count: int
    high_purity_ratio: float
    perfect_ratio: float
    composite_score: float
    n_outcomes: int


# ═══════════════════════════════════════════════════════════════════════
# RECOMMENDATION OUTPUT
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FemaleCandidate:
    """A female proposed for a male, with the pair's score."""
    female: Organism
    score: PairScore


@dataclass(frozen=True)
class Recommendation:
    """One male bound to his best available females."""
    male: Organism
    females: Tuple[FemaleCandidate, ...]
    overall_score: float

    @property
    def female_ids(self) -> Tuple[OrganismId, ...]:
        return tuple(c.female.id for c in self.females)


@dataclass(frozen=True)
class SkippedPair:
    """A candidate pair that could not be evaluated."""
    male_id: OrganismId
    female_id: OrganismId
    reason: str


@dataclass(frozen=True)
class RecommendationSummary:
    """Run-level metrics over ALL scored candidate pairs."""
    total_pairings: int = 0
    n_skipped: int = 0
    best_composite_score: float = 0.0
    best_average_purity: float = 0.0
    best_max_purity: float = 0.0
    total_recommendations: int = 0


@dataclass(frozen=True)
class RecommendationResult:
    """Everything a recommendation run hands back to its caller."""
    target_value: Trait
    status: RunStatus
    recommendations: Tuple[Recommendation, ...] = ()
    summary: RecommendationSummary = field(default_factory=RecommendationSummary)
    skipped: Tuple[SkippedPair, ...] = ()
    n_males: int = 0
    n_females: int = 0
    message: str = ""
