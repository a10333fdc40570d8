"""breedplan: offspring trait enumeration and breeding pair recommendation.

Models independent per-locus bi-parental inheritance for a population of
paired organisms:
  - Enumeration of every offspring trait vector a pair can produce
  - Purity scoring of offspring sets against a target trait value
  - All-pairs evaluation with greedy, female-exclusive mate assignment
"""

from breedplan.errors import BreedPlanError, InputMismatch, PopulationError
from breedplan.inheritance import enumerate_offspring
from breedplan.recommend import recommend_pairings
from breedplan.scoring import score_outcomes
from breedplan.types import Organism, RunStatus, Sex

__version__ = "0.1.0"

__all__ = [
    'BreedPlanError', 'InputMismatch', 'PopulationError',
    'Organism', 'RunStatus', 'Sex',
    'enumerate_offspring', 'score_outcomes', 'recommend_pairings',
]
