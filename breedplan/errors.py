"""breedplan exception hierarchy.

Domain errors derive from ``ValueError`` as well, so callers that only
guard against bad input with ``except ValueError`` keep working.
"""


class BreedPlanError(Exception):
    """Root of all breedplan domain exceptions."""


class InputMismatch(BreedPlanError, ValueError):
    """Parents' trait vectors differ in length; the pair cannot be enumerated."""

    def __init__(self, male_loci: int, female_loci: int):
        self.male_loci = male_loci
        self.female_loci = female_loci
        super().__init__(
            f"trait vectors differ in length: male has {male_loci} loci, "
            f"female has {female_loci}"
        )


class PopulationError(BreedPlanError, ValueError):
    """A population record does not fit the Organism contract."""
