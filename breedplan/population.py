"""Population construction: tabular records, YAML files, random populations.

Record layout (one row per organism):
    [id, trait_1, ..., trait_n, mature, sex]
e.g. ``["1", 12, 16, 44, True, "male"]``.

Malformed records raise PopulationError; id uniqueness is not checked.
"""

from __future__ import annotations

from numbers import Real
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import yaml

from breedplan.errors import PopulationError
from breedplan.types import Organism, Sex


# ═══════════════════════════════════════════════════════════════════════
# TABULAR RECORDS
# ═══════════════════════════════════════════════════════════════════════

def _check_traits(organism_id: Any, traits: Sequence[Any]) -> None:
    for t in traits:
        if isinstance(t, bool) or not isinstance(t, Real):
            raise PopulationError(
                f"organism {organism_id!r}: trait values must be numeric, got {t!r}"
            )


def organism_from_record(record: Sequence[Any], n_traits: int = 3) -> Organism:
    """Build an Organism from ``[id, t_1..t_n, mature, sex]``.

    Raises:
        PopulationError: On wrong arity, non-numeric traits or an
            unknown sex tag.
    """
    expected = n_traits + 3
    if len(record) != expected:
        raise PopulationError(
            f"record {list(record)!r} has {len(record)} fields, expected {expected}"
        )
    organism_id = record[0]
    traits = tuple(record[1:1 + n_traits])
    mature, sex_tag = record[1 + n_traits], record[2 + n_traits]
    _check_traits(organism_id, traits)
    try:
        sex = Sex.parse(sex_tag)
    except ValueError as exc:
        raise PopulationError(f"organism {organism_id!r}: {exc}") from exc
    return Organism(id=organism_id, traits=traits, sex=sex, mature=bool(mature))


def population_from_records(
    records: Sequence[Sequence[Any]],
    n_traits: int = 3,
) -> List[Organism]:
    """Build a population from tabular records, preserving row order."""
    return [organism_from_record(r, n_traits=n_traits) for r in records]


def sex_counts(population: Sequence[Organism]) -> Dict[str, int]:
    """{'male': n, 'female': n}."""
    n_male = sum(1 for o in population if o.sex == Sex.MALE)
    return {'male': n_male, 'female': len(population) - n_male}


# ═══════════════════════════════════════════════════════════════════════
# RANDOM POPULATIONS
# ═══════════════════════════════════════════════════════════════════════

def random_population(
    n_males: int,
    n_females: int,
    n_traits: int = 3,
    trait_min: int = 1,
    trait_max: int = 100,
    rng: Optional[np.random.Generator] = None,
) -> List[Organism]:
    """Random mature population with integer traits in [trait_min, trait_max].

    Males come first (ids M1..Mn), then females (F1..Fn).

    Args:
        rng: NumPy random Generator (for reproducibility); a fresh
            unseeded generator when None.
    """
    if n_males < 0 or n_females < 0:
        raise ValueError("organism counts must be non-negative")
    if trait_min > trait_max:
        raise ValueError(f"trait_min ({trait_min}) must be <= trait_max ({trait_max})")
    rng = rng if rng is not None else np.random.default_rng()

    traits = rng.integers(trait_min, trait_max + 1, size=(n_males + n_females, n_traits))
    population = []
    for i in range(n_males + n_females):
        is_male = i < n_males
        label = f"M{i + 1}" if is_male else f"F{i - n_males + 1}"
        population.append(Organism(
            id=label,
            traits=tuple(int(t) for t in traits[i]),
            sex=Sex.MALE if is_male else Sex.FEMALE,
            mature=True,
        ))
    return population


# ═══════════════════════════════════════════════════════════════════════
# YAML I/O
# ═══════════════════════════════════════════════════════════════════════

def save_population_yaml(population: Sequence[Organism], path: Union[str, Path]) -> None:
    """Save a population as ``{"organisms": [...]}``."""
    data = {"organisms": []}
    for o in population:
        entry = o.info()
        if o.next_breeding_time is not None:
            entry["next_breeding_time"] = o.next_breeding_time
        data["organisms"].append(entry)

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, 'w') as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def load_population_yaml(path: Union[str, Path]) -> List[Organism]:
    """Load a population written by ``save_population_yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        PopulationError: If the document or an entry is malformed.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Population file not found: {p}")
    with open(p) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise PopulationError(f"{p}: invalid YAML: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("organisms"), list):
        raise PopulationError(f"{p}: expected a mapping with an 'organisms' list")

    population = []
    for i, entry in enumerate(data["organisms"]):
        if not isinstance(entry, dict):
            raise PopulationError(f"{p}: organisms[{i}] is not a mapping")
        missing = {"id", "traits", "sex"} - set(entry)
        if missing:
            raise PopulationError(f"{p}: organisms[{i}] missing {sorted(missing)}")
        traits = entry["traits"]
        if not isinstance(traits, list):
            raise PopulationError(f"{p}: organisms[{i}].traits must be a list")
        _check_traits(entry["id"], traits)
        try:
            sex = Sex.parse(entry["sex"])
        except ValueError as exc:
            raise PopulationError(f"{p}: organisms[{i}]: {exc}") from exc
        population.append(Organism(
            id=entry["id"],
            traits=tuple(traits),
            sex=sex,
            mature=bool(entry.get("mature", True)),
            next_breeding_time=entry.get("next_breeding_time"),
        ))
    return population
