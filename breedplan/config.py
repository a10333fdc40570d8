"""Configuration system for breedplan.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → override.yaml → programmatic overrides

Sections map 1:1 to YAML top-level keys:
  scoring      composite weights and the high-purity threshold
  recommend    per-male candidate cap and evaluation workers
  inheritance  offspring outcome model ("branch" | "distinct")
  population   random demo population parameters
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from breedplan.inheritance import OUTCOME_MODELS
from breedplan.scoring import HIGH_PURITY_THRESHOLD, CompositeWeights


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class ScoringSection:
    """Composite score weights and purity thresholds."""
    weight_average: float = 0.4       # mean offspring purity
    weight_max: float = 0.3           # best offspring purity
    weight_high_purity: float = 0.2   # share of outcomes at/above threshold
    weight_perfect: float = 0.1       # share of fully pure outcomes
    high_purity_threshold: float = HIGH_PURITY_THRESHOLD

    def weights(self) -> CompositeWeights:
        return CompositeWeights(
            average=self.weight_average,
            max=self.weight_max,
            high_purity=self.weight_high_purity,
            perfect=self.weight_perfect,
        )


@dataclass
class RecommendSection:
    """Pairing recommendation controls."""
    max_females_per_male: int = 3
    parallel_workers: int = 1         # 1 = serial all-pairs evaluation


@dataclass
class InheritanceSection:
    """Offspring model.

    outcome_model: "branch"   -> 2^N outcomes, uniform 1/2^N, repeats kept
                   "distinct" -> identical trait vectors merged, probabilities summed
    """
    outcome_model: str = "branch"


@dataclass
class PopulationSection:
    """Random demo population parameters."""
    n_traits: int = 3
    trait_min: int = 1
    trait_max: int = 100
    seed: int = 42


@dataclass
class RecommendConfig:
    """Complete run configuration.

    Load from YAML via `load_config()`.
    """
    scoring: ScoringSection = field(default_factory=ScoringSection)
    recommend: RecommendSection = field(default_factory=RecommendSection)
    inheritance: InheritanceSection = field(default_factory=InheritanceSection)
    population: PopulationSection = field(default_factory=PopulationSection)


_SECTION_MAP = {
    'scoring': ScoringSection,
    'recommend': RecommendSection,
    'inheritance': InheritanceSection,
    'population': PopulationSection,
}


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> RecommendConfig:
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return RecommendConfig(**sections)


def config_to_dict(config: RecommendConfig) -> Dict[str, Dict[str, Any]]:
    """Nested dict view of a config (the YAML layout)."""
    return dataclasses.asdict(config)


def validate_config(config: RecommendConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure."""
    s = config.scoring
    weights = s.weights()
    for name in ('weight_average', 'weight_max', 'weight_high_purity', 'weight_perfect'):
        if getattr(s, name) < 0:
            raise ValueError(f"scoring.{name} must be >= 0, got {getattr(s, name)}")
    if abs(weights.total - 1.0) > 1e-9:
        raise ValueError(
            f"scoring weights must sum to 1.0, got "
            f"{s.weight_average}+{s.weight_max}+{s.weight_high_purity}"
            f"+{s.weight_perfect}={weights.total}"
        )
    if not 0.0 < s.high_purity_threshold <= 1.0:
        raise ValueError(
            f"scoring.high_purity_threshold must be in (0, 1], "
            f"got {s.high_purity_threshold}"
        )

    r = config.recommend
    if r.max_females_per_male < 1:
        raise ValueError(
            f"recommend.max_females_per_male must be >= 1, got {r.max_females_per_male}"
        )
    if r.parallel_workers < 1:
        raise ValueError(
            f"recommend.parallel_workers must be >= 1, got {r.parallel_workers}"
        )

    if config.inheritance.outcome_model not in OUTCOME_MODELS:
        raise ValueError(
            f"inheritance.outcome_model must be one of {OUTCOME_MODELS}, "
            f"got '{config.inheritance.outcome_model}'"
        )

    p = config.population
    if p.n_traits < 0:
        raise ValueError(f"population.n_traits must be >= 0, got {p.n_traits}")
    if p.trait_min > p.trait_max:
        raise ValueError(
            f"population.trait_min ({p.trait_min}) must be <= "
            f"trait_max ({p.trait_max})"
        )
    if p.seed < 0:
        raise ValueError("population.seed must be non-negative")


def load_config(
    base_path: Union[str, Path],
    override_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> RecommendConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → override file → overrides dict.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if override_path is not None:
        override_path = Path(override_path)
        if override_path.exists():
            with open(override_path) as f:
                deep_merge(config_dict, yaml.safe_load(f) or {})

    if overrides is not None:
        deep_merge(config_dict, overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> RecommendConfig:
    """Return a RecommendConfig with all default values."""
    config = RecommendConfig()
    validate_config(config)
    return config
