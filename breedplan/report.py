"""Human-readable and JSON-ready views of offspring sets and run results."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from breedplan.types import (
    FemaleCandidate,
    OffspringOutcome,
    PairScore,
    Recommendation,
    RecommendationResult,
)


def format_traits(traits: Sequence[Any]) -> str:
    """``[12, 16, 44]``"""
    return f"[{', '.join(str(t) for t in traits)}]"


def _pct(x: float) -> str:
    return f"{x * 100:.1f}%"


def format_outcomes(outcomes: Sequence[OffspringOutcome]) -> str:
    lines = [
        f"  {i + 1:>3}: {format_traits(o.traits)}  p={o.probability * 100:.2f}%"
        for i, o in enumerate(outcomes)
    ]
    lines.append(f"  {len(outcomes)} combination(s)")
    return '\n'.join(lines)


def format_result(result: RecommendationResult) -> str:
    """Multi-line text summary of a recommendation run."""
    s = result.summary
    lines = [
        f"Target value:          {result.target_value}",
        f"Males / females:       {result.n_males} / {result.n_females}",
        f"Status:                {result.status.value}",
    ]
    if result.message:
        lines.append(f"Note:                  {result.message}")
    lines += [
        f"Pairs scored:          {s.total_pairings}",
        f"Pairs skipped:         {s.n_skipped}",
        f"Recommendations:       {s.total_recommendations}",
        f"Best composite score:  {_pct(s.best_composite_score)}",
        f"Best average purity:   {_pct(s.best_average_purity)}",
        f"Best max purity:       {_pct(s.best_max_purity)}",
    ]

    for rank, rec in enumerate(result.recommendations, start=1):
        lines.append("")
        lines.append(
            f"#{rank} male {rec.male.id} {format_traits(rec.male.traits)} "
            f"overall {_pct(rec.overall_score)}"
        )
        for cand in rec.females:
            sc = cand.score
            lines.append(
                f"    female {cand.female.id} {format_traits(cand.female.traits)}: "
                f"composite {_pct(sc.composite_score)}, "
                f"avg {_pct(sc.average_purity)}, max {_pct(sc.max_purity)}, "
                f"high {sc.high_purity_count}/{sc.n_outcomes}, "
                f"perfect {sc.perfect_count}, "
                f"best {format_traits(sc.best_offspring)}"
            )

    for sk in result.skipped:
        lines.append(f"skipped ({sk.male_id}, {sk.female_id}): {sk.reason}")
    return '\n'.join(lines)


# ═══════════════════════════════════════════════════════════════════════
# DICT ENCODING
# ═══════════════════════════════════════════════════════════════════════

def score_to_dict(score: PairScore) -> Dict[str, Any]:
    return {
        'average_purity': score.average_purity,
        'max_purity': score.max_purity,
        'best_offspring': list(score.best_offspring),
        'high_purity_count': score.high_purity_count,
        'perfect_count': score.perfect_count,
        'high_purity_ratio': score.high_purity_ratio,
        'perfect_ratio': score.perfect_ratio,
        'composite_score': score.composite_score,
        'n_outcomes': score.n_outcomes,
    }


def _candidate_to_dict(cand: FemaleCandidate) -> Dict[str, Any]:
    return {'female': cand.female.info(), **score_to_dict(cand.score)}


def _recommendation_to_dict(rec: Recommendation) -> Dict[str, Any]:
    return {
        'male': rec.male.info(),
        'females': [_candidate_to_dict(c) for c in rec.females],
        'overall_score': rec.overall_score,
    }


def result_to_dict(result: RecommendationResult) -> Dict[str, Any]:
    """JSON-ready nested dict; keys follow the dataclass field names."""
    s = result.summary
    recommendations: List[Dict[str, Any]] = [
        _recommendation_to_dict(r) for r in result.recommendations
    ]
    return {
        'target_value': result.target_value,
        'status': result.status.value,
        'message': result.message,
        'n_males': result.n_males,
        'n_females': result.n_females,
        'recommendations': recommendations,
        'summary': {
            'total_pairings': s.total_pairings,
            'n_skipped': s.n_skipped,
            'best_composite_score': s.best_composite_score,
            'best_average_purity': s.best_average_purity,
            'best_max_purity': s.best_max_purity,
            'total_recommendations': s.total_recommendations,
        },
        'skipped': [
            {'male_id': sk.male_id, 'female_id': sk.female_id, 'reason': sk.reason}
            for sk in result.skipped
        ],
    }
