"""Tests for breedplan.recommend — all-pairs scoring and greedy assignment.

Acceptance criteria:
  - Empty male or female segment → EMPTY_POPULATION_SEGMENT, no exception
  - A female is claimed by at most one male per run
  - Each male gets at most K females; males pick in population order
  - Ties broken by female order (stable sort)
  - Mismatched pairs are skipped with a reason, the run continues
  - Summary metrics cover ALL scored candidates
  - Identical inputs give identical results
"""

import json

import numpy as np
import pytest

from breedplan.config import default_config
from breedplan.perf import StageTimer
from breedplan.population import random_population
from breedplan.recommend import (
    PairCandidate,
    assign_greedy,
    evaluate_pair,
    evaluate_pairs,
    partition_by_sex,
    rank_recommendations,
    recommend_pairings,
)
from breedplan.report import result_to_dict
from breedplan.types import Organism, RunStatus, Sex


# ═══════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════


def _m(oid, traits):
    return Organism(id=oid, traits=traits, sex=Sex.MALE)


def _f(oid, traits):
    return Organism(id=oid, traits=traits, sex=Sex.FEMALE)


@pytest.fixture
def demo_population():
    """Three males and four females, target 12."""
    return [
        _m("1", (12, 12, 12)),
        _m("2", (12, 16, 44)),
        _m("3", (42, 26, 95)),
        _f("4", (12, 12, 16)),
        _f("5", (12, 26, 44)),
        _f("6", (42, 95, 16)),
        _f("7", (12, 12, 12)),
    ]


def _all_female_ids(result):
    return [fid for rec in result.recommendations for fid in rec.female_ids]


# ═══════════════════════════════════════════════════════════════════════
# PARTITION & EVALUATION
# ═══════════════════════════════════════════════════════════════════════


class TestPartition:
    def test_keeps_order(self, demo_population):
        males, females = partition_by_sex(demo_population)
        assert [m.id for m in males] == ["1", "2", "3"]
        assert [f.id for f in females] == ["4", "5", "6", "7"]

    def test_interleaved(self):
        pop = [_f("a", (1,)), _m("b", (1,)), _f("c", (1,)), _m("d", (1,))]
        males, females = partition_by_sex(pop)
        assert [m.id for m in males] == ["b", "d"]
        assert [f.id for f in females] == ["a", "c"]


class TestEvaluatePairs:
    def test_candidate_count_and_order(self, demo_population):
        males, females = partition_by_sex(demo_population)
        evaluation = evaluate_pairs(males, females, 12)
        assert len(evaluation.candidates) == 12
        keys = [(c.male_index, c.female_index) for c in evaluation.candidates]
        assert keys == [(i, j) for i in range(3) for j in range(4)]
        assert evaluation.skipped == []

    def test_evaluate_pair_perfect(self):
        score = evaluate_pair(_m("1", (12, 12, 12)), _f("7", (12, 12, 12)), 12)
        assert score.composite_score == pytest.approx(1.0)

    def test_mismatch_skipped(self):
        males = [_m("m", (1, 2, 3))]
        females = [_f("ok", (1, 2, 3)), _f("short", (1, 2))]
        evaluation = evaluate_pairs(males, females, 1)
        assert [c.female.id for c in evaluation.candidates] == ["ok"]
        assert len(evaluation.skipped) == 1
        sk = evaluation.skipped[0]
        assert (sk.male_id, sk.female_id) == ("m", "short")
        assert "3" in sk.reason and "2" in sk.reason


# ═══════════════════════════════════════════════════════════════════════
# GREEDY ASSIGNMENT
# ═══════════════════════════════════════════════════════════════════════


class TestGreedyAssignment:
    def test_demo_assignment(self, demo_population):
        result = recommend_pairings(demo_population, 12)
        assert result.status is RunStatus.OK
        by_male = {rec.male.id: rec.female_ids for rec in result.recommendations}
        # Male 1 picks first: pure female 7, then 4, then 5.
        assert by_male["1"] == ("7", "4", "5")
        # Male 2 gets the only female left; male 3 gets nothing.
        assert by_male["2"] == ("6",)
        assert "3" not in by_male

    def test_overall_score_is_mean(self, demo_population):
        result = recommend_pairings(demo_population, 12)
        for rec in result.recommendations:
            scores = [c.score.composite_score for c in rec.females]
            assert rec.overall_score == pytest.approx(sum(scores) / len(scores))

    def test_ranked_by_overall_score(self, demo_population):
        result = recommend_pairings(demo_population, 12)
        overall = [r.overall_score for r in result.recommendations]
        assert overall == sorted(overall, reverse=True)
        assert result.recommendations[0].male.id == "1"

    def test_females_sorted_by_composite(self, demo_population):
        result = recommend_pairings(demo_population, 12)
        for rec in result.recommendations:
            scores = [c.score.composite_score for c in rec.females]
            assert scores == sorted(scores, reverse=True)

    def test_first_male_gets_first_pick(self):
        pop = [_m("a", (5, 5)), _m("b", (5, 5)), _f("x", (5, 5)), _f("y", (1, 1))]
        result = recommend_pairings(pop, 5, max_females=1)
        by_male = {rec.male.id: rec.female_ids for rec in result.recommendations}
        assert by_male == {"a": ("x",), "b": ("y",)}

    def test_tie_keeps_female_order(self):
        pop = [_m("m", (1, 1)), _f("fa", (5, 5)), _f("fb", (5, 5)), _f("fc", (5, 5))]
        result = recommend_pairings(pop, 1, max_females=2)
        assert result.recommendations[0].female_ids == ("fa", "fb")

    def test_tie_in_overall_keeps_male_order(self):
        pop = [_m("a", (1,)), _m("b", (1,)), _f("x", (9,)), _f("y", (9,))]
        result = recommend_pairings(pop, 1, max_females=1)
        assert [r.male.id for r in result.recommendations] == ["a", "b"]

    def test_assign_greedy_rejects_zero_cap(self, demo_population):
        males, females = partition_by_sex(demo_population)
        with pytest.raises(ValueError):
            assign_greedy(males, evaluate_pairs(males, females, 12).candidates, max_females=0)

    def test_rank_is_stable(self, demo_population):
        males, females = partition_by_sex(demo_population)
        recs = assign_greedy(males, evaluate_pairs(males, females, 12).candidates)
        assert rank_recommendations(recs) == rank_recommendations(rank_recommendations(recs))


class TestScenarioD:
    """3 males, 5 females, cap 3."""

    @pytest.fixture
    def result(self):
        rng = np.random.default_rng(3)
        pop = random_population(3, 5, n_traits=3, trait_min=1, trait_max=4, rng=rng)
        return recommend_pairings(pop, 2, max_females=3)

    def test_cap_respected(self, result):
        for rec in result.recommendations:
            assert 1 <= len(rec.females) <= 3

    def test_female_exclusivity(self, result):
        ids = _all_female_ids(result)
        assert len(ids) == len(set(ids))

    def test_all_females_used(self, result):
        # 3 + 2 = 5: the first male takes three, the second the remaining two.
        assert sorted(_all_female_ids(result)) == ["F1", "F2", "F3", "F4", "F5"]
        assert result.summary.total_recommendations == 2

    def test_total_pairings(self, result):
        assert result.summary.total_pairings == 15


class TestExclusivityProperty:
    @pytest.mark.parametrize("seed", range(5))
    def test_no_female_claimed_twice(self, seed):
        rng = np.random.default_rng(seed)
        n_males, n_females = int(rng.integers(1, 10)), int(rng.integers(1, 20))
        pop = random_population(n_males, n_females, n_traits=4, trait_min=1, trait_max=3, rng=rng)
        result = recommend_pairings(pop, 2)
        ids = _all_female_ids(result)
        assert len(ids) == len(set(ids))
        assert all(len(rec.females) <= 3 for rec in result.recommendations)


# ═══════════════════════════════════════════════════════════════════════
# DEGENERATE INPUTS & ERRORS
# ═══════════════════════════════════════════════════════════════════════


class TestScenarioC:
    def test_no_females(self):
        pop = [_m("1", (12, 12, 12)), _m("2", (1, 2, 3))]
        result = recommend_pairings(pop, 12)
        assert result.status is RunStatus.EMPTY_POPULATION_SEGMENT
        assert result.recommendations == ()
        assert result.n_males == 2 and result.n_females == 0
        assert "female" in result.message
        assert result.summary.total_pairings == 0

    def test_no_males(self):
        result = recommend_pairings([_f("1", (12,))], 12)
        assert result.status is RunStatus.EMPTY_POPULATION_SEGMENT

    def test_empty_population(self):
        result = recommend_pairings([], 12)
        assert result.status is RunStatus.EMPTY_POPULATION_SEGMENT


class TestSkippedPairs:
    def test_run_continues(self):
        pop = [_m("m", (12, 12)), _f("ok", (12, 1)), _f("bad", (12,))]
        result = recommend_pairings(pop, 12)
        assert result.status is RunStatus.OK
        assert result.summary.total_pairings == 1
        assert result.summary.n_skipped == 1
        assert result.skipped[0].female_id == "bad"
        assert result.recommendations[0].female_ids == ("ok",)

    def test_all_skipped(self):
        pop = [_m("m", (12, 12)), _f("bad", (12,))]
        result = recommend_pairings(pop, 12)
        assert result.status is RunStatus.NO_VALID_PAIRS
        assert result.recommendations == ()
        assert result.summary.best_composite_score == 0.0

    def test_zero_loci_valid(self):
        pop = [_m("m", ()), _f("f", ())]
        result = recommend_pairings(pop, 12)
        assert result.status is RunStatus.OK
        rec = result.recommendations[0]
        assert rec.overall_score == 0.0
        assert rec.females[0].score.n_outcomes == 1

    def test_bad_cap(self, demo_population):
        with pytest.raises(ValueError):
            recommend_pairings(demo_population, 12, max_females=0)


# ═══════════════════════════════════════════════════════════════════════
# SUMMARY, CONFIG & DETERMINISM
# ═══════════════════════════════════════════════════════════════════════


class TestSummary:
    def test_over_all_candidates(self, demo_population):
        result = recommend_pairings(demo_population, 12)
        s = result.summary
        assert s.total_pairings == 12
        assert s.best_composite_score == pytest.approx(1.0)
        assert s.best_average_purity == pytest.approx(1.0)
        assert s.best_max_purity == 1.0
        assert s.total_recommendations == 2

    def test_best_includes_unselected_pairs(self):
        # Male "a" claims the only female, but male "b" would pair better.
        pop = [_m("a", (1, 1)), _m("b", (5, 5)), _f("x", (5, 5))]
        result = recommend_pairings(pop, 5)
        assert result.recommendations[0].male.id == "a"
        assert result.summary.best_composite_score == pytest.approx(1.0)
        assert result.recommendations[0].overall_score < 1.0


class TestConfigDriven:
    def test_cap_from_config(self, demo_population):
        config = default_config()
        config.recommend.max_females_per_male = 1
        result = recommend_pairings(demo_population, 12, config=config)
        assert all(len(r.females) == 1 for r in result.recommendations)
        assert result.summary.total_recommendations == 3

    def test_argument_overrides_config(self, demo_population):
        config = default_config()
        config.recommend.max_females_per_male = 1
        result = recommend_pairings(demo_population, 12, config=config, max_females=2)
        assert len(result.recommendations[0].females) == 2

    def test_distinct_model(self, demo_population):
        config = default_config()
        config.inheritance.outcome_model = "distinct"
        result = recommend_pairings(demo_population, 12, config=config)
        ids = _all_female_ids(result)
        assert len(ids) == len(set(ids))

    def test_stage_timer(self, demo_population):
        timer = StageTimer(enabled=True)
        recommend_pairings(demo_population, 12, perf=timer)
        assert set(timer.get_stats()) == {"partition", "evaluate", "assign"}


class TestDeterminism:
    def test_identical_runs(self):
        pop = random_population(8, 12, rng=np.random.default_rng(11))
        a = recommend_pairings(pop, 50)
        b = recommend_pairings(pop, 50)
        assert a == b
        assert json.dumps(result_to_dict(a)) == json.dumps(result_to_dict(b))

    def test_population_untouched(self, demo_population):
        before = list(demo_population)
        recommend_pairings(demo_population, 12)
        assert demo_population == before
