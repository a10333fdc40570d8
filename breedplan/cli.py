"""Command-line interface.

Usage:
    breedplan offspring --male 12,16,44 --female 42,26,95
    breedplan recommend population.yaml --target 12 --config run.yaml --json
    breedplan demo --males 50 --females 50 --seed 7
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

import numpy as np
import yaml

from breedplan.config import default_config, load_config, validate_config
from breedplan.errors import BreedPlanError
from breedplan.inheritance import OUTCOME_MODELS, enumerate_offspring, locus_probability
from breedplan.perf import StageTimer
from breedplan.population import load_population_yaml, random_population
from breedplan.recommend import recommend_pairings
from breedplan.report import format_outcomes, format_result, result_to_dict

logger = logging.getLogger(__name__)


def _parse_number(text: str):
    try:
        return int(text)
    except ValueError:
        return float(text)


def parse_traits(text: str) -> List:
    """``"12,16,44"`` → ``[12, 16, 44]``; an empty string gives no loci."""
    text = text.strip()
    if not text:
        return []
    try:
        return [_parse_number(t.strip()) for t in text.split(',')]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid trait list: {text!r}") from None


def _cmd_offspring(args) -> int:
    outcomes = enumerate_offspring(args.male, args.female, model=args.model)
    print(f"Male:   {args.male}")
    print(f"Female: {args.female}")
    print(format_outcomes(outcomes))
    for i, (m, f) in enumerate(zip(args.male, args.female)):
        p_m = locus_probability(args.male, args.female, i, m)
        p_f = locus_probability(args.male, args.female, i, f)
        print(f"  locus {i + 1}: P({m})={p_m:.2f}  P({f})={p_f:.2f}")
    return 0


def _run_and_print(population, target, config, args) -> int:
    timer = StageTimer(enabled=args.timings)
    result = recommend_pairings(
        population, target, config=config, max_females=args.max_females, perf=timer,
    )
    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
    else:
        print(format_result(result))
    if args.timings:
        print(timer.report(), file=sys.stderr)
    return 0


def _load_run_config(args):
    config = load_config(args.config) if args.config else default_config()
    if args.workers is not None:
        config.recommend.parallel_workers = args.workers
        validate_config(config)
    return config


def _cmd_recommend(args) -> int:
    config = _load_run_config(args)
    population = load_population_yaml(args.population)
    return _run_and_print(population, args.target, config, args)


def _cmd_demo(args) -> int:
    config = _load_run_config(args)
    p = config.population
    seed = args.seed if args.seed is not None else p.seed
    rng = np.random.default_rng(seed)
    population = random_population(
        args.males, args.females, n_traits=p.n_traits,
        trait_min=p.trait_min, trait_max=p.trait_max, rng=rng,
    )
    target = args.target
    if target is None:
        target = int(rng.integers(p.trait_min, p.trait_max + 1))
    logger.info("Demo population: %d males, %d females, seed %d",
                args.males, args.females, seed)
    return _run_and_print(population, target, config, args)


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None,
                        help="Run configuration YAML")
    parser.add_argument("--max-females", type=int, default=None,
                        help="Females recommended per male (default: from config, 3)")
    parser.add_argument("--workers", type=int, default=None,
                        help="Threads for pair evaluation (default: from config, 1)")
    parser.add_argument("--json", action="store_true",
                        help="Print the result as JSON")
    parser.add_argument("--timings", action="store_true",
                        help="Print stage timings to stderr")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="breedplan",
        description="Offspring trait enumeration and breeding pair recommendation.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More log output (-v info, -vv debug)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_off = sub.add_parser("offspring", help="List every offspring of one pair")
    p_off.add_argument("--male", type=parse_traits, required=True,
                       help="Comma-separated male traits, e.g. 12,16,44")
    p_off.add_argument("--female", type=parse_traits, required=True,
                       help="Comma-separated female traits")
    p_off.add_argument("--model", choices=OUTCOME_MODELS, default="branch")
    p_off.set_defaults(func=_cmd_offspring)

    p_rec = sub.add_parser("recommend", help="Recommend pairings for a population file")
    p_rec.add_argument("population", help="Population YAML ({organisms: [...]})")
    p_rec.add_argument("--target", type=_parse_number, required=True,
                       help="Target trait value")
    _add_run_options(p_rec)
    p_rec.set_defaults(func=_cmd_recommend)

    p_demo = sub.add_parser("demo", help="Recommend pairings for a random population")
    p_demo.add_argument("--males", type=int, default=50)
    p_demo.add_argument("--females", type=int, default=50)
    p_demo.add_argument("--seed", type=int, default=None)
    p_demo.add_argument("--target", type=_parse_number, default=None,
                        help="Target trait value (default: random)")
    _add_run_options(p_demo)
    p_demo.set_defaults(func=_cmd_demo)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except (BreedPlanError, ValueError, FileNotFoundError, yaml.YAMLError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
