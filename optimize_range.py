"""
Strategy Portfolio Optimization over a Range of Thresholds and Budgets

WHAT THIS SCRIPT DOES:
Given a table of how well each management strategy protects each species
and what each strategy costs, this script finds, for a range of survival
thresholds and budgets, the set of strategies that saves the most species
without exceeding the budget.

Think of it as answering: "If we can spend X, which strategies should we
fund, and which species does that save?" for every X where the answer can
change.

HOW IT WORKS:
For every survival threshold (processed in the given order):
1. A fresh problem instance is built: benefits are rounded, binarized
   against the threshold, and the baseline ("do nothing") strategy is
   removed, banking the species it already saves for free
2. Any requested strategy combinations are added
3. Every budget in the budget ladder (ascending) is solved as a binary
   program and the solution translated into a readable result

When no budgets are supplied, a ladder of "interesting" budgets is derived
once, from the first threshold's cost vector, and reused for every
threshold. Since baseline removal can differ per threshold, some ladder
points may be irrelevant to a later threshold's problem.

Results with the same species groups are then collapsed, keeping the first
one in threshold/budget order.

USAGE EXAMPLES:
    # Sweep the default thresholds with an automatic budget ladder
    python optimize_range.py --benefits data/benefits.csv --costs data/costs.csv --all-index 14

    # Explicit thresholds and budgets
    python optimize_range.py --all-index 14 --thresholds 50.01 60.01 --budgets 1e6 5e6

    # Merge two existing composite strategies after defining them
    python optimize_range.py --all-index 14 --combo S12=S3,S7,S10 --combo S13=S6,S9,S10 --merge S12,S13

OUTPUTS:
- CSV file with one row per distinct outcome (total_cost, strategies,
  species_groups, threshold, number_of_species, budget)
- Console summary of the retained outcomes
"""

import argparse
from dataclasses import dataclass
from pathlib import Path
import sys
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from combination import ComboSpec, apply_combinations
from config import (
    BASELINE_INDEX,
    BENEFITS_FILE_PATH,
    COSTS_FILE_PATH,
    DEFAULT_THRESHOLDS,
    OUTPUT_FILE_PATH,
    SOLVER_TIME_LIMIT,
)
from logger import LogLevel, close_all_loggers, configure_logging, get_logger
from preprocessing import CostsLike, build_instance
from results import OptimizationResult, results_to_frame, solve
from solver import Infeasible, SolverError
from utils import display_results, load_benefit_matrix, load_cost_vector, load_species_weights
from validation import (
    ValidationError,
    validate_budget,
    validate_output_directory,
    validate_thresholds,
)

# Initialize logger
logger = get_logger(__name__, level=LogLevel.INFO)


@dataclass(frozen=True)
class SweepResult:
    """
    Outcome of a threshold x budget sweep.

    Attributes:
        results: Retained results, in threshold/budget iteration order
        infeasible: Grid points for which no solution could be produced
    """

    results: tuple[OptimizationResult, ...]
    infeasible: tuple[Infeasible, ...] = ()

    def __len__(self) -> int:
        return len(self.results)

    def to_frame(self) -> pd.DataFrame:
        return results_to_frame(self.results)


def make_budget(costs: CostsLike) -> list[float]:
    """
    Generate the budgets at which a new strategy or combination first becomes affordable.

    Mixes the prefix sums of the ascending costs with the individual costs,
    keeps values up to the most expensive strategy and prepends 0.

    Examples:
        >>> make_budget([10, 20, 30])
        [0.0, 10.0, 20.0, 30.0]
    """
    values = np.asarray(costs, dtype=float).ravel()
    if values.size == 0:
        return [0.0]

    prefix_sums = np.cumsum(np.sort(values))
    ladder = np.unique(np.concatenate([prefix_sums, values]))
    ladder = ladder[(ladder <= values.max()) & (ladder != 0)]
    return [0.0] + [float(b) for b in ladder]


def deduplicate_results(results: Iterable[OptimizationResult]) -> list[OptimizationResult]:
    """Drop results whose species groups were already seen; the first one wins."""
    seen: set[str] = set()
    unique: list[OptimizationResult] = []
    for result in results:
        if result.signature in seen:
            continue
        seen.add(result.signature)
        unique.append(result)
    return unique


def optimize_range(
    matrix: pd.DataFrame,
    costs: CostsLike,
    all_index: int,
    thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
    budgets: Optional[Sequence[float]] = None,
    combos: Optional[Sequence[ComboSpec]] = None,
    weights: Optional[CostsLike] = None,
    baseline_index: int = BASELINE_INDEX,
    time_limit: Optional[float] = SOLVER_TIME_LIMIT,
    deduplicate: bool = True,
) -> SweepResult:
    """
    Optimize over a range of thresholds and budgets.

    Args:
        matrix: Raw strategies x species benefit matrix
        costs: Cost per strategy
        all_index: Row position of the "apply all" sentinel in the raw matrix
        thresholds: Survival thresholds, processed in this order
        budgets: Budgets to solve for (ascending); derived with make_budget()
            from the first threshold's costs when None or empty
        combos: Strategy combinations to add for every threshold, in order
        weights: Optional per-species objective weights
        baseline_index: Row position of the baseline strategy
        time_limit: Optional solver time limit per solve, in seconds
        deduplicate: Collapse results with identical species groups

    Returns:
        SweepResult

    Raises:
        ValidationError: If any input is invalid (the whole sweep stops)
        SolverError: If the solver fails (the whole sweep stops)
    """
    thresholds = validate_thresholds(thresholds)
    combos = list(combos or [])

    ladder: Optional[list[float]] = None
    if budgets is not None and len(budgets) > 0:
        for budget in budgets:
            validate_budget(budget)
        ladder = sorted(float(b) for b in budgets)

    collected: list[OptimizationResult] = []
    infeasible: list[Infeasible] = []

    for k, t in enumerate(thresholds, start=1):
        logger.progress(f"Optimizing for threshold {t}", k, len(thresholds))
        try:
            instance = build_instance(matrix, costs, all_index, t, weights, baseline_index)
            if combos:
                instance = apply_combinations(instance, combos)

            if ladder is None:
                ladder = make_budget(instance.costs)
                logger.info(f"  Generated budget ladder with {len(ladder)} levels")

            for budget in ladder:
                outcome = solve(instance, budget, time_limit)
                if isinstance(outcome, Infeasible):
                    logger.warning(f"  [INFEASIBLE] t={t}, budget={budget:,.2f}: {outcome.reason}")
                    infeasible.append(outcome)
                    continue
                collected.append(outcome)
        except (ValidationError, SolverError):
            logger.error(f"Sweep aborted at threshold {t}")
            raise

    results = deduplicate_results(collected) if deduplicate else collected
    logger.info(
        f"Completed {len(collected) + len(infeasible)} solves; "
        f"kept {len(results)} distinct outcomes"
    )
    if infeasible:
        logger.warning(f"{len(infeasible)} grid points had no solution")

    return SweepResult(results=tuple(results), infeasible=tuple(infeasible))


def parse_combo_argument(value: str, merge: bool = False) -> ComboSpec:
    """
    Parse a command line combination.

    ``NAME=A,B,C`` defines strategy NAME from A, B and C; ``A,B`` uses the
    default name "A + B". With merge=True the listed strategies are merged.
    """
    name: Optional[str] = None
    members_part = value
    if "=" in value:
        name, members_part = (part.strip() for part in value.split("=", 1))
    members = [m.strip() for m in members_part.split(",") if m.strip()]
    if merge:
        return ComboSpec.merge(members, target_name=name or None)
    return ComboSpec.define(members, name or None)


def main() -> None:
    """Main execution function with comprehensive error handling."""
    parser = argparse.ArgumentParser(
        description="Select cost-effective strategy portfolios over a range of thresholds and budgets.",
        epilog="Budgets are generated from the strategy costs when not supplied.",
    )
    parser.add_argument("--benefits", default=BENEFITS_FILE_PATH, help="Benefit matrix CSV")
    parser.add_argument("--costs", default=COSTS_FILE_PATH, help="Strategy cost CSV")
    parser.add_argument("--weights", help="Optional species weight CSV")
    parser.add_argument(
        "--all-index",
        type=int,
        required=True,
        help="0-based row of the strategy that applies all strategies",
    )
    parser.add_argument(
        "--baseline-index",
        type=int,
        default=BASELINE_INDEX,
        help="0-based row of the baseline strategy",
    )
    parser.add_argument(
        "--thresholds", type=float, nargs="+", default=list(DEFAULT_THRESHOLDS),
        help="Survival thresholds to sweep",
    )
    parser.add_argument("--budgets", type=float, nargs="+", help="Budgets to sweep")
    parser.add_argument(
        "--combo", action="append", default=[],
        help="Define a strategy: NAME=A,B,C or A,B (repeatable)",
    )
    parser.add_argument(
        "--merge", action="append", default=[],
        help="Merge existing strategies: A,B or NAME=A,B (repeatable, applied after --combo)",
    )
    parser.add_argument("--time-limit", type=float, default=SOLVER_TIME_LIMIT,
                        help="Solver time limit per solve in seconds")
    parser.add_argument("--output", default=OUTPUT_FILE_PATH, help="Output CSV path")
    parser.add_argument("--keep-duplicates", action="store_true",
                        help="Keep results with identical species groups")
    parser.add_argument("--log-file", type=Path, help="Also write log output to this file")
    parser.add_argument(
        "--log-level", type=LogLevel.from_name, default=LogLevel.INFO,
        help="error, warning, info or debug (default: info)",
    )
    parser.add_argument("--verbose", action="store_true", help="Same as --log-level debug")
    args = parser.parse_args()

    configure_logging(level=args.log_level, file_path=args.log_file, verbose=args.verbose)

    try:
        matrix = load_benefit_matrix(args.benefits)
        costs = load_cost_vector(args.costs)
        weights = load_species_weights(args.weights) if args.weights else None
        combos = [parse_combo_argument(c) for c in args.combo]
        combos += [parse_combo_argument(c, merge=True) for c in args.merge]

        logger.info("Starting threshold/budget sweep")
        sweep = optimize_range(
            matrix,
            costs,
            args.all_index,
            thresholds=args.thresholds,
            budgets=args.budgets,
            combos=combos,
            weights=weights,
            baseline_index=args.baseline_index,
            time_limit=args.time_limit,
            deduplicate=not args.keep_duplicates,
        )

        table = sweep.to_frame()
        display_results(table)

        output_file = Path(args.output)
        validate_output_directory(output_file.parent)
        table.to_csv(output_file, index=False)
        logger.info(f"[OK] Results saved to '{output_file}'")

    except ValidationError:
        logger.exception("Validation error")
        sys.exit(1)
    except SolverError:
        logger.exception(
            "Gurobi optimization error. Please check your Gurobi license and model formulation."
        )
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Optimization interrupted by user")
        sys.exit(130)
    except Exception:
        logger.exception("Unexpected error")
        sys.exit(1)
    finally:
        close_all_loggers()


if __name__ == "__main__":
    main()
