"""
Result Parsing for Strategy Portfolio Coverage Optimization.

Converts raw solver assignments into human readable results: which
strategies were selected, what they cost, and which species they save,
with the species the baseline saves for free appended.

Note: baseline species are appended without deduplication against the
optimized species, so a species can in principle appear twice in
species_names and be counted twice in species_count.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

import pandas as pd

from config import OUTPUT_COLUMNS, SPECIES_SEPARATOR, SOLVER_TIME_LIMIT, STRATEGY_SEPARATOR
from logger import get_logger
from preprocessing import ProblemInstance
from solver import Assignment, Infeasible, optimize
from validation import validate_budget

# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class OptimizationResult:
    """
    Outcome of one (threshold, budget) solve.

    Attributes:
        species_count: Number of entries in species_names
        total_cost: Cost of the credited strategies
        threshold: Survival threshold of the instance
        species_names: Optimized species followed by baseline species
        strategy_names: Selected strategies
        budget: Budget the problem was solved for (may exceed total_cost)
        assignments: Credited (strategy, species) name pairs
    """

    species_count: int
    total_cost: float
    threshold: float
    species_names: tuple[str, ...]
    strategy_names: tuple[str, ...]
    budget: float
    assignments: tuple[tuple[str, str], ...] = ()

    @property
    def signature(self) -> str:
        """Species-group key used to deduplicate sweep results."""
        return SPECIES_SEPARATOR.join(self.species_names)


def baseline_result(instance: ProblemInstance) -> OptimizationResult:
    """Result of applying only the baseline strategy (budget 0)."""
    record = instance.baseline
    return OptimizationResult(
        species_count=record.species_count,
        total_cost=record.total_cost,
        threshold=instance.threshold,
        species_names=record.species_names,
        strategy_names=(record.strategy_name,),
        budget=0.0,
    )


def parse_assignment(
    assignment: Assignment,
    instance: ProblemInstance,
    budget: float,
) -> OptimizationResult:
    """
    Translate a raw assignment into an OptimizationResult.

    Args:
        assignment: Raw solver output for this instance
        instance: Instance the assignment was solved on
        budget: Budget the instance was solved for

    Returns:
        OptimizationResult with banked baseline species appended
    """
    strategy_idx = assignment.credited_strategies
    species_idx = assignment.credited_species

    strategy_names = tuple(instance.matrix.index[i] for i in strategy_idx)
    total_cost = float(instance.costs.iloc[list(strategy_idx)].sum()) if strategy_idx else 0.0

    species_names = tuple(instance.matrix.columns[j] for j in species_idx)
    species_names = species_names + instance.baseline.species_names

    pairs = tuple(
        (instance.matrix.index[i], instance.matrix.columns[j]) for i, j in assignment.credits
    )

    return OptimizationResult(
        species_count=len(species_names),
        total_cost=total_cost,
        threshold=instance.threshold,
        species_names=species_names,
        strategy_names=strategy_names,
        budget=budget,
        assignments=pairs,
    )


def solve(
    instance: ProblemInstance,
    budget: float,
    time_limit: Optional[float] = SOLVER_TIME_LIMIT,
) -> Union[OptimizationResult, Infeasible]:
    """
    Solve one instance for one budget.

    A budget of 0 cannot afford any strategy, so the solver is bypassed and
    the baseline result returned.

    Raises:
        ValidationError: If the budget is invalid
        SolverError: If the solver fails
    """
    validate_budget(budget)
    if budget == 0:
        return baseline_result(instance)

    outcome = optimize(instance, budget, time_limit)
    if isinstance(outcome, Infeasible):
        return outcome

    result = parse_assignment(outcome, instance, budget)
    logger.debug(
        f"t={instance.threshold}, budget={budget:,.2f}: {result.species_count} species "
        f"with {len(result.strategy_names)} strategies at cost {result.total_cost:,.2f}"
    )
    return result


def solve_raw(
    instance: ProblemInstance,
    budget: float,
    time_limit: Optional[float] = SOLVER_TIME_LIMIT,
) -> Union[Assignment, Infeasible]:
    """Solve one instance and return the unparsed assignment (for debugging)."""
    return optimize(instance, budget, time_limit)


def result_to_record(result: OptimizationResult) -> dict:
    """Flatten a result into one row of the sweep output table."""
    return {
        "total_cost": result.total_cost,
        "strategies": STRATEGY_SEPARATOR.join(result.strategy_names),
        "species_groups": SPECIES_SEPARATOR.join(result.species_names),
        "threshold": result.threshold,
        "number_of_species": result.species_count,
        "budget": result.budget,
    }


def results_to_frame(results: Iterable[OptimizationResult]) -> pd.DataFrame:
    """Build the sweep output table, one row per result, in order."""
    return pd.DataFrame([result_to_record(r) for r in results], columns=OUTPUT_COLUMNS)
