"""
Solver Adapter for Strategy Portfolio Coverage Optimization.

Runs a CoverageModel through Gurobi and reports one of three outcomes:

- Assignment: an optimal (or, under a time limit, best found) solution
- Infeasible: no solution exists or none was found within the time limit;
  returned, never raised, and never disguised as an empty assignment
- SolverError: Gurobi failed or returned an unexpected status; raised

Solver seed and thread count are fixed (config.SOLVER_SEED,
config.SOLVER_THREADS) so that repeated solves of an identical model pick the
same optimum among ties.
"""

from dataclasses import dataclass
from typing import Optional, Union

from gurobipy import GRB, GurobiError

from config import BINARY_THRESHOLD, SOLVER_SEED, SOLVER_THREADS, SOLVER_TIME_LIMIT
from logger import get_logger
from optimizer_utils import CoverageModel, build_coverage_model
from preprocessing import ProblemInstance
from validation import validate_budget

# Module logger
logger = get_logger(__name__)


class SolverError(Exception):
    """The solver failed to run or ended in an unexpected state."""
    pass


@dataclass(frozen=True)
class Assignment:
    """
    Raw solution of one binary program.

    Attributes:
        credits: (strategy row, species column) pairs with X[i,j] = 1
        selected: Strategy rows with y[i] = 1
        objective: Objective value of the solution
        status: Gurobi status code
    """

    credits: tuple[tuple[int, int], ...]
    selected: tuple[int, ...]
    objective: float
    status: int

    @property
    def credited_strategies(self) -> tuple[int, ...]:
        return tuple(sorted({i for i, _ in self.credits}))

    @property
    def credited_species(self) -> tuple[int, ...]:
        return tuple(sorted({j for _, j in self.credits}))


@dataclass(frozen=True)
class Infeasible:
    """A (threshold, budget) point for which no solution could be produced."""

    threshold: float
    budget: float
    reason: str


SolveOutcome = Union[Assignment, Infeasible]


def _extract_assignment(coverage_model: CoverageModel) -> Assignment:
    X = coverage_model.X
    y = coverage_model.y
    credits = tuple(
        (i, j)
        for i in range(coverage_model.n_strategies)
        for j in range(coverage_model.n_species)
        if X[i, j].X > BINARY_THRESHOLD
    )
    selected = tuple(i for i in range(coverage_model.n_strategies) if y[i].X > BINARY_THRESHOLD)
    return Assignment(
        credits=credits,
        selected=selected,
        objective=float(coverage_model.model.ObjVal),
        status=int(coverage_model.model.Status),
    )


def solve_model(
    coverage_model: CoverageModel,
    time_limit: Optional[float] = SOLVER_TIME_LIMIT,
) -> SolveOutcome:
    """
    Optimize a coverage model.

    Args:
        coverage_model: Model built by build_coverage_model()
        time_limit: Optional time limit in seconds

    Returns:
        Assignment, or Infeasible when no solution is available

    Raises:
        SolverError: If Gurobi fails or ends with an unexpected status
    """
    model = coverage_model.model
    threshold = coverage_model.instance.threshold
    budget = coverage_model.budget

    try:
        model.setParam("Seed", SOLVER_SEED)
        model.setParam("Threads", SOLVER_THREADS)
        if time_limit is not None:
            model.setParam("TimeLimit", time_limit)
        model.optimize()
    except GurobiError as e:
        logger.exception(f"Optimization failed for threshold {threshold}, budget {budget:,.2f}")
        raise SolverError(
            f"Gurobi failed for threshold {threshold}, budget {budget:,.2f}: {e}"
        ) from e

    status = model.Status

    if status == GRB.OPTIMAL:
        return _extract_assignment(coverage_model)

    if status in (GRB.INFEASIBLE, GRB.INF_OR_UNBD):
        logger.warning(f"Model is infeasible for threshold {threshold}, budget {budget:,.2f}")
        return Infeasible(threshold, budget, "model is infeasible")

    if status == GRB.TIME_LIMIT:
        if model.SolCount > 0:
            logger.warning(
                f"Time limit reached for threshold {threshold}, budget {budget:,.2f}; "
                f"using best solution found (gap {model.MIPGap:.2%})"
            )
            return _extract_assignment(coverage_model)
        return Infeasible(threshold, budget, "no solution found within time limit")

    logger.error(f"Solver ended with unexpected status {status}")
    raise SolverError(
        f"Optimization failed with status {status} for threshold {threshold}, "
        f"budget {budget:,.2f}"
    )


def optimize(
    instance: ProblemInstance,
    budget: float,
    time_limit: Optional[float] = SOLVER_TIME_LIMIT,
) -> SolveOutcome:
    """
    Build and solve the binary program for one instance and budget.

    Problems that cannot have a meaningful solution are reported as
    Infeasible without calling the solver: an instance with no strategies or
    no species left, or a budget below the cheapest strategy.

    Args:
        instance: Preprocessed problem instance
        budget: Maximum total cost
        time_limit: Optional solver time limit in seconds

    Returns:
        Assignment or Infeasible

    Raises:
        ValidationError: If the budget is invalid
        SolverError: If the solver fails
    """
    validate_budget(budget)

    if instance.n_strategies == 0 or instance.n_species == 0:
        return Infeasible(
            instance.threshold,
            budget,
            f"benefit matrix is empty ({instance.n_strategies} strategies x "
            f"{instance.n_species} species)",
        )

    cheapest = float(instance.costs.min())
    if budget < cheapest:
        return Infeasible(
            instance.threshold,
            budget,
            f"budget {budget:,.2f} is below the cheapest strategy cost {cheapest:,.2f}",
        )

    try:
        coverage_model = build_coverage_model(instance, budget)
    except GurobiError as e:
        raise SolverError(f"Could not build the Gurobi model: {e}") from e

    try:
        return solve_model(coverage_model, time_limit)
    finally:
        coverage_model.dispose()
